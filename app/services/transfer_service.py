import logging

from app.ledger.store import StateStore
from app.schemas.registry_schema import House
from app.services.house_service import get_house, update_house

module_logger = logging.getLogger(__name__)


async def transfer_house(
    store: StateStore,
    house_id: str,
    new_owner_id: str,
    logger: logging.Logger = module_logger,
) -> House:
    """
    Transfers a house to a new owner.

    The house is read, its owner replaced, and written back through
    ``update_house``, which re-validates the new owner. That final overwrite is
    the only write, so a failed transfer leaves the stored house unchanged.

    Args:
        store (StateStore): The ledger of the current invocation.
        house_id (str): Id of the house being transferred.
        new_owner_id (str): Id of the registered owner receiving the house.

    Raises:
        NotFound: If the house does not exist.
        ValidationFailed: If ``new_owner_id`` is not a registered owner.

    Returns:
        House: The house as stored after the transfer.
    """
    logger.info(f"TransferHouse: House Id = {house_id}, new Owner Id = {new_owner_id}")
    house = await get_house(store, house_id, logger)
    transferred = house.model_copy(update={"owner_id": new_owner_id})
    await update_house(store, transferred, logger)
    return transferred
