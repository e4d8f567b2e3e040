import logging
from typing import List

from app.core.exceptions import AlreadyExists
from app.ledger.keys import create_composite_key
from app.ledger.store import StateStore
from app.schemas.registry_schema import Owner, decode_owner, encode_entity

PREFIX_OWNER = "Owner"

module_logger = logging.getLogger(__name__)


def owner_key(owner_id: str) -> str:
    return create_composite_key(PREFIX_OWNER, [owner_id])


async def add_owner(store: StateStore, owner: Owner, logger: logging.Logger = module_logger) -> None:
    """
    Registers a new owner.

    Raises:
        AlreadyExists: If an owner with the same Id is already registered.
            Owners are never overwritten.
    """
    logger.info(f"AddOwner: Id = {owner.id}")
    if await check_owner(store, owner.id, logger):
        mes = f"an Owner with Id = {owner.id} already exists"
        logger.warning(mes)
        raise AlreadyExists(mes)
    await store.put_state(owner_key(owner.id), encode_entity(owner))


async def check_owner(store: StateStore, owner_id: str, logger: logging.Logger = module_logger) -> bool:
    logger.info(f"CheckOwner: Id = {owner_id}")
    return await store.get_state(owner_key(owner_id)) is not None


async def list_owners(store: StateStore, logger: logging.Logger = module_logger) -> List[Owner]:
    """All registered owners, in key order."""
    logger.info("ListOwners")
    owners = []
    async with store.scan_prefix(PREFIX_OWNER) as entries:
        async for _, value in entries:
            owner = decode_owner(value)
            logger.debug(f"Owner Id = {owner.id}")
            owners.append(owner)
    logger.info(f"{len(owners)} Owner found")
    return owners
