import logging
from typing import Callable, List

from app.core.exceptions import AlreadyExists, NotFound, ValidationFailed
from app.ledger.keys import create_composite_key
from app.ledger.store import StateStore
from app.schemas.registry_schema import House, decode_house, encode_entity
from app.services.owner_service import check_owner

PREFIX_HOUSE = "House"
ADMIN_MARKER = "admin"

module_logger = logging.getLogger(__name__)


def house_key(house_id: str) -> str:
    return create_composite_key(PREFIX_HOUSE, [house_id])


async def add_house(store: StateStore, house: House, logger: logging.Logger = module_logger) -> None:
    """
    Registers a new house.

    Both the duplicate check and the owner validation run before the single
    write, so a failed call leaves the ledger untouched.

    Raises:
        AlreadyExists: If a house with the same Id is already registered.
        ValidationFailed: If ``house.owner_id`` is not a registered owner.
    """
    logger.info(f"AddHouse: Id = {house.id}")
    if await check_house(store, house.id, logger):
        mes = f"House with Id = {house.id} already exists"
        logger.warning(mes)
        raise AlreadyExists(mes)

    if not await validate_house(store, house, logger):
        mes = "Validation of the House failed"
        logger.warning(mes)
        raise ValidationFailed(mes)

    await store.put_state(house_key(house.id), encode_entity(house))


async def check_house(store: StateStore, house_id: str, logger: logging.Logger = module_logger) -> bool:
    logger.info(f"CheckHouse: Id = {house_id}")
    return await store.get_state(house_key(house_id)) is not None


async def validate_house(store: StateStore, house: House, logger: logging.Logger = module_logger) -> bool:
    """A house is valid only while its owner is registered."""
    logger.info(f"ValidateHouse: Id = {house.id}")
    return await check_owner(store, house.owner_id, logger)


async def get_house(store: StateStore, house_id: str, logger: logging.Logger = module_logger) -> House:
    raw = await store.get_state(house_key(house_id))
    if raw is None:
        mes = f"House with Id = {house_id} was not found"
        logger.warning(mes)
        raise NotFound(mes)

    house = decode_house(raw)
    logger.info(f"House Id = {house.id}, OwnerId = {house.owner_id}")
    return house


async def update_house(store: StateStore, house: House, logger: logging.Logger = module_logger) -> None:
    """
    Replaces a stored house with ``house`` (full replace, not a merge).

    Raises:
        NotFound: If no house with ``house.id`` is registered.
        ValidationFailed: If ``house.owner_id`` is not a registered owner.
    """
    logger.info(f"UpdateHouse: house = {house!r}")
    if not await check_house(store, house.id, logger):
        mes = f"House with Id = {house.id} does not exist"
        logger.warning(mes)
        raise NotFound(mes)

    if not await validate_house(store, house, logger):
        mes = "Validation of the House failed"
        logger.warning(mes)
        raise ValidationFailed(mes)

    await store.put_state(house_key(house.id), encode_entity(house))


async def _scan_houses(store: StateStore, keep: Callable[[House], bool]) -> List[House]:
    houses = []
    async with store.scan_prefix(PREFIX_HOUSE) as entries:
        async for _, value in entries:
            house = decode_house(value)
            if keep(house):
                houses.append(house)
    return houses


async def list_houses(store: StateStore, logger: logging.Logger = module_logger) -> List[House]:
    logger.info("ListHouses")
    houses = await _scan_houses(store, lambda house: True)
    logger.info(f"{len(houses)} House found")
    return houses


async def list_houses_by_owner(store: StateStore, owner_id: str, logger: logging.Logger = module_logger) -> List[House]:
    """
    Houses owned by ``owner_id``.

    Any ``owner_id`` containing "admin" anywhere (e.g. "admin-x", "sysadmin")
    gets every house back, unfiltered. This is a substring match, not a role
    check, and is kept exactly as the ledger clients rely on it.
    """
    logger.info(f"ListOwnerIdHouses: OwnerId = {owner_id}")
    if ADMIN_MARKER in owner_id:
        logger.warning(f"OwnerId = {owner_id} contains '{ADMIN_MARKER}', returning all houses unfiltered")
        houses = await _scan_houses(store, lambda house: True)
    else:
        houses = await _scan_houses(store, lambda house: house.owner_id == owner_id)
    logger.info(f"{len(houses)} House found")
    return houses
