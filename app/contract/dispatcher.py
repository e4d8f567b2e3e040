"""
Invocation dispatcher for the house registry.

An invocation is a function name plus a list of JSON-encoded string arguments,
e.g. ``("TransferHouse", ['"1"', '"Bob"'])``. ``dispatch`` runs exactly one
registry operation and returns its encoded payload or raises a
``RegistryError``; ``invoke`` wraps that into a ``Response``.
"""
import logging
from typing import Awaitable, Callable, Dict, List, Sequence, Tuple

from app.core.exceptions import ArgumentCountError, RegistryError, UnknownFunction
from app.ledger.store import StateStore
from app.schemas.registry_schema import (
    decode_house,
    decode_owner,
    decode_string,
    encode_entity,
    encode_houses,
    encode_owners,
)
from app.services.house_service import add_house, get_house, list_houses, list_houses_by_owner, update_house
from app.services.owner_service import add_owner, list_owners
from app.services.transfer_service import transfer_house

OK = 200
ERROR = 500
ERROR_THRESHOLD = 400

module_logger = logging.getLogger(__name__)


class Response:
    def __init__(self, status: int, message: str = "", payload: bytes = b""):
        self.status = status
        self.message = message
        self.payload = payload

    @property
    def ok(self) -> bool:
        return self.status < ERROR_THRESHOLD

    @classmethod
    def success(cls, payload: bytes = b"") -> "Response":
        return cls(OK, payload=payload)

    @classmethod
    def error(cls, message: str) -> "Response":
        return cls(ERROR, message=message)

    def __repr__(self) -> str:
        return f"Response(status={self.status}, message={self.message!r}, payload={self.payload!r})"


Handler = Callable[[StateStore, List[str], logging.Logger], Awaitable[bytes]]


async def _add_owner(store, args, logger):
    await add_owner(store, decode_owner(args[0]), logger)
    return b""


async def _list_owners(store, args, logger):
    return encode_owners(await list_owners(store, logger))


async def _add_house(store, args, logger):
    await add_house(store, decode_house(args[0]), logger)
    return b""


async def _list_houses(store, args, logger):
    return encode_houses(await list_houses(store, logger))


async def _list_owner_id_houses(store, args, logger):
    return encode_houses(await list_houses_by_owner(store, decode_string(args[0]), logger))


async def _get_house(store, args, logger):
    return encode_entity(await get_house(store, decode_string(args[0]), logger))


async def _update_house(store, args, logger):
    await update_house(store, decode_house(args[0]), logger)
    return b""


async def _transfer_house(store, args, logger):
    house_id = decode_string(args[0])
    new_owner_id = decode_string(args[1])
    await transfer_house(store, house_id, new_owner_id, logger)
    return b""


# function name -> (required argument count, handler)
HANDLERS: Dict[str, Tuple[int, Handler]] = {
    "AddOwner": (1, _add_owner),
    "ListOwners": (0, _list_owners),
    "AddHouse": (1, _add_house),
    "ListHouses": (0, _list_houses),
    "ListOwnerIdHouses": (1, _list_owner_id_houses),
    "GetHouse": (1, _get_house),
    "UpdateHouse": (1, _update_house),
    "TransferHouse": (2, _transfer_house),
}


def check_len(expected: int, args: Sequence[str], logger: logging.Logger = module_logger) -> None:
    if len(args) < expected:
        err = ArgumentCountError(len(args), expected)
        logger.warning(err.message)
        raise err


def init(logger: logging.Logger = module_logger) -> Response:
    logger.info("house registry initialized")
    return Response.success()


async def dispatch(
    store: StateStore,
    function: str,
    args: Sequence[str],
    logger: logging.Logger = module_logger,
) -> bytes:
    """
    Runs one registry operation.

    Raises:
        UnknownFunction: If ``function`` is not a registry operation.
        ArgumentCountError: If fewer arguments than required were given,
            checked before anything is decoded.
        RegistryError: Whatever the operation itself raises.

    Returns:
        bytes: The encoded result; empty for operations with no result.
    """
    logger.info(f"function name = {function}")
    logger.info(f"args = {list(args)}")

    if function not in HANDLERS:
        err = UnknownFunction(function)
        logger.warning(err.message)
        raise err

    expected, handler = HANDLERS[function]
    check_len(expected, args, logger)
    return await handler(store, list(args), logger)


async def invoke(
    store: StateStore,
    function: str,
    args: Sequence[str],
    logger: logging.Logger = module_logger,
) -> Response:
    try:
        payload = await dispatch(store, function, args, logger)
    except RegistryError as e:
        logger.warning(f"{function} failed: {e.message}")
        return Response.error(e.message)
    return Response.success(payload)
