import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from redis.asyncio import Redis
from app.db.database import get_db
from app.core.redis_client import get_redis
from app.core.exceptions import RegistryError
from app.contract.dispatcher import Response, invoke
from app.ledger.sql_store import SQLStateStore
from app.schemas.registry_schema import (
    House,
    InvokeRequest,
    InvokeResponse,
    Owner,
    TransferRequest,
    decode_house,
    decode_string,
)
from app.services.owner_service import add_owner, list_owners
from app.services.house_service import add_house, get_house, list_houses, list_houses_by_owner, update_house
from app.services.transfer_service import transfer_house
from app.services.ownership_cache import cache_house_ownership

logger = logging.getLogger(__name__)

router = APIRouter()

# invocations whose committed result is published to the ownership cache
CACHED_FUNCTIONS = {"UpdateHouse", "TransferHouse"}


def _http_error(e: RegistryError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


def _internal_error(e: Exception) -> HTTPException:
    logger.error(f"unexpected registry failure: {e}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


def _cached_house_id(payload: InvokeRequest) -> str:
    if payload.function == "UpdateHouse":
        return decode_house(payload.args[0]).id
    return decode_string(payload.args[0])


def _dump(entity) -> dict:
    return entity.model_dump(by_alias=True, mode="json")


@router.post("/invoke", response_model=InvokeResponse)
async def invoke_function(
    payload: InvokeRequest,
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    """
    Executes one registry invocation inside a single ledger transaction.

    The body names the function and carries its JSON-encoded string arguments,
    e.g. ``{"function": "TransferHouse", "args": ["\\"1\\"", "\\"Bob\\""]}``.
    Failures, registry or otherwise, roll the transaction back and come back
    as a failure response (status 500) with the error message; they are not
    HTTP errors.

    Returns:
        InvokeResponse: status, message and the UTF-8 payload of the call.
    """
    cached_house = None
    try:
        async with db.begin() as transaction:
            store = SQLStateStore(db)
            response = await invoke(store, payload.function, payload.args, logger)
            if not response.ok:
                await transaction.rollback()
            elif payload.function in CACHED_FUNCTIONS:
                cached_house = await get_house(store, _cached_house_id(payload), logger)
    except Exception as e:
        logger.error(f"{payload.function} failed: {e}")
        response = Response.error(str(e))
        cached_house = None

    if cached_house is not None:
        await cache_house_ownership(redis, cached_house)

    return InvokeResponse(
        status=response.status,
        message=response.message,
        payload=response.payload.decode("utf-8"),
    )


@router.post("/owners", status_code=status.HTTP_201_CREATED)
async def create_owner(payload: Owner, db: AsyncSession = Depends(get_db)):
    try:
        async with db.begin():
            await add_owner(SQLStateStore(db), payload, logger)
        return {"status": "success", "owner": _dump(payload)}
    except RegistryError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error(e)


@router.get("/owners")
async def get_owners(db: AsyncSession = Depends(get_db)):
    try:
        async with db.begin():
            owners = await list_owners(SQLStateStore(db), logger)
        return {"status": "success", "owners": [_dump(o) for o in owners]}
    except RegistryError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error(e)


@router.get("/owners/{owner_id}/houses")
async def get_owner_houses(owner_id: str, db: AsyncSession = Depends(get_db)):
    """
    Lists the houses of one owner.

    An ``owner_id`` containing "admin" anywhere lists every house.
    """
    try:
        async with db.begin():
            houses = await list_houses_by_owner(SQLStateStore(db), owner_id, logger)
        return {"status": "success", "houses": [_dump(h) for h in houses]}
    except RegistryError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error(e)


@router.post("/houses", status_code=status.HTTP_201_CREATED)
async def create_house(payload: House, db: AsyncSession = Depends(get_db)):
    try:
        async with db.begin():
            await add_house(SQLStateStore(db), payload, logger)
        return {"status": "success", "house": _dump(payload)}
    except RegistryError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error(e)


@router.get("/houses")
async def get_houses(db: AsyncSession = Depends(get_db)):
    try:
        async with db.begin():
            houses = await list_houses(SQLStateStore(db), logger)
        return {"status": "success", "houses": [_dump(h) for h in houses]}
    except RegistryError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error(e)


@router.get("/houses/{house_id}")
async def read_house(house_id: str, db: AsyncSession = Depends(get_db)):
    try:
        async with db.begin():
            house = await get_house(SQLStateStore(db), house_id, logger)
        return {"status": "success", "house": _dump(house)}
    except RegistryError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error(e)


@router.put("/houses/{house_id}")
async def replace_house(
    house_id: str,
    payload: House,
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    """
    Replaces a registered house with the request body.

    Raises:
        HTTPException:
            - 400 BAD REQUEST: If the path and body Ids differ, or the new
              owner is not registered.
            - 404 NOT FOUND: If the house does not exist.
    """
    if payload.id != house_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail=f"House Id in body ({payload.id}) does not match path ({house_id})")
    try:
        async with db.begin():
            await update_house(SQLStateStore(db), payload, logger)
    except RegistryError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error(e)

    await cache_house_ownership(redis, payload)
    return {"status": "success", "house": _dump(payload)}


@router.post("/houses/{house_id}/transfer")
async def transfer_house_ownership(
    house_id: str,
    payload: TransferRequest,
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    """
    Transfers a house to another registered owner.

    The house is re-validated against the new owner before the single write,
    so a failed transfer leaves the stored house unchanged. On success the new
    ownership is published to the Redis ownership cache.

    Raises:
        HTTPException:
            - 400 BAD REQUEST: If the new owner is not registered.
            - 404 NOT FOUND: If the house does not exist.
    """
    try:
        async with db.begin():
            house = await transfer_house(SQLStateStore(db), house_id, payload.new_owner_id, logger)
    except RegistryError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error(e)

    await cache_house_ownership(redis, house)
    return {"status": "success", "house": _dump(house)}
