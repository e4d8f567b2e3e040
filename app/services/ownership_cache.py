import logging
import os
from dotenv import load_dotenv
from redis.asyncio import Redis

from app.schemas.registry_schema import House

load_dotenv()

logger = logging.getLogger(__name__)

CACHE_TTL = int(os.getenv("OWNERSHIP_CACHE_TTL", "3600"))


def cache_key(house_id: str) -> str:
    return f"ownership:house:{house_id}"


async def cache_house_ownership(redis: Redis, house: House) -> bool:
    """
    Publishes the committed state of ``house`` to the ownership cache.

    The ledger is the source of truth: a cache failure is logged and reported
    through the return value, never raised.
    """
    try:
        await redis.set(cache_key(house.id), house.model_dump_json(by_alias=True), ex=CACHE_TTL)
        logger.info(f"Ownership data for house {house.id} cached successfully.")
        return True
    except Exception as e:
        logger.error(f"Failed to cache ownership data for house {house.id}: {e}")
        return False
