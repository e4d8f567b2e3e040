import redis.asyncio as redis
from functools import lru_cache
import os
from dotenv import load_dotenv

load_dotenv()

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

@lru_cache()
def get_redis_client():
    # the ownership cache only stores JSON text
    return redis.from_url(REDIS_URL, decode_responses=True)

async def get_redis():
    return get_redis_client()

async def close_redis_client():
    if get_redis_client.cache_info().currsize:
        await get_redis_client().aclose()
        get_redis_client.cache_clear()
