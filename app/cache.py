import json
from uuid import UUID

from loguru import logger
from redis.asyncio import Redis

from app.settings import REDIS_URL, SETTINGS_CACHE_TTL

_redis: Redis | None = None
SLOTS_TTL = 60  # 1 minute
SETTINGS_KEY = "settings:system"


def get_redis() -> Redis:
    global _redis
    if _redis is None:
        _redis = Redis.from_url(REDIS_URL, decode_responses=True)
    return _redis


# Every cache here is optional: a Redis failure is logged and treated as a miss.


async def _read(key: str) -> list | dict | None:
    try:
        data = await get_redis().get(key)
        return json.loads(data) if data else None
    except Exception:
        logger.warning("Redis get failed for {}, falling back to DB", key, exc_info=True)
        return None


async def _write(key: str, ttl: int, value: list | dict) -> None:
    try:
        await get_redis().setex(key, ttl, json.dumps(value))
    except Exception:
        logger.warning("Redis set failed for {}, skipping cache", key, exc_info=True)


async def _drop(key: str) -> None:
    try:
        await get_redis().delete(key)
    except Exception:
        logger.warning("Redis invalidate failed for {}", key, exc_info=True)


def _slots_key(room_id: UUID) -> str:
    return f"slots:{room_id}"


async def get_slots_cache(room_id: UUID) -> list | None:
    return await _read(_slots_key(room_id))


async def set_slots_cache(room_id: UUID, slots: list) -> None:
    await _write(_slots_key(room_id), SLOTS_TTL, slots)


async def invalidate_slots_cache(room_id: UUID) -> None:
    await _drop(_slots_key(room_id))


# A manager's delete capability may lag a settings change by up to SETTINGS_CACHE_TTL.


async def get_settings_cache() -> dict | None:
    return await _read(SETTINGS_KEY)


async def set_settings_cache(settings: dict) -> None:
    await _write(SETTINGS_KEY, SETTINGS_CACHE_TTL, settings)


async def invalidate_settings_cache() -> None:
    await _drop(SETTINGS_KEY)
