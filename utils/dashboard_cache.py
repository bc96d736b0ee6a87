# utils/dashboard_cache.py
import logging
from typing import Any, Dict, Optional

from fastapi_cache import FastAPICache
from fastapi_cache.coder import JsonCoder

from config import DASHBOARD_CACHE_TTL

logger = logging.getLogger(__name__)

NAMESPACE = "dashboard"


def stats_cache_key(
    filter: str,
    before_date: Optional[str],
    after_date: Optional[str],
    actor_id: Optional[int],
    role: str,
) -> str:
    return (
        f"{FastAPICache.get_prefix()}:{NAMESPACE}:stats:"
        f"{filter}:{before_date or ''}:{after_date or ''}:{actor_id}:{role}"
    )


async def get_cached(key: str) -> Optional[Dict[str, Any]]:
    raw = await FastAPICache.get_backend().get(key)
    if raw is None:
        return None
    logger.debug(f"Dashboard cache hit: {key}")
    return JsonCoder.decode(raw)


async def set_cached(key: str, payload: Dict[str, Any], expire: int = DASHBOARD_CACHE_TTL) -> None:
    await FastAPICache.get_backend().set(key, JsonCoder.encode(payload), expire=expire)


async def clear_dashboard_cache() -> int:
    cleared = await FastAPICache.clear(namespace=NAMESPACE)
    logger.info(f"Cleared {cleared} cached dashboard entries")
    return cleared
