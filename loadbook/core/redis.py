"""
Client Redis pour loadbook.
Fournit une connexion partagee et un health check.
"""
import logging
from functools import lru_cache
from typing import Optional

import redis

from loadbook.core.settings import get_settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_redis_client(url: Optional[str] = None) -> redis.Redis:
    """Retourne un client Redis connecte (singleton par URL via lru_cache)."""
    return redis.Redis.from_url(
        url or get_settings().REDIS_URL,
        decode_responses=True,
    )


def check_redis_health(url: Optional[str] = None) -> bool:
    """Verifie que Redis repond a un PING. Retourne True si OK, False sinon."""
    if not (url or get_settings().REDIS_URL):
        return False
    try:
        client = get_redis_client(url)
        return bool(client.ping())
    except redis.RedisError as exc:
        logger.warning(f"Redis health check echoue: {exc}")
        return False
