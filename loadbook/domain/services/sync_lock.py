"""
Verrou de reconciliation : au plus une passe (import ou retraitement) en vol par store.

Verrou Redis quand REDIS_URL est configure et repond, sinon threading.Lock local au process.
Non bloquant : une seconde passe echoue immediatement au lieu d'attendre.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

import redis

from loadbook.core.redis import check_redis_health, get_redis_client
from loadbook.domain.errors import ReconciliationInProgressError

logger = logging.getLogger(__name__)

LOCK_KEY_PREFIX = "loadbook:reconciliation"
DEFAULT_LOCK_TIMEOUT_S = 600

_local_locks: Dict[str, threading.Lock] = {}
_local_locks_guard = threading.Lock()


def _local_lock(key: str) -> threading.Lock:
    with _local_locks_guard:
        if key not in _local_locks:
            _local_locks[key] = threading.Lock()
        return _local_locks[key]


class ReconciliationLock:
    """Verrou exclusif d'un store, identifie par une cle (l'URL de la base en pratique)."""

    def __init__(
        self,
        store_key: str,
        redis_url: Optional[str] = None,
        timeout_s: int = DEFAULT_LOCK_TIMEOUT_S,
    ):
        self.key = f"{LOCK_KEY_PREFIX}:{store_key}"
        self.redis_url = redis_url or None
        self.timeout_s = timeout_s

    @property
    def uses_redis(self) -> bool:
        return bool(self.redis_url) and check_redis_health(self.redis_url)

    @contextmanager
    def hold(self) -> Iterator[None]:
        """Tient le verrou pour tout le bloc. Leve ReconciliationInProgressError s'il est pris."""
        if self.uses_redis:
            with self._hold_redis():
                yield
        else:
            with self._hold_local():
                yield

    @contextmanager
    def _hold_local(self) -> Iterator[None]:
        lock = _local_lock(self.key)
        if not lock.acquire(blocking=False):
            raise ReconciliationInProgressError("Une reconciliation est deja en cours")
        try:
            yield
        finally:
            lock.release()

    @contextmanager
    def _hold_redis(self) -> Iterator[None]:
        client = get_redis_client(self.redis_url)
        # Le timeout libere le verrou si le process meurt en cours de passe
        lock = client.lock(self.key, timeout=self.timeout_s, blocking=False)
        if not lock.acquire():
            raise ReconciliationInProgressError("Une reconciliation est deja en cours")
        logger.debug(f"Verrou Redis acquis: {self.key}")
        try:
            yield
        finally:
            try:
                lock.release()
            except redis.exceptions.LockError as exc:
                logger.warning(f"Verrou Redis expire avant liberation ({self.key}): {exc}")
