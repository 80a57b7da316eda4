# backend/app/core/booking_lock.py
"""
Per-mechanic scheduling lock backed by Redis.

``mechanic_schedule_lock`` serializes the conflict read and the booking
write for one mechanic across processes using ``SET NX EX``. When Redis is
disabled or unreachable the lock degrades open; the mechanic row lock and
the storage overlap constraint still apply.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
import threading
import time
from typing import Iterator, Optional

from redis import Redis

from app.core.config import settings
from app.monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_LOCK = threading.Lock()


def _lock_key(mechanic_id: str) -> str:
    return f"mechanic:{mechanic_id}:schedule"


def _namespaced_key(key: str) -> str:
    return f"{settings.lock_namespace}:lock:{key}"


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS
    if _SYNC_REDIS is not None:
        return _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None:
            return _SYNC_REDIS
        try:
            client = Redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=1,
                socket_timeout=1,
            )
            client.ping()
        except Exception as exc:
            logger.warning("schedule_lock_redis_unavailable: %s", exc)
            return None
        _SYNC_REDIS = client
        return _SYNC_REDIS


def acquire_schedule_lock(mechanic_id: str, ttl_s: Optional[int] = None) -> bool:
    """
    Try to take the per-mechanic scheduling mutex.

    Returns False only when another request holds the lock. Redis outages
    degrade open (True) and rely on the row lock taken inside the transaction.
    """
    ttl = ttl_s if ttl_s is not None else settings.schedule_lock_ttl_s
    client = _get_sync_redis()
    if client is None:
        prometheus_metrics.record_schedule_lock("acquire", "redis_unavailable")
        logger.warning(
            "schedule_lock_redis_unavailable",
            extra={"mechanic_id": mechanic_id},
        )
        return True
    try:
        acquired = bool(
            client.set(_namespaced_key(_lock_key(mechanic_id)), str(time.time()), nx=True, ex=ttl)
        )
        if acquired:
            prometheus_metrics.record_schedule_lock("acquire", "success")
        else:
            prometheus_metrics.record_schedule_lock("acquire", "blocked")
        return acquired
    except Exception as exc:
        prometheus_metrics.record_schedule_lock("acquire", "error")
        logger.warning(
            "schedule_lock_acquire_failed",
            extra={
                "mechanic_id": mechanic_id,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )
        return True


def release_schedule_lock(mechanic_id: str) -> None:
    client = _get_sync_redis()
    if client is None:
        prometheus_metrics.record_schedule_lock("release", "redis_unavailable")
        return
    try:
        deleted = client.delete(_namespaced_key(_lock_key(mechanic_id)))
        if deleted:
            prometheus_metrics.record_schedule_lock("release", "success")
        else:
            prometheus_metrics.record_schedule_lock("release", "not_found")
    except Exception as exc:
        prometheus_metrics.record_schedule_lock("release", "error")
        logger.warning(
            "schedule_lock_release_failed",
            extra={
                "mechanic_id": mechanic_id,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )


@contextmanager
def mechanic_schedule_lock(mechanic_id: str, ttl_s: Optional[int] = None) -> Iterator[bool]:
    """Hold the mechanic's scheduling mutex for the duration of the block."""
    if not settings.scheduling_lock_enabled:
        yield True
        return
    acquired = acquire_schedule_lock(mechanic_id, ttl_s=ttl_s)
    try:
        yield acquired
    finally:
        if acquired:
            release_schedule_lock(mechanic_id)
