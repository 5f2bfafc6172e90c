"""
Auto-provisioning of directory users from verified identity claims.

The first requests of a brand new user often arrive in parallel. Within a
process they are funnelled through ``InflightRegistry`` so only one of them
performs the creation and the others wait for its result. Across processes
the unique constraint in ``services.create_user`` still guarantees a single
row.
"""
import logging
import threading
from concurrent.futures import Future
from typing import Callable, Dict

from apps.users import services

logger = logging.getLogger(__name__)


class InflightRegistry:
    """Deduplicates concurrent calls that share a key"""

    def __init__(self):
        self._lock = threading.Lock()
        self._inflight: Dict[str, Future] = {}

    def run(self, key: str, func: Callable, *args, **kwargs):
        with self._lock:
            future = self._inflight.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._inflight[key] = future

        if not leader:
            logger.debug(f"Joining in-flight provisioning for {key}")
            return future.result()

        try:
            result = func(*args, **kwargs)
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._lock:
                self._inflight.pop(key, None)

    def is_pending(self, key: str) -> bool:
        with self._lock:
            return key in self._inflight


_registry = InflightRegistry()


def provision_user(subject: str, email: str = None, name: str = None):
    """Resolve the directory user for verified claims, creating it on first sight"""
    return _registry.run(subject, services.sync_user, subject, email, name)
