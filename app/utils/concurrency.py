"""
Concurrency utilities.

Provides a `synchronized` decorator that acquires an instance `_lock` if present,
and `RequestTracker`, which lets a long-running request find out whether a newer
request on the same scope replaced it while it was waiting on the backend.
"""

from __future__ import annotations

import itertools
import threading
from functools import wraps
from typing import Callable


def synchronized(func: Callable) -> Callable:
    """Decorator that acquires `self._lock` if present on the instance.

    If no `_lock` attribute exists on `self`, the function is executed without
    locking. Use an ``RLock`` when synchronized methods call each other.
    """

    @wraps(func)
    def _wrapped(*args, **kwargs):
        self = args[0] if args else None
        lock = getattr(self, "_lock", None)
        if lock is None:
            return func(*args, **kwargs)
        with lock:
            return func(*args, **kwargs)

    return _wrapped


class RequestTracker:
    """Issues per-scope request tokens; only the latest token of a scope is current.

    Usage::

        token = tracker.begin("diagnosis")
        result = slow_call()
        if not tracker.finish(token):
            ...  # superseded, discard result
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counter = itertools.count(1)
        self._latest: dict[str, int] = {}

    def begin(self, scope: str) -> tuple[str, int]:
        with self._lock:
            token = next(self._counter)
            self._latest[scope] = token
            return scope, token

    def is_current(self, token: tuple[str, int]) -> bool:
        scope, value = token
        with self._lock:
            return self._latest.get(scope) == value

    def finish(self, token: tuple[str, int]) -> bool:
        """Release ``token``; return True if it was still the latest for its scope."""
        scope, value = token
        with self._lock:
            current = self._latest.get(scope) == value
            if current:
                del self._latest[scope]
            return current
