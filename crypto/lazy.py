"""
One-time initialisation cell shared by the suppliers.
"""

import threading
from typing import Callable, Generic, TypeVar

T = TypeVar("T")

_UNSET = object()


class LazyValue(Generic[T]):
    """
    Holds a value built by ``factory`` on first access.

    Concurrent first callers block on the lock and the factory runs once.
    A factory that raises leaves the cell empty so a later call can retry.
    """

    def __init__(self, factory: Callable[[], T]):
        self._factory = factory
        self._lock = threading.Lock()
        self._value = _UNSET

    @property
    def is_set(self) -> bool:
        return self._value is not _UNSET

    def get(self) -> T:
        value = self._value
        if value is _UNSET:
            with self._lock:
                value = self._value
                if value is _UNSET:
                    value = self._factory()
                    self._value = value
        return value
