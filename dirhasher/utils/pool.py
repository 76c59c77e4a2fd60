"""Reusable object pools for hash state and I/O buffers."""

import threading
from contextlib import contextmanager
from typing import Callable, Generic, Iterator, TypeVar

T = TypeVar("T")


class ResourcePool(Generic[T]):
    """Thread-safe pool of reusable objects.

    Objects are created on demand by ``factory`` when the pool is empty,
    passed through ``reset`` on every checkout, and returned to the pool
    when the ``acquire()`` block exits, whether it exits normally or by an
    exception. A checked-out object belongs to a single caller until it is
    returned.
    """

    def __init__(
        self,
        factory: Callable[[], T],
        reset: Callable[[T], None] | None = None,
        max_idle: int | None = None,
    ) -> None:
        """Initialize pool.

        Args:
            factory: Creates a new object on a pool miss.
            reset: Restores an object to its initial condition before reuse.
            max_idle: Maximum number of idle objects kept; extras are dropped
                on release. None keeps everything.
        """
        self._factory = factory
        self._reset = reset
        self._max_idle = max_idle
        self._idle: list[T] = []
        self._lock = threading.Lock()
        self.created = 0

    @contextmanager
    def acquire(self) -> Iterator[T]:
        """Check out an object for the duration of a ``with`` block."""
        item = self._checkout()
        try:
            yield item
        finally:
            self._release(item)

    def shrink(self, keep: int = 0) -> int:
        """Discard idle objects beyond ``keep``.

        Returns:
            Number of objects discarded.
        """
        with self._lock:
            dropped = max(0, len(self._idle) - keep)
            del self._idle[keep:]
        return dropped

    @property
    def idle_count(self) -> int:
        """Objects currently waiting in the pool."""
        with self._lock:
            return len(self._idle)

    def _checkout(self) -> T:
        with self._lock:
            item = self._idle.pop() if self._idle else None
            if item is None:
                self.created += 1
        if item is None:
            item = self._factory()
        if self._reset is not None:
            self._reset(item)
        return item

    def _release(self, item: T) -> None:
        with self._lock:
            if self._max_idle is None or len(self._idle) < self._max_idle:
                self._idle.append(item)
