from typing import Generic, TypeVar, Optional
import threading


T = TypeVar("T")


class LatestValueChannel(Generic[T]):
    """Thread-safe hand-off of the newest value from one producer to one consumer.

    Stale values are overwritten; a consumer only ever sees the latest one.
    """

    def __init__(self) -> None:
        self._condition = threading.Condition()
        self._value: Optional[T] = None
        self._pending = False
        self._closed = False
        self._published = 0

    @property
    def published(self) -> int:
        """Number of values published so far, including overwritten ones."""
        with self._condition:
            return self._published

    def publish(self, item: T) -> None:
        with self._condition:
            if self._closed:
                return
            self._value = item
            self._pending = True
            self._published += 1
            self._condition.notify()

    def close(self) -> None:
        """No more values will be published. Wakes any waiting consumer."""
        with self._condition:
            self._closed = True
            self._condition.notify_all()

    def next(self, timeout: Optional[float] = None) -> Optional[T]:
        """Block for a value newer than the last one taken. Returns None once closed and drained."""
        with self._condition:
            ready = self._condition.wait_for(lambda: self._pending or self._closed, timeout)
            if not ready:
                raise TimeoutError("channel next() timed out")
            if not self._pending:
                return None
            self._pending = False
            return self._value
