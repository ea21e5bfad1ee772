"""Bridge between asynchronously delivered watch events and the waiting protocol."""
import collections
import threading
import time
import typing

DEFAULT_CAPACITY = 64


class NotificationChannel:
    """Session local monitor that watch callbacks notify and protocol loops wait on.

    Every notification increments generation counter. Waiter takes a mark before it arms watches and reads the
    namespace and then waits only if nothing was notified since that mark. That way the event fired between the read
    and the wait is never lost.

    Events are stored in bounded queue purely for diagnostics. Overflow drops the oldest event but never the wakeup.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        self._cond = threading.Condition()
        self._events: typing.Deque[typing.Any] = collections.deque(maxlen=capacity)
        self._generation = 0

    def notify(self, event: typing.Any = None) -> None:
        """Wake up all waiters. This is called from the coordination client's event thread."""
        with self._cond:
            self._generation += 1
            if event is not None:
                self._events.append(event)
            self._cond.notify_all()

    def mark(self) -> int:
        """Get the current generation to be passed later to wait."""
        with self._cond:
            return self._generation

    def wait(self, mark: int, timeout: typing.Optional[float] = None) -> bool:
        """Block until there is notification newer than mark.

        Returns False if timeout elapsed without any notification. The wakeup is not scoped to any specific waiter so
        caller has to always re-check its predicate.
        """
        with self._cond:
            return self._cond.wait_for(lambda: self._generation != mark, timeout)

    def wait_until(self, mark: int, deadline: typing.Optional[float]) -> bool:
        """Variant of wait with deadline on time.monotonic clock instead of timeout. None means no deadline."""
        if deadline is None:
            return self.wait(mark)
        remaining = deadline - time.monotonic()
        return remaining > 0 and self.wait(mark, remaining)

    def drain(self) -> typing.List[typing.Any]:
        """Pop all stored events."""
        with self._cond:
            events = list(self._events)
            self._events.clear()
            return events

    @property
    def generation(self) -> int:
        """Number of notifications received so far."""
        return self.mark()
