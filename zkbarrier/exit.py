"""Leaving the barrier."""
import logging
import time
import typing

from kazoo.exceptions import NoNodeError

from .channel import NotificationChannel
from .errors import BarrierTimeout
from .layout import MARKER
from .tools import delete_benign, join, participants

logger = logging.getLogger(__name__)


class ExitProtocol:
    """Single use departure of one participant from the barrier scope.

    The drain waits until all participants leave. To limit the number of watches only the participant with the lowest
    entry watches the highest one and everyone else removes its own entry and watches the lowest one. The lowest
    participant is thus always the last one and it removes the ready marker and the rest of the namespace.
    """

    def __init__(
        self,
        client,
        channel: NotificationChannel,
        scope: str,
        name: str,
        quorum: int,
        cascade: typing.Sequence[str] = (),
        timeout: typing.Optional[float] = None,
    ):
        """Prepare departure of the entry name from scope.

        cascade: The paths to be removed by the last leaver after its own entry, in this order
        """
        self.client = client
        self.channel = channel
        self.scope = scope
        self.name = name
        self.quorum = quorum
        self.cascade = tuple(cascade)
        self.timeout = timeout
        self.node = join(scope, name)
        self.marker = join(scope, MARKER)

    def _entries(self) -> typing.Optional[typing.List[str]]:
        try:
            return participants(self.client.get_children(self.scope), MARKER)
        except NoNodeError:
            return None  # The scope was already removed by the last leaver

    def _cleanup(self) -> None:
        # The marker goes first so no one observes drained scope with marker still present.
        delete_benign(self.client, self.marker)
        delete_benign(self.client, self.node)
        self._cascade()

    def _cascade(self) -> None:
        for path in self.cascade:
            delete_benign(self.client, path)

    def drain(self) -> None:
        """Leave the barrier and block until all other participants left it as well."""
        deadline = None if self.timeout is None else time.monotonic() + self.timeout
        logger.debug("Waiting for all participants to leave '%s'.", self.scope)
        while True:
            mark = self.channel.mark()
            entries = self._entries()
            if not entries:
                # The last participant might have been reclaimed before it cleaned up so we do it instead.
                logger.debug("Barrier '%s' is drained.", self.scope)
                delete_benign(self.client, self.marker)
                self._cascade()
                return
            if entries == [self.name]:
                logger.debug("Last participant in '%s', cleaning up.", self.scope)
                self._cleanup()
                return
            if entries[0] == self.name:
                watched = entries[-1]
            else:
                if self.name in entries:
                    delete_benign(self.client, self.node)
                watched = entries[0]
            if self.client.exists(join(self.scope, watched), watch=self.channel.notify) is None:
                continue  # Gone before the watch was armed, there is going to be no notification
            logger.debug("Waiting on '%s' in '%s'.", watched, self.scope)
            if not self.channel.wait_until(mark, deadline):
                raise BarrierTimeout("leave", self.node, self.scope, self.quorum)

    def depart(self) -> None:
        """Leave the barrier without waiting for others.

        The participant that finds the scope empty after it removed its entry removes the ready marker.
        """
        delete_benign(self.client, self.node)
        if not self._entries():
            logger.debug("Last participant in '%s', removing the ready marker.", self.scope)
            delete_benign(self.client, self.marker)
            self._cascade()
