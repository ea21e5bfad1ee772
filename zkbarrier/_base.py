"""Common base for both BarrierSession and Gate."""
import contextlib
import logging
import typing

from kazoo.protocol.states import KazooState

from .channel import DEFAULT_CAPACITY, NotificationChannel

logger = logging.getLogger(__name__)


class BarrierBase(contextlib.AbstractContextManager):
    """The common base for barriers implementing the connection to the coordination client and notification channel."""

    def __init__(self, client, root: str, capacity: int = DEFAULT_CAPACITY):
        """Shared initializer for barrier classes.

        client: The started coordination client (kazoo.client.KazooClient)
        root: The path of the barrier root node
        capacity: The number of watch events kept for diagnostics
        """
        self.client = client
        self.root = root if root.startswith("/") else "/" + root
        self.channel = NotificationChannel(capacity)
        self.client.add_listener(self._state_listener)

    def _state_listener(self, state) -> None:
        # Note: kazoo removes the listener if it returns True
        if state != KazooState.CONNECTED:
            logger.warning("Connection to the coordination service is %s, waking up barrier '%s'.", state, self.root)
        self.channel.notify()

    def close(self) -> None:
        """Detach from the coordination client. The client itself is not stopped."""
        self.client.remove_listener(self._state_listener)

    def events(self) -> typing.List[typing.Any]:
        """Get watch events received since the last call."""
        return self.channel.drain()
