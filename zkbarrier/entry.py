"""Joining the barrier and waiting for the quorum."""
import logging
import time
import typing

from kazoo.exceptions import NodeExistsError

from .channel import NotificationChannel
from .errors import BarrierTimeout
from .layout import MARKER
from .tools import join, participants

logger = logging.getLogger(__name__)


class EntryProtocol:
    """Single use entry of one participant to the barrier scope.

    The participant registers itself with ephemeral sequential node and waits until there is quorum of participants
    in the scope. Whoever observes the quorum creates the ready marker, presence of which releases all other
    participants.
    """

    def __init__(
        self,
        client,
        channel: NotificationChannel,
        scope: str,
        quorum: int,
        timeout: typing.Optional[float] = None,
    ):
        """Prepare entry for the given scope.

        client: The coordination client (kazoo.client.KazooClient)
        channel: The notification channel watches are delivered to
        scope: The path participant entries are created in
        quorum: The number of participants required to pass the barrier
        timeout: The maximum number of seconds to wait for the quorum
        """
        assert quorum > 0, "Quorum has to be positive."
        self.client = client
        self.channel = channel
        self.scope = scope
        self.quorum = quorum
        self.timeout = timeout
        self.marker = join(scope, MARKER)
        self.node: typing.Optional[str] = None  # The realized path of our entry

    def enter(self, prefix: str) -> str:
        """Join the barrier and block until the quorum is reached.

        prefix: The name prefix for our entry. The service appends the sequence number to it.

        Returns the name of our entry. Errors of the coordination client are propagated and node attribute can be
        used to find out if our entry was already created.
        """
        deadline = None if self.timeout is None else time.monotonic() + self.timeout
        # Arm the watch first so we are woken up even if someone else completes the quorum.
        self.client.exists(self.marker, watch=self.channel.notify)
        self.node = self.client.create(join(self.scope, prefix), ephemeral=True, sequence=True, makepath=True)
        logger.debug("Barrier entry created '%s'", self.node)
        while True:
            mark = self.channel.mark()
            if self._satisfied():
                break
            if not self.channel.wait_until(mark, deadline):
                raise BarrierTimeout("enter", self.node, self.scope, self.quorum)
        return self.node.rsplit("/", 1)[1]

    def _satisfied(self) -> bool:
        if self.client.exists(self.marker, watch=self.channel.notify):
            logger.debug("Ready marker present '%s'", self.marker)
            return True
        entries = participants(self.client.get_children(self.scope, watch=self.channel.notify), MARKER)
        if len(entries) < self.quorum:
            logger.debug("Waiting for quorum in '%s' (%d of %d).", self.scope, len(entries), self.quorum)
            return False
        try:
            self.client.create(self.marker)
        except NodeExistsError:
            logger.debug("Ready marker was created by someone else '%s'", self.marker)
        else:
            logger.debug("Ready marker created '%s'", self.marker)
        return True


def enter_single_read(
    client,
    channel: NotificationChannel,
    scope: str,
    prefix: str,
    quorum: int,
    timeout: typing.Optional[float] = None,
) -> typing.Optional[str]:
    """Join the barrier by reading the entries only once right after our registration.

    Warning: this is deadlock prone and must not be used. If some peer reaches the quorum, leaves and removes its entry
    before we read the entries then we never observe the quorum and block forever. It is kept only to reproduce that
    behavior. Use EntryProtocol instead.

    Returns the name of our entry or None if timeout elapsed.
    """
    node = client.create(join(scope, prefix), ephemeral=True, sequence=True, makepath=True)
    count = len(participants(client.get_children(scope, watch=channel.notify), MARKER))
    deadline = None if timeout is None else time.monotonic() + timeout
    while count < quorum:
        if not channel.wait_until(channel.mark(), deadline):
            logger.debug("Single read entry to '%s' never observed the quorum.", scope)
            return None
    return node.rsplit("/", 1)[1]
