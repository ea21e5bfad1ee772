"""The barrier session implementation."""
import logging
import socket
import typing

from kazoo.exceptions import KazooException

from ._base import BarrierBase as _BarrierBase
from .channel import DEFAULT_CAPACITY
from .entry import EntryProtocol
from .errors import TransientCoordinationError
from .exit import ExitProtocol
from .layout import Variant, cleanup_cascade, scope_path
from .tools import delete_benign, join

logger = logging.getLogger(__name__)


class BarrierSession(_BarrierBase):
    """The primary barrier class used by one participant.

    The session owns identity of the participant, namespace layout given by variant and the notification channel.
    Every session has its own channel so multiple sessions can be used in the same process at once.

    PLAIN: participants rendezvous on enter but leave without waiting for each other. The scope must not be entered
      again until every participant left it.
    DOUBLE: participants rendezvous on enter and also drain together on leave.
    RESTRICTED: the double barrier scoped to the subgroup. The last leaver removes the subgroup and the root.
    NESTED: the restricted barrier with sequence of stages, see NestedStageController.
    """

    def __init__(
        self,
        client,
        root: str,
        quorum: int,
        variant: Variant = Variant.DOUBLE,
        subgroup: typing.Optional[str] = None,
        stages: typing.Optional[typing.Sequence[str]] = None,
        identity: typing.Optional[str] = None,
        timeout: typing.Optional[float] = None,
        capacity: int = DEFAULT_CAPACITY,
    ):
        """Set attributes and prepare for entering.

        Initialization does not touch the namespace. The root and scope nodes are created on enter.

        client: The started coordination client (kazoo.client.KazooClient)
        root: The path of the barrier root node
        quorum: The number of participants required to pass the barrier
        variant: The barrier variant
        subgroup: The subgroup name for restricted and nested barriers
        stages: The ordered stage names for nested barrier
        identity: The name prefix of our entries. Host name is used in default.
        timeout: The maximum number of seconds enter and leave are allowed to block. None means no limit.
        capacity: The number of watch events kept for diagnostics
        """
        if quorum < 1:
            raise ValueError("Quorum has to be positive: {}".format(quorum))
        if variant is Variant.NESTED and not stages:
            raise ValueError("The nested barrier requires at least one stage.")
        super().__init__(client, root, capacity)
        self.quorum = quorum
        self.variant = variant
        self.subgroup = subgroup
        self.stages = tuple(stages or ())
        self.identity = identity or socket.getfqdn()
        if "/" in self.identity:
            raise ValueError("Identity can't contain slash: {}".format(self.identity))
        self.timeout = timeout
        scope_path(variant, self.root, subgroup, self.stages[0] if self.stages else None)  # Verify the layout early
        self.name: typing.Optional[str] = None  # The name of our entry, we use it to detect that we entered
        self.scope: typing.Optional[str] = None
        self.stage: typing.Optional[str] = None
        self.error: typing.Optional[TransientCoordinationError] = None
        self._stage_index = -1

    @property
    def node(self) -> typing.Optional[str]:
        """The path of our entry."""
        if self.name is None:
            return None
        return join(self.scope, self.name)

    @property
    def is_entered(self) -> bool:
        """Check if this session is in the barrier."""
        return self.name is not None

    def _select_stage(self, stage: typing.Optional[str]) -> None:
        if self.variant is not Variant.NESTED:
            assert stage is None, "Stages are supported only by the nested barrier."
            return
        assert stage in self.stages, "Unknown stage: {}".format(stage)
        index = self.stages.index(stage)
        assert index > self._stage_index, "Stages have to be entered in order, '{}' is already passed.".format(stage)
        self._stage_index = index

    def _fail(self, operation: str, path: typing.Optional[str], exc: BaseException) -> bool:
        if isinstance(exc, TransientCoordinationError):
            self.error = exc
        else:
            self.error = TransientCoordinationError(operation, path, self.scope, self.quorum, exc)
        logger.error("Barrier %s: %s", operation, self.error)
        return False

    def enter(self, stage: typing.Optional[str] = None) -> bool:
        """Join the barrier and block until the quorum of participants joins as well.

        stage: The stage to enter. This has to be provided only for nested barrier.

        Returns True if barrier was entered or False otherwise. The reason of failure is stored in error attribute.
        """
        assert self.name is None, "Barrier is already entered."
        self._select_stage(stage)
        self.stage = stage
        self.scope = scope_path(self.variant, self.root, self.subgroup, stage)
        self.error = None
        protocol = EntryProtocol(self.client, self.channel, self.scope, self.quorum, self.timeout)
        try:
            self.name = protocol.enter(self.identity + "-")
        except (KazooException, TransientCoordinationError) as exc:
            if protocol.node is not None:
                self.name = protocol.node.rsplit("/", 1)[1]  # Keep it so leave or abandon can remove it
            return self._fail("enter", protocol.node, exc)
        logger.debug("Watch events while entering '%s': %s", self.scope, self.events())
        logger.info("Barrier entered '%s' (quorum %d)", self.node, self.quorum)
        return True

    def leave(self, stage: typing.Optional[str] = None) -> bool:
        """Leave the barrier. For all variants but plain this blocks until all other participants leave as well.

        stage: The stage to leave. It has to be the one that was entered.

        Returns True if barrier was left or False otherwise. It is safe to call leave again after failure.
        """
        assert self.name is not None, "Barrier is not entered."
        assert stage == self.stage, "Leaving stage '{}' but '{}' was entered.".format(stage, self.stage)
        cascade = cleanup_cascade(
            self.variant, self.root, self.subgroup, stage, is_final=stage is None or stage == self.stages[-1]
        )
        protocol = ExitProtocol(
            self.client, self.channel, self.scope, self.name, self.quorum, cascade, self.timeout
        )
        self.error = None
        try:
            if self.variant is Variant.PLAIN:
                protocol.depart()
            else:
                protocol.drain()
        except (KazooException, TransientCoordinationError) as exc:
            return self._fail("leave", protocol.node, exc)
        logger.debug("Watch events while leaving '%s': %s", self.scope, self.events())
        logger.info("Barrier left '%s'", self.node)
        self.name = None
        return True

    def abandon(self) -> None:
        """Remove our entry without waiting for anyone.

        Peers see this the same way as when this process terminates and the service removes our ephemeral entry.
        """
        assert self.name is not None, "Barrier is not entered."
        logger.info("Abandoning barrier '%s'", self.node)
        delete_benign(self.client, self.node)
        self.name = None

    def close(self) -> None:
        """Abandon the barrier if it is still entered and detach from the client."""
        if self.name is not None:
            self.abandon()
        super().close()

    def __enter__(self):
        """Enter the barrier. This is a blocking call.

        This is supported only for variants without stages. TransientCoordinationError is raised if enter fails.
        """
        if not self.enter():
            if self.name is not None:
                self.abandon()
            raise self.error
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        """Leave the barrier or abandon it if leaving fails."""
        if not self.leave():
            self.abandon()
