"""The implementation of the gate barrier."""
import logging
import time
import typing

from kazoo.exceptions import NodeExistsError

from ._base import BarrierBase as _BarrierBase
from .tools import delete_benign

logger = logging.getLogger(__name__)


class Gate(_BarrierBase):
    """Barrier that is closed until its node exists.

    Participants wait for the starter which creates the node once some condition is met and so lets everyone else do
    their work. Waiters can be started before the starter. The starter removes the node when it is done which closes
    the gate for anyone coming later.
    """

    def create(self) -> bool:
        """Open the gate.

        Returns True if node was created by us and False if gate was already open.
        """
        try:
            self.client.create(self.root, makepath=True)
        except NodeExistsError:
            return False
        logger.debug("Gate opened '%s'", self.root)
        return True

    def remove(self) -> bool:
        """Close the gate.

        Returns True if gate was closed by us or False if it was not open.
        """
        return delete_benign(self.client, self.root)

    def wait(self, timeout: typing.Optional[float] = None) -> bool:
        """Block until the gate is opened.

        Returns True if gate is open or False if timeout elapsed.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            mark = self.channel.mark()
            if self.client.exists(self.root, watch=self.channel.notify) is not None:
                return True
            logger.debug("Waiting for gate '%s' to open.", self.root)
            if not self.channel.wait_until(mark, deadline):
                return False

    def __enter__(self):
        """Wait for the gate to be opened. This is blocking call."""
        self.wait()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
