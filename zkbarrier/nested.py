"""Sequence of independently gated stages within one subgroup."""
import logging
import typing

from .channel import DEFAULT_CAPACITY
from .layout import Variant
from .session import BarrierSession

logger = logging.getLogger(__name__)


class NestedStageController:
    """Run the participant through the ordered stages of the nested restricted barrier.

    Every stage has its own scope under the subgroup and thus its own participant accounting and ready marker. The last
    leaver of every stage removes that stage and only the last leaver of the final stage removes also the subgroup and
    the root.
    """

    def __init__(
        self,
        client,
        root: str,
        subgroup: str,
        stages: typing.Sequence[str],
        quorum: int,
        identity: typing.Optional[str] = None,
        timeout: typing.Optional[float] = None,
        capacity: int = DEFAULT_CAPACITY,
    ):
        self.stages = tuple(stages)
        self.session = BarrierSession(
            client,
            root,
            quorum,
            Variant.NESTED,
            subgroup=subgroup,
            stages=self.stages,
            identity=identity,
            timeout=timeout,
            capacity=capacity,
        )

    def run_stages(self, work: typing.Callable[[str], typing.Any]) -> bool:
        """Enter, perform work and leave every stage in order.

        work: The callable invoked with the stage name between entering and leaving the stage

        Returns True if all stages were passed or False if entering or leaving some stage failed. The failure is
        available in session.error. If work raises then our entry is abandoned and the exception is propagated.
        """
        for stage in self.stages:
            if not self.session.enter(stage):
                logger.error("Entering stage '%s' failed, abandoning the remaining stages.", stage)
                if self.session.is_entered:
                    self.session.abandon()
                return False
            try:
                work(stage)
            except Exception:
                self.session.abandon()
                raise
            if not self.session.leave(stage):
                logger.error("Leaving stage '%s' failed, abandoning the remaining stages.", stage)
                return False
            logger.info("Stage '%s' completed.", stage)
        return True

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()
