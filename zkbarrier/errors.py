"""Exceptions reported by barrier sessions."""
import typing


class BarrierError(Exception):
    """The common base for all barrier errors."""


class TransientCoordinationError(BarrierError):
    """Barrier operation failed but the caller can retry it.

    This wraps the coordination service error together with the context needed to diagnose it.
    """

    def __init__(
        self,
        operation: str,
        path: typing.Optional[str],
        scope: str,
        quorum: int,
        cause: typing.Optional[BaseException] = None,
    ):
        super().__init__(operation, path, scope, quorum, cause)
        self.operation = operation
        self.path = path
        self.scope = scope
        self.quorum = quorum
        self.cause = cause

    def __str__(self):
        return "{} failed for '{}' (scope '{}', quorum {}): {!r}".format(
            self.operation, self.path, self.scope, self.quorum, self.cause
        )


class BarrierTimeout(TransientCoordinationError):
    """The configured timeout elapsed while waiting for peers."""


class FatalConnectionFailure(BarrierError):
    """It is not possible to establish session with the coordination service at all."""
