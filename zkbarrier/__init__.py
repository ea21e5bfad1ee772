"""The implementation of distributed barriers on top of ZooKeeper.
"""
from .channel import NotificationChannel
from .entry import EntryProtocol
from .errors import BarrierError, BarrierTimeout, FatalConnectionFailure, TransientCoordinationError
from .exit import ExitProtocol
from .gate import Gate
from .layout import MARKER, Variant, cleanup_cascade, scope_path
from .nested import NestedStageController
from .session import BarrierSession
from .utils import connect

__all__ = [
    "BarrierSession",
    "NestedStageController",
    "Gate",
    "Variant",
    "connect",
    "EntryProtocol",
    "ExitProtocol",
    "NotificationChannel",
    "MARKER",
    "scope_path",
    "cleanup_cascade",
    "BarrierError",
    "TransientCoordinationError",
    "BarrierTimeout",
    "FatalConnectionFailure",
]
