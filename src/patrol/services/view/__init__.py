"""View-state reconciliation: events, reducer, derivations and the session."""

from .derive import build_snapshot, derive_camera, derive_results
from .reducer import reconcile
from .session import ViewSession
from .state import ViewSnapshot, ViewState, initial_state

__all__ = [
    "ViewSession",
    "ViewSnapshot",
    "ViewState",
    "build_snapshot",
    "derive_camera",
    "derive_results",
    "initial_state",
    "reconcile",
]
