"""Winding session package for the coil winder link.

This package tracks what the winder is doing from the host's point of view:
- Turn count, derived progress and the one-shot over-count alarm
- The start/stop/reset run-state machine
- Immutable snapshots and console reporting
"""

from session.report import SessionReport
from session.state import Notice, RunState, SessionSnapshot, WindingSession, progress_for
from session.tracker import WindingTracker

__all__ = [
    "Notice",
    "RunState",
    "SessionReport",
    "SessionSnapshot",
    "WindingSession",
    "WindingTracker",
    "progress_for",
]
