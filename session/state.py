"""Winding session state for the coil winder link.

Contains:
- RunState: Run-state machine states
- Notice: One-shot operator notifications
- WindingSession: Mutable session aggregate owned by the tracker
- SessionSnapshot: Immutable view handed to front ends
- progress_for: Derived progress percentage
"""

from dataclasses import asdict, dataclass
from enum import Enum


class RunState(Enum):
    """Run state of the winder as seen from the host."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"  # Winding completed; next stop press resets
    AWAITING_RESET = "awaiting_reset"  # Stopped by operator; next stop press resets


class Notice(Enum):
    """One-shot notifications for the operator."""

    ALARM = "alarm"
    COMPLETED = "completed"


ALARM_TEXT = "ALERT: turn count exceeded!"


def progress_for(turns_done: int, configured_turns: int) -> int:
    """Return the winding progress in percent, clamped to 0-100.

    Defined as 0 when no target is configured.
    """
    if configured_turns <= 0:
        return 0
    return max(0, min(100, round(turns_done / configured_turns * 100)))


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable copy of the winding session for rendering."""

    turns_done: int = 0
    configured_turns: int = 0
    progress_percent: int = 0
    alarm_raised: bool = False
    alarm_text: str = ""
    status_text: str = ""
    run_state: RunState = RunState.IDLE
    last_frame: str = ""

    @property
    def reset_armed(self) -> bool:
        """True when the stop control acts as a reset."""
        return self.run_state in (RunState.STOPPED, RunState.AWAITING_RESET)


@dataclass
class WindingSession:
    """Winding progress, alarm and run state.

    Attributes:
        turns_done: Turns counted in the current run.
        configured_turns: Target turns of the last Configure sent.
        progress_percent: Derived or device-reported progress (0-100).
        alarm_raised: Set once turns_done exceeds the target; cleared only by zero().
        alarm_text: Alarm message shown to the operator.
        status_text: Last operator-facing status text.
        run_state: Current run state.
        last_frame: Raw text of the last received line.
    """

    turns_done: int = 0
    configured_turns: int = 0
    progress_percent: int = 0
    alarm_raised: bool = False
    alarm_text: str = ""
    status_text: str = ""
    run_state: RunState = RunState.IDLE
    last_frame: str = ""

    def zero(self) -> None:
        """Reset counters and alarm. The configured target is kept."""
        self.turns_done = 0
        self.progress_percent = 0
        self.alarm_raised = False
        self.alarm_text = ""

    def set_turns(self, turns_done: int) -> bool:
        """Update the turn count and derived progress.

        Returns True if this update raised the alarm.
        """
        self.turns_done = turns_done
        self.progress_percent = progress_for(turns_done, self.configured_turns)
        if turns_done > self.configured_turns and not self.alarm_raised:
            self.alarm_raised = True
            self.alarm_text = ALARM_TEXT
            return True
        return False

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(**asdict(self))
