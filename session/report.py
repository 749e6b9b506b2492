"""Session reporting for the coil winder link.

Contains:
- SessionReport: Console rendering of a winding session snapshot
"""

from dataclasses import dataclass

from common.report import Report
from session.state import SessionSnapshot

_BAR_WIDTH = 20


@dataclass
class SessionReport(Report):
    """Report of the current winding session."""

    snapshot: SessionSnapshot

    def print(self) -> None:
        """Print the session report."""
        s = self.snapshot
        filled = s.progress_percent * _BAR_WIDTH // 100
        bar = "#" * filled + "-" * (_BAR_WIDTH - filled)

        print(f"State: {s.run_state.value}" + (" (stop resets)" if s.reset_armed else ""))
        print(f"Turns: {s.turns_done}/{s.configured_turns}")
        print(f"Progress: [{bar}] {s.progress_percent}%")
        if s.status_text:
            print(f"Status: {s.status_text}")
        if s.alarm_raised:
            print(s.alarm_text)
        if s.last_frame:
            print(f"Last frame: {s.last_frame}")

    def success(self) -> bool:
        """Return True if no alarm was raised."""
        return not self.snapshot.alarm_raised
