"""Reporting abstractions for the coil winder link.

Contains:
- Report ABC: Base class for all reports
- ConnectionReport: Report after a connect attempt
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class Report(ABC):
    """Abstract base class for console reports."""

    @abstractmethod
    def print(self) -> None:
        """Print the report to stdout."""
        pass

    @abstractmethod
    def success(self) -> bool:
        """Return True if the report indicates success."""
        pass


@dataclass
class ConnectionReport(Report):
    """Report after a connect attempt.

    When connected=True, port is required.
    When connected=False, error should be set.
    """

    connected: bool
    port: str | None = None
    error: Exception | None = None

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.connected and self.port is None:
            raise ValueError("port is required when connected=True")

    def print(self) -> None:
        """Print the connection report."""
        if self.connected:
            print(f"Connection: OK (port={self.port})")
        else:
            print(f"Connection: FAILED ({self.error})")

    def success(self) -> bool:
        """Return True if the link is connected."""
        return self.connected
