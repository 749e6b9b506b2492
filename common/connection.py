"""Connection state, settings and error types for the coil winder link.

Contains:
- ConnectionState: Enum for the link lifecycle
- LinkSettings: Serial parameters and timing for one link
- LinkError hierarchy: ConnectError, SendError, NotConnectedError, SendIoError
"""

from dataclasses import dataclass
from enum import Enum

from common.protocol import (
    BAUDRATE,
    RESET_START_GAP_S,
    SERIAL_TIMEOUT_S,
    SETTLE_WINDOW_S,
    WRITE_PACING_S,
)


class ConnectionState(Enum):
    """Lifecycle of the serial link."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"  # Port open, settle window not yet elapsed
    CONNECTED = "connected"  # Ready for commands


class LinkError(Exception):
    """Base class for link failures surfaced to the caller."""

    pass


class ConnectError(LinkError):
    """Raised when the serial port cannot be opened."""

    def __init__(self, port: str, cause: Exception) -> None:
        super().__init__(f"Failed to open {port}: {cause}")
        self.port = port
        self.cause = cause


class SendError(LinkError):
    """Raised when a command cannot be delivered to the device."""

    pass


class NotConnectedError(SendError):
    """Raised when sending before the link is ready for commands."""

    pass


class SendIoError(SendError):
    """Raised when the transport write fails or times out."""

    pass


@dataclass(frozen=True)
class LinkSettings:
    """Serial parameters and timing for a link."""

    baudrate: int = BAUDRATE
    timeout_s: float = SERIAL_TIMEOUT_S
    settle_s: float = SETTLE_WINDOW_S
    pacing_s: float = WRITE_PACING_S
    reset_start_gap_s: float = RESET_START_GAP_S

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.baudrate <= 0:
            raise ValueError(f"baudrate must be positive, got {self.baudrate}")
        for name in ("timeout_s", "settle_s", "pacing_s", "reset_start_gap_s"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")
