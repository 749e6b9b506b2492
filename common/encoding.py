"""Outbound command encoding for the coil winder link.

Contains:
- Command: Enum of the argument-less control commands
- Configure: Winding configuration command
- encode: Render a command as its wire line
- terminate / to_wire: Line termination helpers used by the sender
"""

from dataclasses import dataclass
from enum import Enum

from common.protocol import (
    CFG_PREFIX,
    CMD_RESET,
    CMD_START,
    CMD_STOP,
    LINE_TERMINATOR,
    WIRE_ENCODING,
)


class Command(Enum):
    """Control commands sent to the microcontroller."""

    START = CMD_START
    STOP = CMD_STOP
    RESET = CMD_RESET


@dataclass(frozen=True)
class Configure:
    """Winding configuration: target turns, motor RPM, wire diameter in mm."""

    turns: int
    rpm: int
    wire_diameter_mm: float

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.turns < 0:
            raise ValueError(f"turns must not be negative, got {self.turns}")
        if self.rpm < 0:
            raise ValueError(f"rpm must not be negative, got {self.rpm}")
        if self.wire_diameter_mm < 0:
            raise ValueError(
                f"wire_diameter_mm must not be negative, got {self.wire_diameter_mm}"
            )


OutboundCommand = Command | Configure


def encode(command: OutboundCommand) -> str:
    """Encode a command as a newline-terminated wire line.

    Configure{100, 800, 0.5} -> "CFG:E100;R800;D0.50\\n"
    """
    match command:
        case Command():
            return command.value + LINE_TERMINATOR
        case Configure(turns=turns, rpm=rpm, wire_diameter_mm=diameter):
            return f"{CFG_PREFIX}E{turns};R{rpm};D{diameter:.2f}{LINE_TERMINATOR}"
        case _:
            raise TypeError(f"Unsupported command: {command!r}")


def terminate(line: str) -> str:
    """Append the line terminator unless it is already present."""
    if line.endswith(LINE_TERMINATOR):
        return line
    return line + LINE_TERMINATOR


def to_wire(line: str) -> bytes:
    """Return the ASCII bytes of a terminated line."""
    return terminate(line).encode(WIRE_ENCODING)
