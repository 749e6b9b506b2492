"""Inbound message classification for the coil winder link.

Each received line (a frame) is classified into exactly one event:

  CNT:<anything>                 -> TurnCount(1, absolute=False)  (one pulse)
  STATUS:Voltas:<int>            -> TurnCount(n, absolute=True)
  STATUS:Voltas Reais: <int>     -> TurnCount(n, absolute=True)
  STATUS:<text>                  -> Status(text, kind)
  PROG:<int>                     -> Progress(0..100)
  anything else                  -> Ignored

The firmware has no checksum or length prefix. When its output buffer
overruns, frames get glued together ("STATUS:Voltas:5STATUS:Voltas:6"), so a
repeated STATUS:/PROG: marker inside one line marks the frame as corrupted.
This check runs first since a corrupted frame can still start with a valid
prefix.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum

from common.protocol import (
    CNT_PREFIX,
    PROG_PREFIX,
    PROG_REPEAT_OFFSET,
    REAL_TURNS_PREFIX,
    STATUS_PREFIX,
    STATUS_REPEAT_OFFSET,
    TRACE,
    TURNS_PREFIX,
)

logger = logging.getLogger(__name__)

_REDUNDANT_STATUS = "status:"

# The firmware only sends plain ASCII decimal integers
_INT_PAYLOAD = re.compile(r"-?[0-9]+")


class StatusKind(Enum):
    """Sub-kinds of STATUS: messages the tracker treats specially."""

    TEXT = "text"  # Free text, shown verbatim
    COMPLETED = "completed"  # CONCLUIDO
    RESET_ACK = "reset_ack"  # RESETADO
    STARTED_ACK = "started_ack"  # INICIADO
    CONFIG_ACK = "config_ack"  # Config...

    @property
    def suppressed(self) -> bool:
        """Return True if the status is not shown to the operator."""
        return self in (StatusKind.RESET_ACK, StatusKind.STARTED_ACK, StatusKind.CONFIG_ACK)


# Checked in order against the upper-cased status text
_STATUS_KINDS = (
    ("CONCLUIDO", StatusKind.COMPLETED),
    ("RESETADO", StatusKind.RESET_ACK),
    ("INICIADO", StatusKind.STARTED_ACK),
    ("CONFIG", StatusKind.CONFIG_ACK),
)


@dataclass(frozen=True)
class TurnCount:
    """Turn count update. A pulse (absolute=False) adds one turn."""

    turns: int
    absolute: bool = True


@dataclass(frozen=True)
class Status:
    """Status text reported by the device."""

    text: str
    kind: StatusKind = StatusKind.TEXT


@dataclass(frozen=True)
class Progress:
    """Device-reported progress percentage (0-100)."""

    percent: int


@dataclass(frozen=True)
class Ignored:
    """Noise, corrupted frame or malformed payload."""

    frame: str
    reason: str


ProtocolEvent = TurnCount | Status | Progress | Ignored


def is_corrupted(frame: str) -> bool:
    """Return True if the frame carries a repeated STATUS:/PROG: marker."""
    return (
        frame.find(STATUS_PREFIX, STATUS_REPEAT_OFFSET) != -1
        or frame.find(PROG_PREFIX, PROG_REPEAT_OFFSET) != -1
    )


def status_kind(text: str) -> StatusKind:
    """Classify status text (case-insensitive prefix match)."""
    upper = text.upper()
    for marker, kind in _STATUS_KINDS:
        if upper.startswith(marker):
            return kind
    return StatusKind.TEXT


def _parse_int(payload: str) -> int | None:
    text = payload.strip()
    if not _INT_PAYLOAD.fullmatch(text):
        return None
    return int(text)


def _parse_turns(frame: str, prefix: str) -> ProtocolEvent:
    turns = _parse_int(frame[len(prefix) :])
    if turns is None or turns < 0:
        logger.debug(f"Malformed turn count in frame: {frame!r}")
        return Ignored(frame, "malformed turn count")
    return TurnCount(turns, absolute=True)


def _parse_status(frame: str) -> Status:
    text = frame[len(STATUS_PREFIX) :].strip()
    if text.lower().startswith(_REDUNDANT_STATUS):
        text = text[len(_REDUNDANT_STATUS) :].strip()
    return Status(text, status_kind(text))


def _parse_progress(frame: str) -> ProtocolEvent:
    percent = _parse_int(frame[len(PROG_PREFIX) :])
    if percent is None:
        logger.debug(f"Malformed progress in frame: {frame!r}")
        return Ignored(frame, "malformed progress")
    return Progress(max(0, min(100, percent)))


def parse_frame(frame: str) -> ProtocolEvent:
    """Classify one received line into a protocol event."""
    logger.log(TRACE, f"Frame: {frame!r}")

    if is_corrupted(frame):
        logger.warning(f"Discarding corrupted frame: {frame!r}")
        return Ignored(frame, "corrupted")

    if frame.startswith(CNT_PREFIX):
        return TurnCount(1, absolute=False)
    if frame.startswith(REAL_TURNS_PREFIX):
        return _parse_turns(frame, REAL_TURNS_PREFIX)
    if frame.startswith(TURNS_PREFIX):
        return _parse_turns(frame, TURNS_PREFIX)

    if frame.startswith(STATUS_PREFIX):
        return _parse_status(frame)

    if frame.startswith(PROG_PREFIX):
        return _parse_progress(frame)

    logger.debug(f"Ignoring unrecognized frame: {frame!r}")
    return Ignored(frame, "unrecognized")
