"""Common modules for the coil winder link.

This package contains the wire protocol and transport pieces shared by the
link and the session tracker:
- protocol: Wire prefixes, timing constants, SerialPort Protocol
- connection: ConnectionState, LinkSettings, error types
- encoding: Outbound command encoding
- message: Inbound frame classification
- device: Serial device setup and port enumeration
- report: Reporting abstractions
"""

from common.connection import (
    ConnectError,
    ConnectionState,
    LinkError,
    LinkSettings,
    NotConnectedError,
    SendError,
    SendIoError,
)
from common.encoding import Command, Configure, OutboundCommand, encode
from common.message import (
    Ignored,
    Progress,
    ProtocolEvent,
    Status,
    StatusKind,
    TurnCount,
    parse_frame,
)
from common.protocol import SerialPort

__all__ = [
    # Protocol
    "SerialPort",
    # Connection
    "ConnectionState",
    "LinkSettings",
    # Commands
    "Command",
    "Configure",
    "OutboundCommand",
    "encode",
    # Events
    "Ignored",
    "Progress",
    "ProtocolEvent",
    "Status",
    "StatusKind",
    "TurnCount",
    "parse_frame",
    # Exceptions
    "ConnectError",
    "LinkError",
    "NotConnectedError",
    "SendError",
    "SendIoError",
]
