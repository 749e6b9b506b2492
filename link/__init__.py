"""Serial link package for the coil winder.

Contains the connection lifecycle and the two data paths:
- manager: ConnectionManager (open/close, settle window, status events)
- sender: CommandSender (serialized, paced writes)
- receiver: LineReceiver (background line draining)
- controller: WinderLink facade

Note: run_console and ExitCode are not exported here. Import directly from
link.runner when needed.
"""

from link.controller import WinderLink
from link.manager import ConnectionManager
from link.receiver import LineReceiver
from link.sender import CommandSender

__all__ = [
    "CommandSender",
    "ConnectionManager",
    "LineReceiver",
    "WinderLink",
]
