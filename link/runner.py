"""Console runner for the coil winder link.

Contains run_console() which connects to the winder, reads operator commands
line by line, and prints notices and status changes as they arrive:

  config <turns> <rpm> <diameter_mm>   send winding configuration
  start                                reset the counter and start winding
  stop                                 stop; a second stop resets
  status                               print the session report
  quit | exit                          disconnect and leave
"""

import logging
import sys
from enum import IntEnum
from typing import TextIO

from common.connection import ConnectError, LinkSettings, SendError
from common.report import ConnectionReport
from link.controller import WinderLink
from link.manager import PortOpener, open_port
from session.report import SessionReport
from session.state import Notice, SessionSnapshot

logger = logging.getLogger(__name__)

USAGE = "Commands: config <turns> <rpm> <diameter_mm> | start | stop | status | quit"


class ExitCode(IntEnum):
    """Exit codes for console operations."""

    SUCCESS = 0  # Session ended normally
    CONNECT_FAILED = 1  # Port could not be opened
    ALARM = 2  # Session ended with the turn-count alarm raised


class _ConsoleView:
    """Prints notices and status text changes."""

    def __init__(self) -> None:
        self._status_text = ""

    def on_snapshot(self, snapshot: SessionSnapshot) -> None:
        if snapshot.status_text and snapshot.status_text != self._status_text:
            print(f"Status: {snapshot.status_text}")
        self._status_text = snapshot.status_text

    def on_notice(self, notice: Notice, text: str) -> None:
        match notice:
            case Notice.ALARM:
                print(f"*** {text} ***")
            case Notice.COMPLETED:
                print(f"Winding complete ({text})")

    def on_connection_changed(self, connected: bool) -> None:
        if not connected:
            print("Status: Disconnected")


def _configure(link: WinderLink, args: list[str]) -> None:
    if len(args) != 3:
        print("Usage: config <turns> <rpm> <diameter_mm>")
        return
    try:
        turns, rpm, diameter = int(args[0]), int(args[1]), float(args[2])
        link.tracker.configure(turns, rpm, diameter)
    except ValueError as e:
        print(f"Invalid configuration: {e}")


def run_command(link: WinderLink, line: str) -> bool:
    """Execute one operator command. Returns False when the operator quits."""
    parts = line.split()
    if not parts:
        return True

    command, args = parts[0].lower(), parts[1:]
    try:
        match command:
            case "config":
                _configure(link, args)
            case "start":
                link.tracker.user_start()
            case "stop":
                link.tracker.user_stop()
            case "status":
                SessionReport(snapshot=link.tracker.snapshot).print()
            case "quit" | "exit":
                return False
            case _:
                print(USAGE)
    except SendError as e:
        logger.error(f"Command {command!r} failed: {e}")
        print(f"Communication error: {e}")
    return True


def run_console(
    device: str,
    settings: LinkSettings | None = None,
    commands: TextIO | None = None,
    opener: PortOpener = open_port,
) -> int:
    """Run the interactive console against a winder. Returns exit code."""
    commands = commands or sys.stdin
    link = WinderLink(settings, opener=opener)
    view = _ConsoleView()
    link.tracker.add_listener(view.on_snapshot)
    link.tracker.add_notice_listener(view.on_notice)

    try:
        link.connect(device, wait_ready=False)
    except ConnectError as e:
        ConnectionReport(connected=False, error=e).print()
        return ExitCode.CONNECT_FAILED

    with link:
        link.manager.add_listener(view.on_connection_changed)
        ConnectionReport(connected=True, port=device).print()
        print(f"Waiting {link.settings.settle_s}s for the winder to boot...")
        link.manager.wait_ready()
        print(USAGE)

        for line in commands:
            if not run_command(link, line):
                break

        snapshot = link.tracker.snapshot

    SessionReport(snapshot=snapshot).print()
    if snapshot.alarm_raised:
        return ExitCode.ALARM
    return ExitCode.SUCCESS
