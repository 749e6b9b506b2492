"""Winding state tracking for the coil winder link.

Consumes protocol events from the receiver and operator intents from the
front end, keeps the WindingSession, and notifies listeners with immutable
snapshots.

Run states:

  IDLE ──start──> RUNNING ──stop──> AWAITING_RESET ──stop──> IDLE
                     │                                 ^
                     └──STATUS:CONCLUIDO──> STOPPED ──stop┘

  start is accepted from IDLE, STOPPED and AWAITING_RESET (RESET then START).
  A disconnect from any state returns to IDLE with a zeroed session.

All mutation happens under a single lock: the receiver thread and the
operator thread never interleave inside a transition.
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import Protocol

from common.encoding import Command, Configure, OutboundCommand
from common.message import (
    Ignored,
    Progress,
    ProtocolEvent,
    Status,
    StatusKind,
    TurnCount,
    parse_frame,
)
from common.protocol import RESET_START_GAP_S
from session.state import Notice, RunState, SessionSnapshot, WindingSession, progress_for

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[SessionSnapshot], None]
NoticeListener = Callable[[Notice, str], None]

STATUS_WINDING = "Winding..."
STATUS_STOPPED = "Stopped by operator"
STATUS_RESET = "Reset"


class CommandSink(Protocol):
    """Anything that can deliver a command to the device."""

    def send(self, command: str | OutboundCommand) -> None: ...


class WindingTracker:
    """Run-state machine and progress/alarm bookkeeping for one winder."""

    def __init__(
        self,
        sender: CommandSink,
        reset_start_gap_s: float = RESET_START_GAP_S,
    ) -> None:
        self._sender = sender
        self._reset_start_gap_s = reset_start_gap_s
        self._session = WindingSession()
        self._last = self._session.snapshot()
        self._lock = threading.RLock()
        self._listeners: list[SnapshotListener] = []
        self._notice_listeners: list[NoticeListener] = []

    def add_listener(self, listener: SnapshotListener) -> None:
        """Register a callback receiving a snapshot after every change."""
        self._listeners.append(listener)

    def add_notice_listener(self, listener: NoticeListener) -> None:
        """Register a callback receiving one-shot ALARM / COMPLETED notices."""
        self._notice_listeners.append(listener)

    @property
    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return self._session.snapshot()

    def _publish(self) -> SessionSnapshot:
        snapshot = self._session.snapshot()
        if snapshot != self._last:
            self._last = snapshot
            for listener in self._listeners:
                listener(snapshot)
        return snapshot

    def _notify(self, notice: Notice, text: str) -> None:
        for listener in self._notice_listeners:
            listener(notice, text)

    def _transition(self, new_state: RunState) -> None:
        old_state = self._session.run_state
        if old_state != new_state:
            logger.info(f"Run state: {old_state.value} -> {new_state.value}")
            self._session.run_state = new_state

    def _reset_session(self) -> None:
        self._session.zero()
        logger.info("Turn counter and alarm reset")

    # -------------------------------------------------------------------------
    # Operator intents
    # -------------------------------------------------------------------------

    def configure(self, turns: int, rpm: int, wire_diameter_mm: float) -> SessionSnapshot:
        """Send a configuration and adopt its target turn count.

        Raises ValueError for invalid values, SendError if sending fails.
        """
        command = Configure(turns, rpm, wire_diameter_mm)
        with self._lock:
            self._sender.send(command)
            self._session.configured_turns = turns
            self._session.progress_percent = progress_for(self._session.turns_done, turns)
            logger.info(f"Configured: turns={turns}, rpm={rpm}, diameter={wire_diameter_mm:.2f}mm")
            return self._publish()

    def user_start(self) -> SessionSnapshot:
        """Reset the device counter and start a new run."""
        with self._lock:
            if self._session.run_state == RunState.RUNNING:
                logger.warning("Start requested while already running, ignoring")
                return self._session.snapshot()

            self._sender.send(Command.RESET)
            self._reset_session()
            time.sleep(self._reset_start_gap_s)
            self._sender.send(Command.START)
            self._session.status_text = STATUS_WINDING
            self._transition(RunState.RUNNING)
            return self._publish()

    def user_stop(self) -> SessionSnapshot:
        """Stop the run, or reset if the stop control is armed as a reset."""
        with self._lock:
            if self._session.run_state in (RunState.STOPPED, RunState.AWAITING_RESET):
                self._sender.send(Command.RESET)
                self._reset_session()
                self._session.status_text = STATUS_RESET
                self._transition(RunState.IDLE)
                return self._publish()

            self._sender.send(Command.STOP)
            self._session.status_text = STATUS_STOPPED
            self._transition(RunState.AWAITING_RESET)
            return self._publish()

    # -------------------------------------------------------------------------
    # Link events
    # -------------------------------------------------------------------------

    def on_connection_changed(self, connected: bool) -> None:
        """ConnectionStatusChanged handler. A disconnect discards the run."""
        if connected:
            return
        with self._lock:
            self._transition(RunState.IDLE)
            # The device reboots on the next connect and forgets its configuration
            self._session = WindingSession()
            logger.info("Link closed, winding session discarded")
            self._publish()

    def handle_line(self, frame: str) -> SessionSnapshot:
        """Classify a received line and apply it."""
        event = parse_frame(frame)
        with self._lock:
            self._session.last_frame = frame
            return self._apply(event)

    def handle_event(self, event: ProtocolEvent) -> SessionSnapshot:
        """Apply an already classified protocol event."""
        with self._lock:
            return self._apply(event)

    def _apply(self, event: ProtocolEvent) -> SessionSnapshot:
        match event:
            case TurnCount(turns=turns, absolute=True):
                self._apply_turns(turns)
            case TurnCount():
                self._apply_turns(self._session.turns_done + event.turns)
            case Progress(percent=percent):
                self._session.progress_percent = percent
            case Status():
                self._apply_status(event)
            case Ignored():
                pass
        return self._publish()

    def _apply_turns(self, turns_done: int) -> None:
        if self._session.set_turns(turns_done):
            logger.error(
                f"ALERT: turn count exceeded! Turns: {turns_done}, "
                f"expected: {self._session.configured_turns}"
            )
            self._notify(Notice.ALARM, self._session.alarm_text)

    def _apply_status(self, status: Status) -> None:
        state = self._session.run_state
        match status.kind:
            case StatusKind.COMPLETED:
                self._session.status_text = status.text
                if state == RunState.RUNNING:
                    self._transition(RunState.STOPPED)
                self._notify(Notice.COMPLETED, status.text)
            case StatusKind.STARTED_ACK:
                if state != RunState.RUNNING:
                    self._transition(RunState.RUNNING)
            case StatusKind.RESET_ACK:
                if state in (RunState.STOPPED, RunState.AWAITING_RESET):
                    self._reset_session()
                    self._transition(RunState.IDLE)
            case StatusKind.CONFIG_ACK:
                logger.debug(f"Configuration acknowledged: {status.text}")
            case StatusKind.TEXT:
                self._session.status_text = status.text
