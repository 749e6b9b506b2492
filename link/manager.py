"""Connection lifecycle for the coil winder link.

The microcontroller reboots when the port opens (DTR toggle), so a freshly
opened port is not ready for commands until the settle window has elapsed.
The manager tracks both: is_connected (port open) and is_ready (port open
and settled).
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import NoReturn

import serial

from common.connection import ConnectError, ConnectionState, LinkSettings
from common.device import open_serial
from common.protocol import SerialPort

logger = logging.getLogger(__name__)

PortOpener = Callable[[str, LinkSettings], SerialPort]
ConnectionListener = Callable[[bool], None]


def open_port(device: str, settings: LinkSettings) -> SerialPort:
    return open_serial(device, baudrate=settings.baudrate, timeout_s=settings.timeout_s)


class ConnectionManager:
    """Owns the serial port and enforces a single open connection."""

    def __init__(
        self,
        settings: LinkSettings | None = None,
        opener: PortOpener = open_port,
    ) -> None:
        self.settings = settings or LinkSettings()
        self._opener = opener
        self._port: SerialPort | None = None
        self._port_name: str | None = None
        self._opened_at = 0.0
        self._state = ConnectionState.DISCONNECTED
        self._lock = threading.RLock()
        self._listeners: list[ConnectionListener] = []

    def add_listener(self, listener: ConnectionListener) -> None:
        """Register a callback for ConnectionStatusChanged(bool)."""
        self._listeners.append(listener)

    def _emit(self, connected: bool) -> None:
        for listener in self._listeners:
            listener(connected)

    @property
    def port(self) -> SerialPort | None:
        return self._port

    @property
    def port_name(self) -> str | None:
        return self._port_name

    @property
    def state(self) -> ConnectionState:
        with self._lock:
            if not self.is_connected:
                return ConnectionState.DISCONNECTED
            if self._settled():
                self._state = ConnectionState.CONNECTED
            return self._state

    @property
    def is_connected(self) -> bool:
        """True while the transport reports the port open."""
        port = self._port
        return port is not None and bool(port.is_open)

    @property
    def is_ready(self) -> bool:
        """True when the port is open and the settle window has elapsed."""
        return self.state == ConnectionState.CONNECTED

    def _settled(self) -> bool:
        return time.monotonic() - self._opened_at >= self.settings.settle_s

    def connect(self, device: str, wait_ready: bool = True) -> None:
        """Open the port. A no-op if a port is already open.

        Raises ConnectError if the port cannot be opened.
        """
        with self._lock:
            if self.is_connected:
                logger.debug(f"Already connected to {self._port_name}, ignoring connect")
                return

            logger.info(f"Connecting to {device}...")
            self._state = ConnectionState.CONNECTING
            try:
                port = self._opener(device, self.settings)
            except (serial.SerialException, OSError) as e:
                self._fail_connect(device, e)

            try:
                port.reset_input_buffer()
                port.reset_output_buffer()
            except (serial.SerialException, OSError) as e:
                try:
                    port.close()
                except (serial.SerialException, OSError) as close_error:
                    logger.error(f"Error closing {device} after failed flush: {close_error}")
                self._fail_connect(device, e)

            self._port = port
            self._port_name = device
            self._opened_at = time.monotonic()
            logger.info(f"Connected to {device}, settling for {self.settings.settle_s}s")

        self._emit(True)
        if wait_ready:
            self.wait_ready()

    def _fail_connect(self, device: str, error: Exception) -> NoReturn:
        self._port = None
        self._port_name = None
        self._state = ConnectionState.DISCONNECTED
        logger.error(f"Failed to connect to {device}: {error}")
        self._emit(False)
        raise ConnectError(device, error) from error

    def wait_ready(self, timeout_s: float | None = None) -> bool:
        """Block until the settle window has elapsed. Returns readiness."""
        if not self.is_connected:
            return False
        remaining = self.settings.settle_s - (time.monotonic() - self._opened_at)
        if timeout_s is not None:
            remaining = min(remaining, timeout_s)
        if remaining > 0:
            time.sleep(remaining)
        ready = self.is_ready
        if ready:
            logger.info(f"Link on {self._port_name} ready for commands")
        return ready

    def disconnect(self) -> None:
        """Close the port. A no-op if no port is open.

        Close failures are logged; the link is considered closed either way.
        """
        with self._lock:
            port = self._port
            if port is None:
                return

            name = self._port_name
            logger.info(f"Disconnecting from {name}...")
            try:
                port.close()
            except (serial.SerialException, OSError) as e:
                logger.error(f"Error closing {name}: {e}")
            else:
                logger.info(f"Closed {name}")
            self._port = None
            self._port_name = None
            self._state = ConnectionState.DISCONNECTED

        self._emit(False)
