"""Command sending for the coil winder link."""

import logging
import threading
import time

import serial

from common.connection import NotConnectedError, SendIoError
from common.encoding import OutboundCommand, encode, terminate, to_wire
from link.manager import ConnectionManager

logger = logging.getLogger(__name__)


class CommandSender:
    """Serializes command writes and paces them for the microcontroller.

    Every write is followed by a pacing delay held under the write lock, so
    consecutive commands are always at least pacing_s apart.
    """

    def __init__(self, manager: ConnectionManager) -> None:
        self._manager = manager
        self._lock = threading.Lock()

    def send(self, command: str | OutboundCommand) -> None:
        """Send one command line.

        Raises:
            NotConnectedError: If the link is not open or still settling.
            SendIoError: If the transport write fails or times out.
        """
        line = terminate(command) if isinstance(command, str) else encode(command)

        with self._lock:
            port = self._manager.port
            if port is None or not self._manager.is_ready:
                logger.error(f"Cannot send {line.strip()!r}: link not ready")
                raise NotConnectedError("Serial link is not connected")

            try:
                port.write(to_wire(line))
            except (serial.SerialException, OSError) as e:
                logger.error(f"Failed to send {line.strip()!r}: {e}")
                raise SendIoError(f"Failed to send {line.strip()!r}: {e}") from e

            logger.info(f"Command sent: {line.strip()}")
            time.sleep(self._manager.settings.pacing_s)
