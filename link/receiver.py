"""Line reception for the coil winder link.

A background thread watches the port's in_waiting count; whenever bytes are
available it runs a drain pass that reads one line at a time and hands every
non-blank line, in arrival order, to the on_line callback.

pyserial's readline() returns whatever it has when the read timeout expires,
without a terminator. That partial text is held back and joined with the
rest of the line on the next pass, up to MAX_PARTIAL_LINE_BYTES.

A handler failure is logged and the pass continues with the next line.
"""

import logging
import threading
from collections.abc import Callable

import serial

from common.protocol import (
    MAX_PARTIAL_LINE_BYTES,
    RECEIVER_ERROR_BACKOFF_S,
    RECEIVER_POLL_S,
    TRACE,
    WIRE_ENCODING,
    SerialPort,
)

logger = logging.getLogger(__name__)

LineHandler = Callable[[str], None]


class LineReceiver:
    """Drains available bytes into lines and forwards them to a handler."""

    def __init__(
        self,
        on_line: LineHandler,
        poll_s: float = RECEIVER_POLL_S,
        error_backoff_s: float = RECEIVER_ERROR_BACKOFF_S,
    ) -> None:
        self._on_line = on_line
        self._poll_s = poll_s
        self._error_backoff_s = error_backoff_s
        self._port: SerialPort | None = None
        self._partial = bytearray()
        self._drain_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def attach(self, port: SerialPort) -> None:
        """Bind the receiver to a port without starting the thread."""
        with self._drain_lock:
            self._port = port
            self._partial.clear()

    def start(self, port: SerialPort) -> None:
        """Attach to a port and start the receive thread."""
        self.stop()
        self.attach(port)
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="winder-rx", daemon=True)
        self._thread.start()
        logger.debug("Receiver started")

    def stop(self, timeout_s: float = 2.0) -> None:
        """Stop the receive thread and detach from the port."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout_s)
            if self._thread.is_alive():
                logger.warning("Receiver thread did not stop in time")
            else:
                logger.debug("Receiver stopped")
            self._thread = None
        with self._drain_lock:
            self._port = None
            self._partial.clear()

    def _run(self) -> None:
        while not self._stop.is_set():
            port = self._port
            if port is None:
                self._stop.wait(self._poll_s)
                continue
            try:
                waiting = port.in_waiting
            except (serial.SerialException, OSError) as e:
                logger.error(f"Error polling serial port: {e}")
                self._stop.wait(self._error_backoff_s)
                continue

            if waiting > 0:
                if self.drain() < 0:
                    self._stop.wait(self._error_backoff_s)
            else:
                self._stop.wait(self._poll_s)

    def drain(self) -> int:
        """Run one drain pass.

        Returns the number of lines delivered, or -1 if the pass was aborted
        by a read error.
        """
        with self._drain_lock:
            port = self._port
            if port is None:
                return 0

            delivered = 0
            while True:
                try:
                    if port.in_waiting <= 0:
                        break
                    chunk = port.readline()
                except (serial.SerialException, OSError) as e:
                    logger.error(f"Error reading serial port: {e}")
                    return -1

                if not chunk.endswith(b"\n"):
                    # Read timeout: keep the partial line for the next pass
                    self._partial += chunk
                    if len(self._partial) > MAX_PARTIAL_LINE_BYTES:
                        logger.warning(
                            f"Dropping {len(self._partial)} bytes without a line terminator"
                        )
                        self._partial.clear()
                    break

                raw = bytes(self._partial) + chunk
                self._partial.clear()
                line = raw.decode(WIRE_ENCODING, errors="replace").strip()
                if not line:
                    continue

                logger.log(TRACE, f"Received: {line}")
                try:
                    self._on_line(line)
                except Exception:
                    logger.exception(f"Line handler failed on {line!r}")
                    continue
                delivered += 1

            return delivered
