"""pytest configuration and fixtures for coil winder link tests.

Provides:
- MockSerialPort: In-memory serial port with separate receive and write sides
- MockOpener: Port opener handing out a MockSerialPort
- FailingOpener: Port opener that always fails
- wait_for: Poll a condition set by the receive thread
- Fixtures for fast LinkSettings, an opened ConnectionManager and a sender
- Markers for unit vs integration tests
"""

import threading
import time
from collections.abc import Callable, Generator

import pytest
import serial

from common.connection import LinkSettings
from link.manager import ConnectionManager
from link.sender import CommandSender

# No settle window, no pacing: tests run at full speed
FAST_SETTINGS = LinkSettings(settle_s=0.0, pacing_s=0.0, reset_start_gap_s=0.0)


class MockSerialPort:
    """Mock serial port for unit testing.

    Bytes injected with inject() are what the device "sent"; readline()
    consumes them like pyserial does, returning a partial line (no
    terminator) when no newline is buffered, as a read timeout would.
    Everything written by the host is recorded in `written`.
    """

    def __init__(self) -> None:
        self._rx = bytearray()
        self._lock = threading.Lock()
        self.written = bytearray()
        self.is_open = True
        self.input_resets = 0
        self.output_resets = 0
        self.fail_write: Exception | None = None
        self.fail_read: Exception | None = None
        self.fail_close: Exception | None = None
        self.fail_flush: Exception | None = None

    def write(self, data: bytes) -> int:
        if self.fail_write is not None:
            raise self.fail_write
        if not self.is_open:
            raise serial.SerialException("Attempting to use a port that is not open")
        with self._lock:
            self.written += data
            return len(data)

    def readline(self, size: int = -1, /) -> bytes:
        if self.fail_read is not None:
            raise self.fail_read
        with self._lock:
            end = self._rx.find(b"\n")
            if end == -1:
                data = bytes(self._rx)
                self._rx.clear()
                return data
            data = bytes(self._rx[: end + 1])
            del self._rx[: end + 1]
            return data

    @property
    def in_waiting(self) -> int:
        with self._lock:
            return len(self._rx)

    def reset_input_buffer(self) -> None:
        if self.fail_flush is not None:
            raise self.fail_flush
        self.input_resets += 1
        with self._lock:
            self._rx.clear()

    def reset_output_buffer(self) -> None:
        self.output_resets += 1

    def close(self) -> None:
        self.is_open = False
        if self.fail_close is not None:
            raise self.fail_close

    def inject(self, data: bytes | str) -> None:
        """Inject data as if received from the winder."""
        if isinstance(data, str):
            data = data.encode("ascii")
        with self._lock:
            self._rx += data

    def lines_written(self) -> list[str]:
        """Return the host's writes split into lines (terminators removed)."""
        return self.written.decode("ascii").splitlines()


class MockOpener:
    """Port opener handing out a MockSerialPort and recording calls."""

    def __init__(self, port: MockSerialPort | None = None) -> None:
        self.port = port or MockSerialPort()
        self.calls: list[str] = []

    def __call__(self, device: str, settings: LinkSettings) -> MockSerialPort:
        self.calls.append(device)
        self.port.is_open = True
        return self.port


class FailingOpener:
    """Port opener that raises like pyserial on a missing port."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error or serial.SerialException("could not open port /dev/missing")

    def __call__(self, device: str, settings: LinkSettings) -> MockSerialPort:
        raise self.error


def wait_for(predicate: Callable[[], bool], timeout_s: float = 2.0) -> bool:
    """Poll predicate until it holds or timeout_s elapses."""
    deadline = time.monotonic() + timeout_s
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")


@pytest.fixture
def mock_port() -> MockSerialPort:
    return MockSerialPort()


@pytest.fixture
def manager(mock_port: MockSerialPort) -> Generator[ConnectionManager, None, None]:
    """A ConnectionManager already connected to mock_port and ready."""
    mgr = ConnectionManager(FAST_SETTINGS, opener=MockOpener(mock_port))
    mgr.connect("/dev/ttyMOCK0")
    yield mgr
    mgr.disconnect()


@pytest.fixture
def sender(manager: ConnectionManager) -> CommandSender:
    return CommandSender(manager)
