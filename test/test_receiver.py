"""Unit tests for the background line receiver."""

import threading
import time

import pytest
import serial

from common.protocol import MAX_PARTIAL_LINE_BYTES
from link.receiver import LineReceiver
from test.conftest import MockSerialPort, wait_for


@pytest.mark.unit
class TestDrain:
    """Tests for a single drain pass."""

    def test_lines_in_arrival_order(self, mock_port: MockSerialPort) -> None:
        lines: list[str] = []
        receiver = LineReceiver(lines.append)
        receiver.attach(mock_port)
        mock_port.inject("CNT:1\nSTATUS:Voltas:2\nPROG:10\n")

        assert receiver.drain() == 3
        assert lines == ["CNT:1", "STATUS:Voltas:2", "PROG:10"]

    def test_strips_whitespace_and_cr(self, mock_port: MockSerialPort) -> None:
        lines: list[str] = []
        receiver = LineReceiver(lines.append)
        receiver.attach(mock_port)
        mock_port.inject("  STATUS:CONCLUIDO \r\n")

        receiver.drain()
        assert lines == ["STATUS:CONCLUIDO"]

    def test_blank_lines_skipped(self, mock_port: MockSerialPort) -> None:
        lines: list[str] = []
        receiver = LineReceiver(lines.append)
        receiver.attach(mock_port)
        mock_port.inject("\n\r\n   \nCNT:1\n\n")

        assert receiver.drain() == 1
        assert lines == ["CNT:1"]

    def test_nothing_waiting(self, mock_port: MockSerialPort) -> None:
        lines: list[str] = []
        receiver = LineReceiver(lines.append)
        receiver.attach(mock_port)
        assert receiver.drain() == 0
        assert lines == []

    def test_not_attached(self) -> None:
        assert LineReceiver(lambda line: None).drain() == 0

    def test_partial_line_joined_on_next_pass(self, mock_port: MockSerialPort) -> None:
        """A line split by a read timeout is delivered once, whole."""
        lines: list[str] = []
        receiver = LineReceiver(lines.append)
        receiver.attach(mock_port)

        mock_port.inject("CNT:1\nSTATUS:Vol")
        assert receiver.drain() == 1
        assert lines == ["CNT:1"]

        mock_port.inject("tas:7\n")
        assert receiver.drain() == 1
        assert lines == ["CNT:1", "STATUS:Voltas:7"]

    def test_non_ascii_replaced(self, mock_port: MockSerialPort) -> None:
        lines: list[str] = []
        receiver = LineReceiver(lines.append)
        receiver.attach(mock_port)
        mock_port.inject(b"STATUS:Conclu\xedDO\n")

        receiver.drain()
        assert lines == ["STATUS:Conclu\ufffdDO"]

    def test_read_error_aborts_pass(self, mock_port: MockSerialPort) -> None:
        lines: list[str] = []
        receiver = LineReceiver(lines.append)
        receiver.attach(mock_port)
        mock_port.inject("CNT:1\n")
        mock_port.fail_read = serial.SerialException("device reports readiness to read but returned no data")

        assert receiver.drain() == -1
        assert lines == []

        mock_port.fail_read = None
        assert receiver.drain() == 1
        assert lines == ["CNT:1"]

    def test_handler_error_skips_line(self, mock_port: MockSerialPort) -> None:
        """A failing handler does not stop delivery of later lines."""
        lines: list[str] = []

        def handler(line: str) -> None:
            if line == "BOOM":
                raise RuntimeError("listener failed")
            lines.append(line)

        receiver = LineReceiver(handler)
        receiver.attach(mock_port)
        mock_port.inject("BOOM\nCNT:1\n")

        assert receiver.drain() == 1
        assert lines == ["CNT:1"]

    def test_unterminated_flood_dropped(self, mock_port: MockSerialPort) -> None:
        lines: list[str] = []
        receiver = LineReceiver(lines.append)
        receiver.attach(mock_port)

        mock_port.inject("X" * (MAX_PARTIAL_LINE_BYTES + 1))
        assert receiver.drain() == 0

        mock_port.inject("CNT:1\n")
        assert receiver.drain() == 1
        assert lines == ["CNT:1"]


@pytest.mark.unit
class TestReceiverThread:
    """Tests for the background receive thread."""

    def test_delivers_lines(self, mock_port: MockSerialPort) -> None:
        lines: list[str] = []
        receiver = LineReceiver(lines.append, poll_s=0.005)
        receiver.start(mock_port)
        try:
            assert receiver.running
            mock_port.inject("CNT:1\nCNT:1\n")
            assert wait_for(lambda: len(lines) == 2)
        finally:
            receiver.stop()

        assert lines == ["CNT:1", "CNT:1"]
        assert not receiver.running

    def test_thread_is_daemon(self, mock_port: MockSerialPort) -> None:
        receiver = LineReceiver(lambda line: None, poll_s=0.005)
        receiver.start(mock_port)
        try:
            names = {t.name: t for t in threading.enumerate()}
            assert names["winder-rx"].daemon
        finally:
            receiver.stop()

    def test_survives_read_error(self, mock_port: MockSerialPort) -> None:
        """A read error backs off and the thread keeps receiving."""
        lines: list[str] = []
        receiver = LineReceiver(lines.append, poll_s=0.005, error_backoff_s=0.01)
        mock_port.fail_read = OSError(5, "Input/output error")
        mock_port.inject("CNT:1\n")
        receiver.start(mock_port)
        try:
            time.sleep(0.05)
            assert receiver.running
            assert lines == []
            mock_port.fail_read = None
            assert wait_for(lambda: lines == ["CNT:1"])
        finally:
            receiver.stop()

    def test_survives_handler_error(self, mock_port: MockSerialPort) -> None:
        lines: list[str] = []

        def handler(line: str) -> None:
            if line == "BOOM":
                raise RuntimeError("listener failed")
            lines.append(line)

        receiver = LineReceiver(handler, poll_s=0.005)
        receiver.start(mock_port)
        try:
            mock_port.inject("BOOM\n")
            assert wait_for(lambda: mock_port.in_waiting == 0)
            mock_port.inject("CNT:1\n")
            assert wait_for(lambda: lines == ["CNT:1"])
            assert receiver.running
        finally:
            receiver.stop()

    def test_stop_without_start(self) -> None:
        receiver = LineReceiver(lambda line: None)
        receiver.stop()
        assert not receiver.running

    def test_stop_detaches(self, mock_port: MockSerialPort) -> None:
        lines: list[str] = []
        receiver = LineReceiver(lines.append, poll_s=0.005)
        receiver.start(mock_port)
        receiver.stop()

        mock_port.inject("CNT:1\n")
        assert receiver.drain() == 0
        assert lines == []
