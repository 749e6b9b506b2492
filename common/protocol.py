"""Protocol definitions for the coil winder link.

Contains:
- Wire prefixes for outbound commands and inbound messages
- SerialPort Protocol for type checking
- Serial parameters and timing constants (environment overridable)
- Logging configuration
"""

import logging
import os
from typing import Protocol

# TRACE logging level (below DEBUG), used for raw frame traffic
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Outbound command lines
CMD_START = "CMD:START"
CMD_STOP = "CMD:STOP"
CMD_RESET = "CMD:RESET"
CFG_PREFIX = "CFG:"
LINE_TERMINATOR = "\n"
WIRE_ENCODING = "ascii"

# Inbound message prefixes
CNT_PREFIX = "CNT:"
STATUS_PREFIX = "STATUS:"
PROG_PREFIX = "PROG:"
TURNS_PREFIX = "STATUS:Voltas:"
REAL_TURNS_PREFIX = "STATUS:Voltas Reais: "

# A repeated marker found at or past these offsets means a duplicated frame
STATUS_REPEAT_OFFSET = 7
PROG_REPEAT_OFFSET = 5


class SerialPort(Protocol):
    """Protocol for the serial port operations used by the link."""

    def write(self, data: bytes, /) -> int | None: ...
    def readline(self, size: int = ..., /) -> bytes: ...
    def reset_input_buffer(self) -> None: ...
    def reset_output_buffer(self) -> None: ...
    def close(self) -> None: ...
    @property
    def in_waiting(self) -> int: ...
    @property
    def is_open(self) -> bool: ...


# Serial parameters (115200 8N1, DTR/RTS asserted)
BAUDRATE = int(os.environ.get("WINDER_BAUDRATE", "115200"))
SERIAL_TIMEOUT_S = 0.5  # Read and write timeout

# Microcontroller reboots when the port opens; commands are refused until then
SETTLE_WINDOW_S = float(os.environ.get("WINDER_SETTLE_S", "2.5"))

WRITE_PACING_S = 0.05  # Delay after every write
RESET_START_GAP_S = 0.1  # Gap between RESET and START when starting a run

# Receiver polling of the "bytes available" count
RECEIVER_POLL_S = 0.01
RECEIVER_ERROR_BACKOFF_S = 0.5

# Longest unterminated line held across drain passes
MAX_PARTIAL_LINE_BYTES = 256

LOG_FILE = os.environ.get("WINDER_LOG_FILE", "bobinadeira_log.txt")
LOG_LEVEL = os.environ.get("WINDER_LOG_LEVEL", "INFO")
