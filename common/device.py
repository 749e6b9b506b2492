"""Serial device setup and port enumeration for the coil winder link.

Contains:
- list_ports: Enumerate available serial ports
- log_device_info: Log information about a serial device
- open_serial: Open and configure a serial port for the winder
"""

import logging
import os

import serial
import serial.tools.list_ports

from common.protocol import BAUDRATE, SERIAL_TIMEOUT_S

logger = logging.getLogger(__name__)


def list_ports() -> list[str]:
    """Return the device names of the available serial ports, sorted."""
    return sorted(p.device for p in serial.tools.list_ports.comports())


def log_device_info(device: str) -> None:
    """Log information about a serial device."""
    real_path = os.path.realpath(device)
    if real_path.startswith("/dev/pts/"):
        logger.info(f"Device: {device} -> {real_path} (pty)")
        return

    ports = [p for p in serial.tools.list_ports.comports() if p.device == device]
    if not ports:
        logger.info(f"Device: {device} (not in port list)")
        return

    info = ports[0]
    logger.info(f"Device: {info.device}")
    logger.info(f"Description: {info.description}")
    if info.vid is not None:
        logger.info(f"VID:PID: {info.vid:04x}:{info.pid:04x}")


def open_serial(
    device: str,
    baudrate: int = BAUDRATE,
    timeout_s: float = SERIAL_TIMEOUT_S,
) -> serial.Serial:
    """Open a serial port with the winder's line settings (8N1, DTR/RTS asserted).

    Raises serial.SerialException if the port is busy, missing or not permitted.
    """
    log_device_info(device)
    ser = serial.Serial()
    ser.port = device
    ser.baudrate = baudrate
    ser.bytesize = serial.EIGHTBITS
    ser.parity = serial.PARITY_NONE
    ser.stopbits = serial.STOPBITS_ONE
    ser.xonxoff = False
    ser.rtscts = False
    ser.timeout = timeout_s
    ser.write_timeout = timeout_s
    ser.dtr = True
    ser.rts = True
    ser.open()
    logger.debug(
        f"Serial port: baudrate={ser.baudrate}, timeout={ser.timeout}s, "
        f"dtr={ser.dtr}, rts={ser.rts}"
    )
    return ser
