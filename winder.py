#!/usr/bin/env python3
"""Coil winder serial console."""

import argparse
import logging
import sys

from common.connection import LinkSettings
from common.device import list_ports
from common.protocol import BAUDRATE, LOG_FILE, LOG_LEVEL, SETTLE_WINDOW_S
from link.runner import run_console

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s.%(msecs)03d - %(levelname)s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(log_file: str, verbose: bool = False) -> None:
    """Log to stderr and append timestamped lines to log_file."""
    level = logging.DEBUG if verbose else logging.getLevelName(LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Drive a coil winder over a serial link")
    parser.add_argument(
        "-d", "--device", type=str,
        help="Serial device path (e.g., /dev/ttyUSB0, COM3)")
    parser.add_argument(
        "-l", "--list", action="store_true",
        help="List available serial ports and exit")
    parser.add_argument(
        "-b", "--baudrate", type=int, default=BAUDRATE,
        help=f"Baud rate (default: {BAUDRATE})")
    parser.add_argument(
        "--settle", type=float, default=SETTLE_WINDOW_S,
        help=f"Seconds to wait for the winder to boot after opening (default: {SETTLE_WINDOW_S})")
    parser.add_argument(
        "--log-file", type=str, default=LOG_FILE,
        help=f"Log file, empty to disable (default: {LOG_FILE})")
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging")
    args = parser.parse_args(argv)

    if args.list:
        ports = list_ports()
        if not ports:
            print("No serial ports found")
        for port in ports:
            print(port)
        return 0

    if not args.device:
        parser.error("the following arguments are required: -d/--device")

    try:
        settings = LinkSettings(baudrate=args.baudrate, settle_s=args.settle)
    except ValueError as e:
        parser.error(str(e))

    try:
        configure_logging(args.log_file, args.verbose)
    except OSError as e:
        parser.error(f"cannot open log file {args.log_file}: {e}")
    logger.info("Application started")
    return run_console(args.device, settings)


if __name__ == "__main__":
    sys.exit(main())
