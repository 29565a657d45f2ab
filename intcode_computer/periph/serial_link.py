"""
Intcode Computer — Serial I/O Channel

Drives a Computer's IN/OUT over a serial port (or any pyserial URL,
e.g. socket://host:port, rfc2217://, loop:// for tests). Values travel
as ASCII decimal lines terminated by '\\n'.

Read semantics:
  - a complete line that parses     -> that value
  - a malformed line                -> logged and skipped
  - timeout with no complete line   -> None (Computer WAITING_ON_INPUT);
                                       any partial line is kept and
                                       completed by the next read

Usage:
    with SerialIo('/dev/ttyUSB0', baudrate=115200) as io:
        computer = Computer(program, io)
        state = computer.run()

Requirements:
  pip install pyserial
"""

from __future__ import annotations

import logging
from typing import Optional

import serial

from ..config import SERIAL_BAUD, SERIAL_TIMEOUT, SERIAL_LINE_END, SERIAL_ENCODING
from .base import ComputerIo

log = logging.getLogger(__name__)


class SerialIo(ComputerIo):
    """Integer-per-line channel over a pyserial port."""

    def __init__(self, url: str, baudrate: int = SERIAL_BAUD,
                 timeout: float = SERIAL_TIMEOUT):
        self.url = url
        self.baudrate = baudrate
        self.timeout = timeout
        self.serial: Optional[serial.SerialBase] = None
        self._partial = b""

    # --- Connection ---

    def open(self):
        """Open the port. Raises serial.SerialException on failure."""
        self.serial = serial.serial_for_url(
            self.url,
            baudrate=self.baudrate,
            timeout=self.timeout,
            write_timeout=self.timeout,
        )
        log.debug("Opened %s at %d baud", self.url, self.baudrate)

    def close(self):
        if self.serial and self.serial.is_open:
            self.serial.close()
            log.debug("Closed %s", self.url)
        self._partial = b""

    def __enter__(self) -> "SerialIo":
        if not self.serial or not self.serial.is_open:
            self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _port(self) -> serial.SerialBase:
        if not self.serial or not self.serial.is_open:
            raise serial.SerialException(f"{self.url} is not open")
        return self.serial

    # --- ComputerIo ---

    def try_read(self, prompt: str) -> Optional[int]:
        port = self._port()
        while True:
            chunk = port.readline()
            if not chunk.endswith(SERIAL_LINE_END):
                # Timed out mid-line (or with nothing at all)
                self._partial += chunk
                return None

            line, self._partial = self._partial + chunk, b""
            text = line.decode(SERIAL_ENCODING, errors="replace").strip()
            try:
                return int(text)
            except ValueError:
                log.warning("Skipping malformed line from %s: %r", self.url, text)

    def write(self, value: int):
        self.send(value)

    # --- External API ---

    def send(self, value: int):
        """Transmit one value as a decimal line."""
        port = self._port()
        port.write(f"{value}".encode(SERIAL_ENCODING) + SERIAL_LINE_END)
        port.flush()
