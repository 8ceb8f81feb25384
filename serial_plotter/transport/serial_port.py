"""
serial_port.py
--------------
Line transport for microcontrollers streaming ``Time:t,Name:value,...`` records over a serial port.

Features
- Open/close with input flush and context-manager support
- Threaded reader that splits the byte stream on ``\\n`` and queues complete lines
- Non-blocking ``is_line_available()`` for cooperative polling loops
- ``write_line()`` for outbound ``name:value`` commands
- Port enumeration for the GUI's port picker

Requires: pyserial
    pip install pyserial
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from typing import List, Optional

import serial  # pyserial
from serial import Serial
from serial.tools import list_ports

logger = logging.getLogger(__name__)

LINE_TERMINATOR = b"\n"


def available_ports() -> List[str]:
    """Device names of the serial ports present on this machine."""
    return sorted(port.device for port in list_ports.comports())


class SerialLineTransport:
    """Serial transport that buffers complete lines from a background reader."""

    def __init__(self,
                 port: str,
                 baudrate: int = 9600,
                 timeout: float = 0.05,
                 max_pending: int = 10000,
                 ):
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout

        self.ser: Optional[Serial] = None
        self._reader_thread: Optional[threading.Thread] = None
        self._stop_reader = threading.Event()
        self._lines: "queue.Queue[str]" = queue.Queue(maxsize=max_pending)
        self._buffer = bytearray()
        self.dropped_lines = 0

    # ------------------------- Connection management ------------------------

    def open(self) -> None:
        """Open serial port and start reader thread."""
        if self.ser and self.ser.is_open:
            return
        try:
            self.ser = serial.Serial(self.port, self.baudrate, timeout=self.timeout)
        except serial.SerialException as exc:
            raise ConnectionError(f"Could not open serial port {self.port}: {exc}") from exc
        self.flush_input()
        self._stop_reader.clear()
        self._reader_thread = threading.Thread(target=self._reader_loop, name=f"serial-reader-{self.port}", daemon=True)
        self._reader_thread.start()
        logger.info("Opened %s at %d baud", self.port, self.baudrate)

    def close(self) -> None:
        """Stop reader and close port."""
        self._stop_reader.set()
        if self._reader_thread and self._reader_thread.is_alive():
            self._reader_thread.join(timeout=1.0)
        self._reader_thread = None
        if self.ser and self.ser.is_open:
            try:
                self.ser.close()
            except serial.SerialException as exc:
                logger.warning("Error while closing %s: %s", self.port, exc)
            logger.info("Closed %s", self.port)

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def is_open(self) -> bool:
        return bool(self.ser and self.ser.is_open)

    # ------------------------------- Reader ---------------------------------

    def _reader_loop(self):
        while not self._stop_reader.is_set():
            try:
                if not self.ser or not self.ser.is_open:
                    break
                chunk = self.ser.read(256)
                if chunk:
                    self.feed(chunk)
                else:
                    time.sleep(0.005)
            except serial.SerialException:
                logger.exception("Reader error on %s; stopping reader", self.port)
                break

    def feed(self, chunk: bytes) -> None:
        """Append raw bytes and queue every complete line they finish."""
        self._buffer.extend(chunk)
        while LINE_TERMINATOR in self._buffer:
            raw, _, rest = self._buffer.partition(LINE_TERMINATOR)
            self._buffer = bytearray(rest)
            line = raw.decode("ascii", errors="ignore").strip()
            if not line:
                continue
            try:
                self._lines.put_nowait(line)
            except queue.Full:
                self.dropped_lines += 1
                logger.warning("Line queue full on %s; dropped %r", self.port, line)

    # ----------------------------- Line access ------------------------------

    def is_line_available(self) -> bool:
        return not self._lines.empty()

    def read_line(self, timeout: Optional[float] = None) -> str:
        """Return the next complete line, waiting up to ``timeout`` seconds."""
        try:
            return self._lines.get(timeout=timeout)
        except queue.Empty:
            raise TimeoutError(f"No line received from {self.port}") from None

    def write_line(self, line: str) -> None:
        """Write a single line with newline termination (no waiting)."""
        if not self.ser or not self.ser.is_open:
            raise RuntimeError("Serial not open")
        if not line.endswith("\n"):
            line += "\n"
        self.ser.write(line.encode("ascii"))

    def flush_input(self):
        if self.ser and self.ser.in_waiting:
            try:
                self.ser.reset_input_buffer()
            except serial.SerialException as exc:
                logger.warning("Could not flush input on %s: %s", self.port, exc)
        self._buffer.clear()
