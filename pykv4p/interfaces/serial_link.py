# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
pykv4p.interfaces.serial_link

Serial port link to the ESP32 bridge.

Implements:
- 921600-8-N-1 serial port with fixed read/write timeouts (from RadioConfig)
- Background reader thread that drains whatever is available and hands
  it to on_data_received
- Mapping of pyserial faults onto the pykv4p exception taxonomy
"""

import logging
import threading
from typing import Optional

import serial

from .transport import BaseLink
from ..config import RadioConfig, DEFAULT_CONFIG
from ..exceptions import RadioConnectionError, RadioTimeoutError, RadioIOError

logger = logging.getLogger(__name__)


class SerialLink(BaseLink):
    """
    Serial port link.

    Args:
        port: Serial device, e.g. "/dev/ttyUSB0" or "COM3"
        config: Line settings and timeouts
    """

    def __init__(self, port: str, config: Optional[RadioConfig] = None):
        super().__init__()
        self.port = port
        self.config = config or DEFAULT_CONFIG
        self._serial: Optional[serial.Serial] = None
        self._running = False
        self._thread: Optional[threading.Thread] = None

    @property
    def is_open(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def open(self) -> None:
        """Open serial port and start the reader thread"""
        with self._lock:
            if self.is_open:
                return
            try:
                self._serial = serial.Serial(
                    port=self.port,
                    baudrate=self.config.baudrate,
                    bytesize=self.config.bytesize,
                    parity=self.config.parity,
                    stopbits=self.config.stopbits,
                    timeout=self.config.read_timeout,
                    write_timeout=self.config.write_timeout,
                )
            except (serial.SerialException, OSError, ValueError) as e:
                self._serial = None
                raise RadioConnectionError(f"Cannot open port {self.port}: {e}") from e
            logger.info(f"Opened serial port {self.port}@{self.config.baudrate}")

        self._running = True
        self._thread = threading.Thread(
            target=self._receive_loop,
            name=f"KV4P-Reader-{self.port}",
            daemon=True
        )
        self._thread.start()

    def close(self) -> None:
        """Stop the reader thread and close the serial port"""
        self._running = False
        ser = self._serial
        if ser is not None and ser.is_open:
            try:
                ser.cancel_read()
            except (serial.SerialException, OSError, AttributeError) as e:
                logger.debug(f"cancel_read failed: {e}")

        thread = self._thread
        if thread and thread is not threading.current_thread():
            thread.join(timeout=self.config.read_timeout + 1.0)
        self._thread = None

        with self._lock:
            if self._serial is not None:
                try:
                    self._serial.close()
                except (serial.SerialException, OSError) as e:
                    raise RadioConnectionError(f"Cannot close port {self.port}: {e}") from e
                finally:
                    self._serial = None
                logger.info(f"Closed serial port {self.port}")

    def write(self, data: bytes) -> None:
        with self._lock:
            if not self.is_open:
                raise RadioConnectionError(f"Port {self.port} is not open")
            try:
                written = self._serial.write(data)
            except serial.SerialTimeoutException as e:
                raise RadioTimeoutError(f"Write timed out on {self.port}") from e
            except (serial.SerialException, OSError) as e:
                raise RadioIOError(f"Write failed on {self.port}: {e}") from e
            if written is not None and written != len(data):
                raise RadioTimeoutError(
                    f"Incomplete write: sent {written}/{len(data)} bytes"
                )
        logger.debug(f"Wrote {len(data)} bytes to {self.port}")

    def _receive_loop(self) -> None:
        """Main receive loop (runs in thread)"""
        while self._running:
            ser = self._serial
            if ser is None:
                break
            try:
                data = ser.read(ser.in_waiting or 1)
            except (serial.SerialException, OSError, TypeError) as e:
                if not self._running:
                    break
                self._running = False
                self._handle_error(RadioIOError(f"Read failed on {self.port}: {e}"))
                break
            if data:
                self._handle_data(data)
        logger.debug(f"Reader for {self.port} stopped")

    def __repr__(self) -> str:
        return f"SerialLink(port={self.port!r}, open={self.is_open})"


__all__ = ['SerialLink']
