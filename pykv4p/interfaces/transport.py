# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
pykv4p.interfaces.transport

Base link interface.

A link owns the byte stream to the bridge: open/close, raw writes, and an
inbound-data signal. It knows nothing about the command protocol.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Optional, Callable

logger = logging.getLogger(__name__)


class BaseLink(ABC):
    """
    Abstract base class for byte links.

    Attributes:
        on_data_received: Callback for inbound byte chunks, invoked from the
            link's receive context in arrival order
        on_error: Callback for faults found in the receive context
    """
    def __init__(self):
        self.on_data_received: Optional[Callable[[bytes], None]] = None
        self.on_error: Optional[Callable[[Exception], None]] = None
        self._lock = threading.Lock()

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """True while the link can be written"""

    @abstractmethod
    def open(self) -> None:
        """
        Open the link. No-op if already open.

        Raises:
            RadioConnectionError: Device missing or access denied
        """

    @abstractmethod
    def close(self) -> None:
        """Close the link. Safe to call repeatedly or when never opened."""

    @abstractmethod
    def write(self, data: bytes) -> None:
        """
        Write all bytes.

        Raises:
            RadioConnectionError: Link not open
            RadioTimeoutError: Not accepted within the write timeout
            RadioIOError: Any other transport fault
        """

    def _handle_data(self, data: bytes) -> None:
        """Deliver an inbound chunk to the registered callback"""
        if not data:
            return
        if self.on_data_received:
            try:
                self.on_data_received(data)
            except Exception as e:
                logger.error(f"Data handler error: {e}")
        else:
            logger.debug(f"Dropped {len(data)} inbound bytes (no handler)")

    def _handle_error(self, error: Exception) -> None:
        """Internal error handling"""
        logger.error(f"Link error: {error}")
        if self.on_error:
            try:
                self.on_error(error)
            except Exception as e:
                logger.error(f"Error callback failed: {e}")

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(open={self.is_open})"
