# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
pykv4p.core.handshake

Firmware version handshake parser.

After GET_FIRMWARE_VER the bridge answers with plain text containing
``VERSION`` followed by an 8-digit version number, e.g.
``VERSION00000001``. The reply may be split across any number of reads,
so inbound text is accumulated until the full token is present.
"""

import logging
import re
import threading
from typing import Optional

from ..exceptions import ProtocolError

logger = logging.getLogger(__name__)

VERSION_MARKER = b"VERSION"
VERSION_TOKEN_LEN = 8

_TOKEN_RE = re.compile(rb"[0-9]{%d}" % VERSION_TOKEN_LEN)


class VersionHandshake:
    """
    Accumulating parser for the firmware version reply.

    Args:
        min_version: Lowest acceptable firmware version
    """

    def __init__(self, min_version: int = 1):
        self.min_version = min_version
        self._buffer = b""
        self._remainder = b""
        self._lock = threading.Lock()

    @property
    def buffered(self) -> str:
        with self._lock:
            return self._buffer.decode('ascii', errors='replace')

    def reset(self) -> None:
        with self._lock:
            self._buffer = b""
            self._remainder = b""

    def take_remainder(self) -> bytes:
        """Return and forget the bytes that followed an accepted token."""
        with self._lock:
            remainder, self._remainder = self._remainder, b""
            return remainder

    def feed(self, data: bytes) -> Optional[int]:
        """
        Add inbound bytes and try to complete the handshake.

        The buffer is cleared once a token has been consumed, whether it
        was accepted or not. Bytes after an accepted token are kept for
        take_remainder(); they are the first audio after the handshake.

        Returns:
            Firmware version when accepted, None while incomplete

        Raises:
            ProtocolError: Token not numeric, or below min_version
        """
        with self._lock:
            self._buffer += bytes(data)

            idx = self._buffer.find(VERSION_MARKER)
            if idx < 0:
                # Keep enough tail for a marker split across reads
                self._buffer = self._buffer[-(len(VERSION_MARKER) - 1):]
                return None

            start = idx + len(VERSION_MARKER)
            end = start + VERSION_TOKEN_LEN
            if len(self._buffer) < end:
                self._buffer = self._buffer[idx:]
                return None

            token = self._buffer[start:end]
            remainder = self._buffer[end:]
            self._buffer = b""

        if not _TOKEN_RE.fullmatch(token):
            raise ProtocolError(
                f"Invalid firmware version format: "
                f"{token.decode('ascii', errors='replace')!r}"
            )
        version = int(token)
        if version < self.min_version:
            raise ProtocolError(
                f"Unsupported firmware version {version} "
                f"(minimum {self.min_version})"
            )
        with self._lock:
            self._remainder = remainder
        logger.info(f"Firmware version {version} accepted")
        return version

    def __repr__(self) -> str:
        return f"VersionHandshake(min_version={self.min_version})"


__all__ = ['VERSION_MARKER', 'VERSION_TOKEN_LEN', 'VersionHandshake']
