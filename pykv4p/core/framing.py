# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
pykv4p.core.framing

ESP32 bridge command frame encoding.

Frame layout::

    FF 00 FF 00 FF 00 FF 00 | CMD | PARAMS (ASCII, optional)

There is no length prefix and no checksum; the firmware knows each
command's parameter length. Inbound traffic is not framed at all: it is
raw audio or raw handshake text, told apart by the current RadioMode
(see statemachine.classify_inbound).
"""

import logging
from enum import IntEnum
from typing import Optional, Tuple, Union

from ..exceptions import ValidationError, ProtocolError

logger = logging.getLogger(__name__)

# Constants
COMMAND_DELIMITER = bytes([0xFF, 0x00] * 4)
HEADER_LEN = len(COMMAND_DELIMITER) + 1


class ESP32Command(IntEnum):
    """Command bytes understood by the bridge firmware"""
    PTT_DOWN = 1
    PTT_UP = 2
    TUNE_TO = 3
    FILTERS = 4
    STOP = 5
    GET_FIRMWARE_VER = 6


def _coerce_command(command: Union[ESP32Command, int]) -> ESP32Command:
    try:
        return ESP32Command(command)
    except ValueError:
        raise ValidationError(f"Unknown command code: {command!r}") from None


def encode_command(
    command: Union[ESP32Command, int],
    params: Optional[str] = None
) -> bytes:
    """
    Build a command frame.

    Args:
        command: Command code
        params: Optional ASCII parameter string

    Returns:
        Delimiter + command byte + ASCII-encoded params

    Raises:
        ValidationError: Unknown command or non-ASCII params
    """
    cmd = _coerce_command(command)
    payload = b''
    if params:
        try:
            payload = params.encode('ascii')
        except UnicodeEncodeError as e:
            raise ValidationError(f"Parameters must be ASCII: {params!r}") from e
    frame = COMMAND_DELIMITER + bytes([cmd]) + payload
    logger.debug(f"Encoded {cmd.name} frame ({len(payload)} param bytes)")
    return frame


def decode_command(frame: bytes) -> Tuple[ESP32Command, str]:
    """
    Parse a command frame back into (command, params).

    Used for loopback testing and wire diagnostics; the bridge never
    sends framed data back to the host.

    Raises:
        ProtocolError: Missing delimiter, truncated or unknown command
    """
    if len(frame) < HEADER_LEN or not frame.startswith(COMMAND_DELIMITER):
        raise ProtocolError(f"Not a command frame: {frame[:HEADER_LEN].hex()}")
    try:
        cmd = ESP32Command(frame[len(COMMAND_DELIMITER)])
    except ValueError:
        raise ProtocolError(
            f"Unknown command byte 0x{frame[len(COMMAND_DELIMITER)]:02x}"
        ) from None
    try:
        params = frame[HEADER_LEN:].decode('ascii')
    except UnicodeDecodeError as e:
        raise ProtocolError("Non-ASCII command parameters") from e
    return cmd, params


__all__ = [
    'COMMAND_DELIMITER',
    'ESP32Command',
    'encode_command',
    'decode_command',
]
