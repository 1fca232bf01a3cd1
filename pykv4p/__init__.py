# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
PyKV4P - Host-side driver for ESP32-bridged VHF/UHF radios

Provides:
- Framed command protocol (tune, filters, PTT, stop, firmware version)
- STARTUP/RX/TX mode state machine with firmware handshake
- Real-time paced TX audio and raw RX audio notifications
- Serial link over pyserial
"""

__version__ = "0.1.0"

# Configuration
from .config import RadioConfig, DEFAULT_CONFIG

# Core protocol
from .core.framing import (
    ESP32Command,
    encode_command,
    decode_command
)
from .core.statemachine import (
    RadioMode,
    RadioStateMachine
)
from .core.validation import (
    make_safe_2m_freq,
    TuneParameters,
    FilterSettings
)

# Links
from .interfaces import (
    BaseLink,
    SerialLink
)

# Session
from .session import RadioSession, SessionStats

# Exceptions
from .exceptions import (
    RadioError,
    ValidationError,
    ConfigurationError,
    RadioConnectionError,
    RadioTimeoutError,
    RadioIOError,
    ProtocolError
)

# Utilities
from .utils import configure_logging

__all__ = [
    # Config
    'RadioConfig',
    'DEFAULT_CONFIG',

    # Core
    'ESP32Command',
    'encode_command',
    'decode_command',
    'RadioMode',
    'RadioStateMachine',
    'make_safe_2m_freq',
    'TuneParameters',
    'FilterSettings',

    # Links
    'BaseLink',
    'SerialLink',

    # Session
    'RadioSession',
    'SessionStats',

    # Exceptions
    'RadioError',
    'ValidationError',
    'ConfigurationError',
    'RadioConnectionError',
    'RadioTimeoutError',
    'RadioIOError',
    'ProtocolError',

    # Utilities
    'configure_logging',
    'get_version',

    # Metadata
    '__version__'
]


def get_version() -> str:
    """Return the package version."""
    return __version__
