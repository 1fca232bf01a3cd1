# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
PyKV4P Core Module - ESP32 bridge protocol

Contains:
- Command frame encoding
- TUNE_TO / FILTERS parameter validation
- Radio mode state machine and inbound routing
- Firmware version handshake
- Real-time audio pacing
"""

# Frame construction
from .framing import (
    COMMAND_DELIMITER,
    ESP32Command,
    encode_command,
    decode_command
)

# Parameter encoding
from .validation import (
    make_safe_2m_freq,
    format_tone,
    format_squelch,
    TuneParameters,
    FilterSettings
)

# Mode management
from .statemachine import (
    RadioMode,
    InboundRoute,
    classify_inbound,
    RadioStateMachine
)
from .handshake import VersionHandshake
from .pacing import AudioPacer

# Public API
__all__ = [
    # Framing
    'COMMAND_DELIMITER',
    'ESP32Command',
    'encode_command',
    'decode_command',

    # Validation
    'make_safe_2m_freq',
    'format_tone',
    'format_squelch',
    'TuneParameters',
    'FilterSettings',

    # State machine
    'RadioMode',
    'InboundRoute',
    'classify_inbound',
    'RadioStateMachine',
    'VersionHandshake',

    # Pacing
    'AudioPacer'
]
