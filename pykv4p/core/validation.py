# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
pykv4p.core.validation

Validation and encoding of TUNE_TO and FILTERS parameters.

TUNE_TO parameter layout (17 ASCII bytes)::

    TXFREQ (7, NNN.NNN) | RXFREQ (7, NNN.NNN) | TONE (2) | SQUELCH (1)

FILTERS parameter layout (3 ASCII bytes)::

    EMPHASIS | HIGHPASS | LOWPASS     each '0' or '1'

All checks run before anything is written to the link.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Optional, Union

from ..config import RadioConfig, DEFAULT_CONFIG
from ..exceptions import ValidationError

logger = logging.getLogger(__name__)

FREQ_FIELD_LEN = 7
TONE_FIELD_LEN = 2
SQUELCH_FIELD_LEN = 1
TUNE_PARAMS_LEN = 2 * FREQ_FIELD_LEN + TONE_FIELD_LEN + SQUELCH_FIELD_LEN

# Plain ASCII decimal with optional sign and exponent; no "_" separators
_DECIMAL_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def make_safe_2m_freq(
    freq: Union[str, float],
    config: Optional[RadioConfig] = None
) -> str:
    """
    Normalize a frequency to the 2 m band as a 7-character string.

    Steps:
    - parse as a plain decimal, substituting the default (146.520) otherwise
    - divide by 10 while above the band top (recovers "1465200")
    - clamp into [band_low, band_high]
    - format as NNN.NNN

    Args:
        freq: Frequency in MHz, usually user text
        config: Band limits and default frequency

    Returns:
        Formatted frequency, e.g. "146.520"
    """
    config = config or DEFAULT_CONFIG
    text = str(freq).strip()
    if _DECIMAL_RE.fullmatch(text):
        value = float(text)
    else:
        logger.warning(f"Unparsable frequency {freq!r}, using {config.default_frequency}")
        value = config.default_frequency
    if not math.isfinite(value):
        logger.warning(f"Non-finite frequency {freq!r}, using {config.default_frequency}")
        value = config.default_frequency

    while value > config.band_high:
        value /= 10.0

    value = min(value, config.band_high)
    value = max(value, config.band_low)
    return f"{value:07.3f}"


def format_tone(tone: int) -> str:
    """Encode a tone code 0-99 as two zero-padded digits."""
    if isinstance(tone, bool) or not isinstance(tone, int):
        raise ValidationError(f"Tone must be an integer, got {tone!r}")
    if not 0 <= tone <= 99:
        raise ValidationError(f"Tone must be 00-99, got {tone}")
    return f"{tone:02d}"


def format_squelch(squelch: int) -> str:
    """Encode a squelch level; it must already be a single digit."""
    if isinstance(squelch, bool) or not isinstance(squelch, int):
        raise ValidationError(f"Squelch level must be an integer, got {squelch!r}")
    text = str(squelch)
    if len(text) != SQUELCH_FIELD_LEN:
        raise ValidationError(f"Squelch level must be a single digit (0-9), got {squelch}")
    return text


@dataclass(frozen=True)
class TuneParameters:
    """
    Normalized TUNE_TO parameters.

    Build with TuneParameters.create() so frequencies are normalized and
    tone/squelch validated.
    """
    tx_frequency: str
    rx_frequency: str
    tone: int
    squelch: int

    @classmethod
    def create(
        cls,
        tx_frequency: str,
        rx_frequency: str,
        tone: int,
        squelch: int,
        config: Optional[RadioConfig] = None
    ) -> 'TuneParameters':
        """
        Validate and normalize user input.

        Raises:
            ValidationError: Empty frequency, bad tone or squelch
        """
        if tx_frequency is None or not str(tx_frequency).strip():
            raise ValidationError("Transmit frequency cannot be empty")
        if rx_frequency is None or not str(rx_frequency).strip():
            raise ValidationError("Receive frequency cannot be empty")
        format_tone(tone)
        format_squelch(squelch)
        return cls(
            tx_frequency=make_safe_2m_freq(tx_frequency, config),
            rx_frequency=make_safe_2m_freq(rx_frequency, config),
            tone=tone,
            squelch=squelch,
        )

    def encode(self) -> str:
        params = (
            self.tx_frequency
            + self.rx_frequency
            + format_tone(self.tone)
            + format_squelch(self.squelch)
        )
        if len(params) != TUNE_PARAMS_LEN:
            raise ValidationError(f"Malformed tune parameters {params!r}")
        return params


@dataclass(frozen=True)
class FilterSettings:
    """Audio filter switches, sent in the order emphasis, highpass, lowpass"""
    emphasis: bool = False
    highpass: bool = False
    lowpass: bool = False

    def encode(self) -> str:
        return ''.join(
            '1' if flag else '0'
            for flag in (self.emphasis, self.highpass, self.lowpass)
        )


__all__ = [
    'TUNE_PARAMS_LEN',
    'make_safe_2m_freq',
    'format_tone',
    'format_squelch',
    'TuneParameters',
    'FilterSettings',
]
