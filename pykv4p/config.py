# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
pykv4p.config

Link and protocol parameters for the ESP32 radio bridge.

The defaults match the bridge firmware and should only be changed for
testing or for alternative firmware builds:
- 921600 baud, 8-N-1, 1 s read/write timeouts
- 44.1 kHz audio, 512-byte outbound chunks
- minimum firmware version 1
- 2 m band limits 144.000-148.000 MHz
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class RadioConfig:
    """
    Immutable driver configuration.

    Args:
        baudrate: Serial speed in bits per second
        bytesize: Data bits per character
        parity: Parity ('N', 'E', 'O')
        stopbits: Stop bits (1 or 2)
        read_timeout: Serial read timeout in seconds
        write_timeout: Serial write timeout in seconds
        sample_rate: Nominal audio sample rate in Hz, used for pacing
        chunk_size: Maximum outbound audio chunk in bytes
        min_firmware_version: Lowest firmware version accepted at handshake
        band_low: Lower frequency clamp in MHz
        band_high: Upper frequency clamp in MHz
        default_frequency: Substituted when a frequency cannot be parsed
    """
    baudrate: int = 921600
    bytesize: int = 8
    parity: str = 'N'
    stopbits: int = 1
    read_timeout: float = 1.0
    write_timeout: float = 1.0
    sample_rate: int = 44100
    chunk_size: int = 512
    min_firmware_version: int = 1
    band_low: float = 144.0
    band_high: float = 148.0
    default_frequency: float = 146.520

    def __post_init__(self) -> None:
        if self.baudrate <= 0:
            raise ConfigurationError(f"Invalid baudrate {self.baudrate}")
        if self.bytesize not in (5, 6, 7, 8):
            raise ConfigurationError(f"Invalid bytesize {self.bytesize}")
        if self.parity not in ('N', 'E', 'O', 'M', 'S'):
            raise ConfigurationError(f"Invalid parity {self.parity!r}")
        if self.stopbits not in (1, 2):
            raise ConfigurationError(f"Invalid stopbits {self.stopbits}")
        if self.read_timeout <= 0 or self.write_timeout <= 0:
            raise ConfigurationError("Timeouts must be positive")
        if self.sample_rate <= 0:
            raise ConfigurationError(f"Invalid sample rate {self.sample_rate}")
        if self.chunk_size <= 0:
            raise ConfigurationError(f"Invalid chunk size {self.chunk_size}")
        if self.min_firmware_version < 0:
            raise ConfigurationError("Minimum firmware version cannot be negative")
        if not 0 < self.band_low < self.band_high:
            raise ConfigurationError(
                f"Invalid band {self.band_low}-{self.band_high} MHz"
            )
        if not self.band_low <= self.default_frequency <= self.band_high:
            raise ConfigurationError(
                f"Default frequency {self.default_frequency} outside band"
            )

    def replace(self, **changes) -> 'RadioConfig':
        """Return a copy with the given fields changed (re-validated)."""
        return dataclasses.replace(self, **changes)

    def chunk_duration(self, size: int) -> float:
        """Nominal playback time of `size` audio bytes, in seconds."""
        return size / self.sample_rate


DEFAULT_CONFIG = RadioConfig()

__all__ = ['RadioConfig', 'DEFAULT_CONFIG']
