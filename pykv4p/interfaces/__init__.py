# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
PyKV4P Link Interfaces

Provides:
- Serial link to the ESP32 bridge
- Base class for custom links
"""

from .transport import BaseLink
from .serial_link import SerialLink

__all__ = [
    'BaseLink',
    'SerialLink'
]
