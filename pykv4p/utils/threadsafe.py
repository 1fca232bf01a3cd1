# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
pykv4p.utils.threadsafe

Provides:
- AtomicCounter: Thread-safe integer counter, used for session statistics
"""

import threading


class AtomicCounter:
    """
    Thread-safe atomic counter.

    Args:
        initial: Initial value (default 0)
    """
    def __init__(self, initial: int = 0):
        self._value = initial
        self._lock = threading.Lock()

    def increment(self, amount: int = 1) -> int:
        """Add amount and return the new value."""
        with self._lock:
            self._value += amount
            return self._value

    def set(self, value: int) -> None:
        with self._lock:
            self._value = value

    def get(self) -> int:
        with self._lock:
            return self._value

    def __int__(self) -> int:
        return self.get()

    def __repr__(self) -> str:
        return f"AtomicCounter(value={self.get()})"
