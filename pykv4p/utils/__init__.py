# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
pykv4p utilities: thread offload for blocking writes, atomic counters,
logging setup.
"""

import logging
from typing import List

from .threadsafe import AtomicCounter
from .async_thread import run_in_thread

LOG_FORMAT = '%(asctime)s %(name)s %(levelname)s: %(message)s'


def configure_logging(level: str = "INFO") -> None:
    """
    Configure package-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT
    )


__all__: List[str] = [
    'AtomicCounter',
    'run_in_thread',
    'configure_logging',
]
