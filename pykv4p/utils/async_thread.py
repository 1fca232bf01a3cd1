# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
pykv4p.utils.async_thread

Provides:
- run_in_thread: Run a blocking link write on the writer thread without
  blocking the event loop

Serial writes may block for up to the write timeout. The writer pool has
a single thread, so writes submitted from coroutines reach the link in
submission order.
"""

import asyncio
import atexit
import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Callable

logger = logging.getLogger(__name__)

WRITER_THREAD_PREFIX = 'KV4PWriter'

_WRITER = ThreadPoolExecutor(max_workers=1, thread_name_prefix=WRITER_THREAD_PREFIX)


async def run_in_thread(func: Callable[..., Any], *args, **kwargs) -> Any:
    """
    Run a blocking call on the writer thread.

    Cancelling the awaiting task does not interrupt a call that has
    already started; the write still completes on the link.

    Returns:
        Result of func(*args, **kwargs)

    Example:
        await run_in_thread(link.write, chunk)
    """
    loop = asyncio.get_running_loop()
    future = loop.run_in_executor(_WRITER, partial(func, *args, **kwargs))
    try:
        return await future
    except asyncio.CancelledError:
        logger.debug(f"Caller cancelled while {getattr(func, '__name__', func)} ran")
        raise


@atexit.register
def _close_writer() -> None:
    _WRITER.shutdown(wait=False)
