# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
tests/test_async_thread.py

Unit tests for the writer thread helper.

Covers:
- Results and exceptions pass through
- Calls run on the writer thread, in submission order
"""

import asyncio
import threading

import pytest

from pykv4p.exceptions import RadioIOError
from pykv4p.utils.async_thread import WRITER_THREAD_PREFIX, run_in_thread


@pytest.mark.asyncio
async def test_returns_result():
    assert await run_in_thread(lambda a, b=0: a + b, 2, b=3) == 5


@pytest.mark.asyncio
async def test_exception_propagates():
    def failing_write(data):
        raise RadioIOError("gone")

    with pytest.raises(RadioIOError):
        await run_in_thread(failing_write, b"\x00")


@pytest.mark.asyncio
async def test_runs_on_writer_thread():
    name = await run_in_thread(lambda: threading.current_thread().name)
    assert name.startswith(WRITER_THREAD_PREFIX)
    assert name != threading.current_thread().name


@pytest.mark.asyncio
async def test_submission_order_kept():
    written = []
    await asyncio.gather(*(run_in_thread(written.append, i) for i in range(20)))
    assert written == list(range(20))
