# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
pykv4p.core.pacing

Real-time pacing of outbound audio.

The bridge has a small receive buffer, so TX audio is written in chunks of
at most chunk_size bytes, and after each chunk the sender sleeps for
whatever is left of that chunk's playback time::

    delay = chunk_bytes / sample_rate - write_elapsed

A slow write is never made up for: pacing only prevents overrunning the
bridge, it does not try to catch up. Time is measured with a monotonic
clock. Writes run in a worker thread and no lock is held while sleeping.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from .statemachine import RadioMode, RadioStateMachine
from ..config import RadioConfig, DEFAULT_CONFIG
from ..exceptions import ValidationError
from ..interfaces.transport import BaseLink
from ..utils.async_thread import run_in_thread

logger = logging.getLogger(__name__)


class AudioPacer:
    """
    Chunked, rate-limited audio sender.

    Args:
        link: Link to write chunks to
        state: Mode state machine; audio is only sent in TX
        config: Sample rate and chunk size
        clock: Monotonic time source in seconds
        sleep: Coroutine used to wait between chunks
        on_sent: Called with the size of each chunk once it is written
    """

    def __init__(
        self,
        link: BaseLink,
        state: RadioStateMachine,
        config: Optional[RadioConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_sent: Optional[Callable[[int], None]] = None
    ):
        self.link = link
        self.state = state
        self.config = config or DEFAULT_CONFIG
        self._clock = clock
        self._sleep = sleep
        self._on_sent = on_sent

    async def send(
        self,
        buffer: bytes,
        offset: int = 0,
        count: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> int:
        """
        Send buffer[offset:offset + count] at real-time rate.

        Does nothing outside TX mode. Stops quietly if the mode leaves TX
        between chunks.

        Args:
            buffer: Raw audio bytes
            offset: First byte to send
            count: Number of bytes to send (default: rest of buffer)
            cancel_event: Checked before every chunk

        Returns:
            Number of bytes written

        Raises:
            ValidationError: offset/count outside the buffer
            asyncio.CancelledError: cancel_event set or task cancelled
            RadioError: Link write failure
        """
        if count is None:
            count = len(buffer) - offset
        if offset < 0 or count < 0 or offset + count > len(buffer):
            raise ValidationError(
                f"Invalid range offset={offset} count={count} for {len(buffer)} bytes"
            )

        if not self.state.is_mode(RadioMode.TX):
            logger.debug(f"Not in TX, discarding {count} audio bytes")
            return 0

        end = offset + count
        chunk_size = self.config.chunk_size
        sent = 0
        view = memoryview(buffer)

        for start in range(offset, end, chunk_size):
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Audio send cancelled after {sent} bytes")
                raise asyncio.CancelledError()
            if not self.state.is_mode(RadioMode.TX):
                logger.info(f"Left TX mode, stopped audio after {sent} bytes")
                break

            chunk = bytes(view[start:min(start + chunk_size, end)])
            started = self._clock()
            await run_in_thread(self.link.write, chunk)
            elapsed = self._clock() - started
            sent += len(chunk)
            if self._on_sent is not None:
                self._on_sent(len(chunk))

            delay = self.config.chunk_duration(len(chunk)) - elapsed
            logger.debug(f"Sent {len(chunk)} audio bytes in {elapsed * 1000:.2f} ms")
            if delay > 0:
                await self._sleep(delay)

        return sent

    def __repr__(self) -> str:
        return (f"AudioPacer(chunk_size={self.config.chunk_size}, "
                f"sample_rate={self.config.sample_rate})")


__all__ = ['AudioPacer']
