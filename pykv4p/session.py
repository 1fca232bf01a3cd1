# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
pykv4p.session

Public operation surface for one radio bridge.

Example:
    session = RadioSession("/dev/ttyUSB0")
    session.on_audio_received(lambda data: player.feed(data))
    session.on_error(lambda err: print(f"radio error: {err}"))
    with session:
        session.initialize()
        await session.wait_until_ready()
        session.tune_to_frequency("146.520", "146.520", 0, 4)

Notifications fire on the link's reader thread, never on the caller's
own call stack.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import async_timeout

from .config import RadioConfig, DEFAULT_CONFIG
from .core.framing import ESP32Command, encode_command
from .core.handshake import VersionHandshake
from .core.pacing import AudioPacer
from .core.statemachine import (
    RadioMode,
    InboundRoute,
    RadioStateMachine,
    classify_inbound
)
from .core.validation import TuneParameters, FilterSettings
from .exceptions import ProtocolError, ValidationError, RadioTimeoutError
from .interfaces.serial_link import SerialLink
from .interfaces.transport import BaseLink
from .utils.threadsafe import AtomicCounter

logger = logging.getLogger(__name__)

READY_POLL_INTERVAL = 0.01


@dataclass
class SessionStats:
    """Traffic counters, safe to read from any thread"""
    frames_written: AtomicCounter = field(default_factory=AtomicCounter)
    audio_bytes_sent: AtomicCounter = field(default_factory=AtomicCounter)
    audio_bytes_received: AtomicCounter = field(default_factory=AtomicCounter)
    errors: AtomicCounter = field(default_factory=AtomicCounter)


class RadioSession:
    """
    Radio bridge session.

    Args:
        port: Serial port identifier
        config: Driver configuration (default: wire defaults)
        link: Link to use instead of a SerialLink on `port`
    """

    def __init__(
        self,
        port: str,
        config: Optional[RadioConfig] = None,
        link: Optional[BaseLink] = None
    ):
        if not port or not str(port).strip():
            raise ValidationError("Port name cannot be empty")
        self.port = port
        self.config = config or DEFAULT_CONFIG

        self._link = link if link is not None else SerialLink(port, self.config)
        self._link.on_data_received = self._handle_inbound
        self._link.on_error = self._report_error

        self.stats = SessionStats()
        self._state = RadioStateMachine(self._send_command)
        self._handshake = VersionHandshake(self.config.min_firmware_version)
        self._handshake_error: Optional[ProtocolError] = None
        self._pacer = AudioPacer(
            self._link,
            self._state,
            self.config,
            on_sent=self.stats.audio_bytes_sent.increment
        )

        self._listener_lock = threading.Lock()
        self._error_listeners: List[Callable[[Exception], None]] = []
        self._audio_listeners: List[Callable[[bytes], None]] = []

    # Properties

    @property
    def mode(self) -> RadioMode:
        return self._state.mode

    @property
    def is_open(self) -> bool:
        return self._link.is_open

    @property
    def state_machine(self) -> RadioStateMachine:
        return self._state

    # Notifications

    def on_error(self, callback: Callable[[Exception], None]) -> None:
        """Subscribe to errors reported from the link or handshake"""
        with self._listener_lock:
            self._error_listeners.append(callback)

    def on_audio_received(self, callback: Callable[[bytes], None]) -> None:
        """Subscribe to raw received audio chunks"""
        with self._listener_lock:
            self._audio_listeners.append(callback)

    def remove_listener(self, callback: Callable) -> None:
        with self._listener_lock:
            for listeners in (self._error_listeners, self._audio_listeners):
                if callback in listeners:
                    listeners.remove(callback)

    # Connection lifecycle

    def open_connection(self) -> None:
        self._link.open()

    def close_connection(self) -> None:
        self._link.close()

    # Radio operations

    def initialize(self) -> None:
        """Return to STARTUP and request the firmware version."""
        self._handshake.reset()
        self._handshake_error = None
        self._state.transition('initialize')

    def tune_to_frequency(
        self,
        tx_frequency: str,
        rx_frequency: str,
        tone: int,
        squelch: int
    ) -> None:
        """
        Tune the radio.

        Args:
            tx_frequency: Transmit frequency in MHz, e.g. "146.520"
            rx_frequency: Receive frequency in MHz
            tone: Tone code 0-99
            squelch: Squelch level 0-9

        Raises:
            ValidationError: Before anything is sent, on malformed input
        """
        params = TuneParameters.create(
            tx_frequency, rx_frequency, tone, squelch, self.config
        )
        self._send_command(ESP32Command.TUNE_TO, params.encode())

    def set_filters(self, emphasis: bool, highpass: bool, lowpass: bool) -> None:
        settings = FilterSettings(bool(emphasis), bool(highpass), bool(lowpass))
        self._send_command(ESP32Command.FILTERS, settings.encode())

    def start_rx_mode(self) -> None:
        self._state.transition('start_rx')

    def start_tx_mode(self) -> None:
        """Key the transmitter (PTT_DOWN)."""
        self._state.transition('start_tx')

    def end_tx_mode(self) -> None:
        """Unkey the transmitter (PTT_UP) if transmitting."""
        self._state.transition('end_tx')

    def stop(self) -> None:
        """
        Force RX and send STOP.

        Does not send PTT_UP; call end_tx_mode() first when transmitting.
        """
        self._state.transition('stop')

    async def send_audio_data(
        self,
        buffer: bytes,
        offset: int = 0,
        count: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> int:
        """
        Send TX audio at real-time rate; discarded outside TX mode.

        Returns:
            Number of bytes written
        """
        return await self._pacer.send(buffer, offset, count, cancel_event)

    async def wait_until_ready(self, timeout: float = 5.0) -> None:
        """
        Wait for the firmware handshake to put the session in RX.

        Raises:
            ProtocolError: The bridge answered with a rejected version
            RadioTimeoutError: Still not in RX after `timeout` seconds
        """
        try:
            async with async_timeout.timeout(timeout):
                while not self._state.is_mode(RadioMode.RX):
                    if self._handshake_error is not None:
                        raise self._handshake_error
                    await asyncio.sleep(READY_POLL_INTERVAL)
        except asyncio.TimeoutError:
            raise RadioTimeoutError(
                f"Radio not ready after {timeout}s (mode {self.mode.name})"
            ) from None

    # Internals

    def _send_command(self, command: ESP32Command, params: Optional[str] = None) -> None:
        frame = encode_command(command, params)
        self._link.write(frame)
        self.stats.frames_written.increment()
        logger.debug(f"Sent {command.name}{' ' + params if params else ''}")

    def _handle_inbound(self, data: bytes) -> None:
        """Route one inbound chunk by current mode (reader thread)"""
        route = classify_inbound(self._state.mode)

        if route is InboundRoute.HANDSHAKE:
            try:
                version = self._handshake.feed(data)
            except ProtocolError as e:
                self._handshake_error = e
                self._report_error(e)
                return
            if version is not None and self._state.transition('handshake_ok'):
                remainder = self._handshake.take_remainder()
                if remainder:
                    self._deliver_audio(remainder)

        elif route is InboundRoute.AUDIO:
            self._deliver_audio(data)

        else:
            logger.debug(f"Discarded {len(data)} inbound bytes in TX")

    def _deliver_audio(self, data: bytes) -> None:
        self.stats.audio_bytes_received.increment(len(data))
        with self._listener_lock:
            listeners = list(self._audio_listeners)
        for callback in listeners:
            try:
                callback(data)
            except Exception as e:
                logger.error(f"Audio callback failed: {e}")

    def _report_error(self, error: Exception) -> None:
        logger.error(f"Radio error: {error}")
        self.stats.errors.increment()
        with self._listener_lock:
            listeners = list(self._error_listeners)
        for callback in listeners:
            try:
                callback(error)
            except Exception as e:
                logger.error(f"Error callback failed: {e}")

    def __enter__(self):
        self.open_connection()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close_connection()

    def __repr__(self) -> str:
        return (f"RadioSession(port={self.port!r}, mode={self.mode.name}, "
                f"open={self.is_open})")


__all__ = ['RadioSession', 'SessionStats']
