# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
tests/test_session.py

Integration tests for RadioSession over a loopback link.

Covers:
- Firmware handshake from STARTUP to RX, success and failure
- Inbound routing to audio listeners by mode
- Tune, filter, PTT and stop wire traffic
- Validation before any wire traffic
- Error notification for reader-side faults
- Paced audio through the session
- wait_until_ready and context management
"""

import asyncio
import threading

import pytest

from pykv4p.config import RadioConfig
from pykv4p.core.framing import ESP32Command
from pykv4p.core.statemachine import RadioMode
from pykv4p.exceptions import (
    ValidationError,
    ProtocolError,
    RadioIOError,
    RadioTimeoutError,
    RadioConnectionError
)
from pykv4p.interfaces.serial_link import SerialLink
from pykv4p.session import RadioSession


@pytest.fixture
def errors(session):
    collected = []
    session.on_error(collected.append)
    return collected


@pytest.fixture
def audio(session):
    collected = []
    session.on_audio_received(collected.append)
    return collected


class TestConstruction:
    @pytest.mark.parametrize("port", ["", "   ", None])
    def test_empty_port_rejected(self, port):
        with pytest.raises(ValidationError):
            RadioSession(port)

    def test_default_link_is_serial(self):
        session = RadioSession("/dev/ttyUSB0")
        assert isinstance(session._link, SerialLink)
        assert session._link.config.baudrate == 921600
        assert not session.is_open

    def test_initial_mode(self, session):
        assert session.mode is RadioMode.STARTUP


class TestHandshake:
    def test_initialize_sends_stop_then_version(self, session, link):
        session.initialize()
        assert link.command_codes() == [ESP32Command.STOP, ESP32Command.GET_FIRMWARE_VER]
        assert session.mode is RadioMode.STARTUP

    def test_handshake_success(self, session, link, errors, audio):
        """A VERSION00000001 reply moves STARTUP to RX."""
        session.initialize()
        link.inject(b"\x00\x10boot...VERSION00000001")
        assert session.mode is RadioMode.RX
        assert errors == []
        assert audio == []

    def test_handshake_split_reply(self, session, link):
        session.initialize()
        link.inject(b"xxVERS")
        link.inject(b"ION0000")
        assert session.mode is RadioMode.STARTUP
        link.inject(b"0002")
        assert session.mode is RadioMode.RX

    def test_handshake_below_minimum(self, session, link, errors):
        """VERSION00000000 reports ProtocolError and stays in STARTUP."""
        session.initialize()
        link.inject(b"...VERSION00000000...")
        assert session.mode is RadioMode.STARTUP
        assert len(errors) == 1
        assert isinstance(errors[0], ProtocolError)

    def test_handshake_garbage_token(self, session, link, errors):
        session.initialize()
        link.inject(b"VERSIONnotanum!")
        assert session.mode is RadioMode.STARTUP
        assert isinstance(errors[0], ProtocolError)

    def test_no_automatic_retry(self, session, link, errors):
        session.initialize()
        link.writes.clear()
        link.inject(b"VERSION00000000")
        assert link.writes == []

    def test_reinitialize_after_failure(self, session, link, errors):
        session.initialize()
        link.inject(b"VERSION0000")
        session.initialize()
        link.inject(b"VERSION00000004")
        assert session.mode is RadioMode.RX
        assert errors == []

    def test_custom_min_firmware(self, link):
        session = RadioSession("loopback", RadioConfig(min_firmware_version=3), link=link)
        session.initialize()
        link.inject(b"VERSION00000002")
        assert session.mode is RadioMode.STARTUP

    def test_audio_after_token_delivered(self, session, link, audio):
        """Bytes read together with the version token are the first RX audio."""
        session.initialize()
        link.inject(b"VERSION00000001\x11\x22\x33")
        assert session.mode is RadioMode.RX
        assert audio == [b"\x11\x22\x33"]
        assert session.stats.audio_bytes_received.get() == 3


class TestInboundRouting:
    def test_rx_audio_delivered(self, ready_session, link, audio):
        link.inject(b"\x01\x02\x03")
        link.inject(b"\x04")
        assert audio == [b"\x01\x02\x03", b"\x04"]
        assert ready_session.stats.audio_bytes_received.get() == 4

    def test_tx_bytes_discarded(self, ready_session, link, audio):
        ready_session.start_tx_mode()
        link.inject(b"\x01\x02")
        assert audio == []

    def test_startup_bytes_not_audio(self, session, link, audio):
        link.inject(b"\x7f" * 32)
        assert audio == []

    def test_audio_listener_exception_contained(self, ready_session, link):
        received = []

        def bad_listener(data):
            raise RuntimeError("boom")

        ready_session.on_audio_received(bad_listener)
        ready_session.on_audio_received(received.append)
        link.inject(b"\x05")
        assert received == [b"\x05"]

    def test_remove_listener(self, ready_session, link, audio):
        ready_session.remove_listener(audio.append)
        link.inject(b"\x05")
        assert audio == []


class TestCommands:
    def test_tune(self, ready_session, link):
        ready_session.tune_to_frequency("146.520", "147.120", 12, 3)
        assert link.commands() == [(ESP32Command.TUNE_TO, "146.520147.120123")]

    def test_tune_normalizes(self, ready_session, link):
        ready_session.tune_to_frequency("1465200", "junk", 0, 0)
        assert link.commands() == [(ESP32Command.TUNE_TO, "146.520146.520000")]

    @pytest.mark.parametrize("tone,squelch", [(0, 10), (0, -1), (100, 0), (-1, 0)])
    def test_tune_rejects_before_send(self, ready_session, link, tone, squelch):
        with pytest.raises(ValidationError):
            ready_session.tune_to_frequency("146.520", "146.520", tone, squelch)
        assert link.writes == []

    def test_tune_rejects_empty_frequency(self, ready_session, link):
        with pytest.raises(ValidationError):
            ready_session.tune_to_frequency("", "146.520", 0, 0)
        assert link.writes == []

    @pytest.mark.parametrize("flags,expected", [
        ((False, False, False), "000"),
        ((True, False, True), "101"),
        ((True, True, True), "111"),
        ((0, 1, 0), "010"),
    ])
    def test_filters(self, ready_session, link, flags, expected):
        ready_session.set_filters(*flags)
        assert link.commands() == [(ESP32Command.FILTERS, expected)]

    def test_start_end_tx(self, ready_session, link):
        ready_session.start_tx_mode()
        ready_session.end_tx_mode()
        assert link.command_codes() == [ESP32Command.PTT_DOWN, ESP32Command.PTT_UP]
        assert ready_session.mode is RadioMode.RX

    def test_end_tx_noop_in_rx(self, ready_session, link):
        ready_session.end_tx_mode()
        assert link.writes == []

    @pytest.mark.parametrize("events", [[], ["start_rx_mode"], ["start_rx_mode", "start_tx_mode"]])
    def test_stop_any_mode(self, session, link, events):
        for event in events:
            getattr(session, event)()
        link.writes.clear()
        session.stop()
        assert session.mode is RadioMode.RX
        assert link.command_codes() == [ESP32Command.STOP]

    def test_start_rx_no_traffic(self, session, link):
        session.start_rx_mode()
        assert session.mode is RadioMode.RX
        assert link.writes == []

    def test_commands_in_call_order(self, ready_session, link):
        written_before = ready_session.stats.frames_written.get()
        ready_session.set_filters(True, True, True)
        ready_session.tune_to_frequency("146.52", "146.52", 0, 1)
        ready_session.start_tx_mode()
        ready_session.end_tx_mode()
        ready_session.stop()
        assert link.command_codes() == [
            ESP32Command.FILTERS,
            ESP32Command.TUNE_TO,
            ESP32Command.PTT_DOWN,
            ESP32Command.PTT_UP,
            ESP32Command.STOP,
        ]
        assert ready_session.stats.frames_written.get() - written_before == 5


class TestErrors:
    def test_reader_fault_notified(self, session, link, errors):
        link.inject_error(RadioIOError("device unplugged"))
        assert len(errors) == 1
        assert isinstance(errors[0], RadioIOError)
        assert session.stats.errors.get() == 1

    def test_write_timeout_raises(self, ready_session, link, errors):
        """Foreground write failures raise to the caller only."""
        link.fail_with = RadioTimeoutError("stalled")
        with pytest.raises(RadioTimeoutError):
            ready_session.set_filters(True, True, True)
        assert errors == []

    def test_failed_ptt_down_still_reports_mode(self, ready_session, link, errors):
        """The TX mode change reaches listeners even when PTT_DOWN fails."""
        changes = []
        ready_session.state_machine.add_listener(
            lambda old, new: changes.append((old, new))
        )
        link.fail_with = RadioIOError("gone")
        with pytest.raises(RadioIOError):
            ready_session.start_tx_mode()
        assert ready_session.mode is RadioMode.TX
        assert changes == [(RadioMode.RX, RadioMode.TX)]
        assert link.writes == []
        assert errors == []

    def test_write_while_closed(self, ready_session, link):
        link.close()
        with pytest.raises(RadioConnectionError):
            ready_session.stop()

    def test_error_listener_exception_contained(self, session, link):
        seen = []

        def bad_listener(err):
            raise RuntimeError("boom")

        session.on_error(bad_listener)
        session.on_error(seen.append)
        link.inject_error(RadioIOError("x"))
        assert len(seen) == 1


class TestAudio:
    @pytest.mark.asyncio
    async def test_send_audio_outside_tx(self, ready_session, link):
        assert await ready_session.send_audio_data(bytes(1500)) == 0
        assert link.writes == []

    @pytest.mark.asyncio
    async def test_send_audio_in_tx(self, ready_session, link):
        ready_session.start_tx_mode()
        link.writes.clear()
        assert await ready_session.send_audio_data(bytes(1500)) == 1500
        assert [len(w) for w in link.writes] == [512, 512, 476]
        assert ready_session.stats.audio_bytes_sent.get() == 1500

    @pytest.mark.asyncio
    async def test_send_audio_write_failure(self, ready_session, link):
        ready_session.start_tx_mode()
        link.fail_with = RadioIOError("gone")
        with pytest.raises(RadioIOError):
            await ready_session.send_audio_data(bytes(100))

    @pytest.mark.asyncio
    async def test_partial_send_counted(self, ready_session, link, monkeypatch):
        """Chunks written before a failure are still counted as sent."""
        ready_session.start_tx_mode()
        link.writes.clear()
        loopback_write = link.write

        def fail_third_write(data):
            if len(link.writes) == 2:
                raise RadioIOError("gone")
            loopback_write(data)

        monkeypatch.setattr(link, "write", fail_third_write)
        with pytest.raises(RadioIOError):
            await ready_session.send_audio_data(bytes(1500))
        assert len(link.writes) == 2
        assert ready_session.stats.audio_bytes_sent.get() == 1024

    @pytest.mark.asyncio
    async def test_cancel_task(self, ready_session, link):
        ready_session.start_tx_mode()
        link.writes.clear()
        task = asyncio.ensure_future(ready_session.send_audio_data(bytes(512 * 40)))
        await asyncio.sleep(0.03)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(link.writes) < 40


class TestWaitUntilReady:
    @pytest.mark.asyncio
    async def test_times_out(self, session):
        session.initialize()
        with pytest.raises(RadioTimeoutError):
            await session.wait_until_ready(timeout=0.05)

    @pytest.mark.asyncio
    async def test_ready_after_handshake(self, session, link):
        session.initialize()
        timer = threading.Timer(0.05, link.inject, args=(b"VERSION00000001",))
        timer.start()
        try:
            await session.wait_until_ready(timeout=2.0)
        finally:
            timer.join()
        assert session.mode is RadioMode.RX

    @pytest.mark.asyncio
    async def test_rejected_version_raises_immediately(self, session, link):
        """A rejected firmware version is raised, not waited out."""
        session.initialize()
        link.inject(b"VERSION00000000")
        loop = asyncio.get_running_loop()
        started = loop.time()
        with pytest.raises(ProtocolError):
            await session.wait_until_ready(timeout=5.0)
        assert loop.time() - started < 1.0

    @pytest.mark.asyncio
    async def test_rejection_while_waiting(self, session, link):
        session.initialize()
        timer = threading.Timer(0.05, link.inject, args=(b"VERSION00000000",))
        timer.start()
        try:
            with pytest.raises(ProtocolError):
                await session.wait_until_ready(timeout=5.0)
        finally:
            timer.join()
        assert session.mode is RadioMode.STARTUP

    @pytest.mark.asyncio
    async def test_reinitialize_clears_rejection(self, session, link):
        session.initialize()
        link.inject(b"VERSION00000000")
        session.initialize()
        with pytest.raises(RadioTimeoutError):
            await session.wait_until_ready(timeout=0.05)


class TestContextManager:
    def test_opens_and_closes(self):
        from tests.conftest import LoopbackLink

        link = LoopbackLink()
        with RadioSession("loopback", link=link) as session:
            assert session.is_open
        assert link.open_count == 1
        assert link.close_count == 1
        assert not link.is_open
