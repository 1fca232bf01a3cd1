# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
tests/conftest.py

Provides:
- Logging configuration for all tests
- LoopbackLink: in-memory link recording writes and injecting inbound bytes
- Session and state machine fixtures
- Mock serial port fixture
"""

import logging
import threading
from typing import Generator, List, Optional, Tuple
from unittest.mock import MagicMock, patch

import pytest

from pykv4p.core.framing import ESP32Command, decode_command
from pykv4p.core.statemachine import RadioStateMachine
from pykv4p.exceptions import RadioConnectionError
from pykv4p.interfaces.transport import BaseLink
from pykv4p.session import RadioSession


class LoopbackLink(BaseLink):
    """In-memory link for protocol tests"""

    def __init__(self):
        super().__init__()
        self._open = False
        self.writes: List[bytes] = []
        self.fail_with: Optional[Exception] = None
        self.open_count = 0
        self.close_count = 0

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        self.open_count += 1
        self._open = True

    def close(self) -> None:
        self.close_count += 1
        self._open = False

    def write(self, data: bytes) -> None:
        with self._lock:
            if not self._open:
                raise RadioConnectionError("Loopback not open")
            if self.fail_with is not None:
                raise self.fail_with
            self.writes.append(bytes(data))

    def inject(self, data: bytes) -> None:
        """Simulate inbound bytes from the bridge"""
        self._handle_data(data)

    def inject_error(self, error: Exception) -> None:
        """Simulate a reader-side fault"""
        self._handle_error(error)

    def commands(self) -> List[Tuple[ESP32Command, str]]:
        return [decode_command(frame) for frame in self.writes]

    def command_codes(self) -> List[ESP32Command]:
        return [cmd for cmd, _ in self.commands()]


@pytest.fixture(scope="session", autouse=True)
def configure_logging() -> Generator[None, None, None]:
    """Configure logging for all tests"""
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    yield


@pytest.fixture
def link() -> LoopbackLink:
    loop_link = LoopbackLink()
    loop_link.open()
    return loop_link


@pytest.fixture
def session(link) -> RadioSession:
    """Open session on a loopback link, still in STARTUP"""
    return RadioSession("loopback", link=link)


@pytest.fixture
def ready_session(session, link) -> RadioSession:
    """Session that has completed the firmware handshake"""
    session.initialize()
    link.inject(b"VERSION00000001")
    link.writes.clear()
    return session


@pytest.fixture
def sent_commands() -> List[ESP32Command]:
    return []


@pytest.fixture
def state_machine(sent_commands) -> RadioStateMachine:
    return RadioStateMachine(sent_commands.append)


@pytest.fixture
def mock_serial() -> Generator[MagicMock, None, None]:
    """Patched serial.Serial whose reads idle until data is queued"""
    with patch('serial.Serial') as serial_cls:
        port = serial_cls.return_value
        port.is_open = True
        port.in_waiting = 0
        port.inbound = []
        idle = threading.Event()

        def read(size=1):
            if port.inbound:
                item = port.inbound.pop(0)
                if isinstance(item, Exception):
                    raise item
                return item
            idle.wait(0.01)
            return b""

        port.read.side_effect = read
        port.write.side_effect = lambda data: len(data)
        yield port
