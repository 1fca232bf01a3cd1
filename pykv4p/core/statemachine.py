# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
pykv4p.core.statemachine

Radio mode state machine.

Handles:
- STARTUP / RX / TX modes (SCAN reserved)
- Wire side effects of each transition (STOP, GET_FIRMWARE_VER, PTT_DOWN, PTT_UP)
- Routing of unframed inbound bytes by current mode

Transitions:

    event         from              to       sends
    initialize    any               STARTUP  STOP, GET_FIRMWARE_VER
    handshake_ok  STARTUP           RX       -
    start_rx      any               RX       -
    start_tx      RX, TX            TX       PTT_DOWN
    end_tx        TX (else no-op)   RX       PTT_UP
    stop          any               RX       STOP

The mode lock is held while a transition's commands are written, so
commands reach the link in the order transitions were requested.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, NamedTuple, Optional, Tuple

from .framing import ESP32Command
from ..exceptions import ProtocolError

logger = logging.getLogger(__name__)


class RadioMode(Enum):
    """Operating modes"""
    STARTUP = 0
    RX = 1
    TX = 2
    SCAN = 3     # Reserved, never entered


class InboundRoute(Enum):
    """Consumer of unframed inbound bytes"""
    HANDSHAKE = 'handshake'
    AUDIO = 'audio'
    DISCARD = 'discard'


def classify_inbound(mode: RadioMode) -> InboundRoute:
    """
    Decide who consumes inbound bytes in the given mode.

    STARTUP bytes go to the firmware handshake parser, RX (and the
    reserved SCAN) bytes are received audio, TX bytes are dropped.
    """
    if mode is RadioMode.STARTUP:
        return InboundRoute.HANDSHAKE
    if mode is RadioMode.TX:
        return InboundRoute.DISCARD
    return InboundRoute.AUDIO


ALL_MODES: FrozenSet[RadioMode] = frozenset(RadioMode)


class Transition(NamedTuple):
    allowed: FrozenSet[RadioMode]
    target: RadioMode
    commands: Tuple[ESP32Command, ...]
    strict: bool     # raise if not allowed, else ignore


TRANSITIONS: Dict[str, Transition] = {
    'initialize': Transition(
        ALL_MODES, RadioMode.STARTUP,
        (ESP32Command.STOP, ESP32Command.GET_FIRMWARE_VER), True
    ),
    'handshake_ok': Transition(
        frozenset({RadioMode.STARTUP}), RadioMode.RX, (), False
    ),
    'start_rx': Transition(ALL_MODES, RadioMode.RX, (), True),
    'start_tx': Transition(
        frozenset({RadioMode.RX, RadioMode.TX}), RadioMode.TX,
        (ESP32Command.PTT_DOWN,), True
    ),
    'end_tx': Transition(
        frozenset({RadioMode.TX}), RadioMode.RX, (ESP32Command.PTT_UP,), False
    ),
    'stop': Transition(ALL_MODES, RadioMode.RX, (ESP32Command.STOP,), True),
}


class RadioStateMachine:
    """
    Thread-safe radio mode holder.

    Args:
        send_command: Callable writing one parameterless command to the link.
            Called with the mode lock held; exceptions propagate to the
            caller of transition().
    """

    def __init__(self, send_command: Callable[[ESP32Command], None]):
        self._send_command = send_command
        self._lock = threading.RLock()
        self._changed = threading.Condition(self._lock)
        self._mode = RadioMode.STARTUP
        self._listeners: List[Callable[[RadioMode, RadioMode], None]] = []

    @property
    def mode(self) -> RadioMode:
        with self._lock:
            return self._mode

    def is_mode(self, mode: RadioMode) -> bool:
        with self._lock:
            return self._mode is mode

    def add_listener(self, callback: Callable[[RadioMode, RadioMode], None]) -> None:
        """Register a mode change callback (old_mode, new_mode)"""
        with self._lock:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[RadioMode, RadioMode], None]) -> None:
        with self._lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    def transition(self, event: str) -> bool:
        """
        Apply an event.

        The new mode is committed before the event's commands are sent, so
        listeners hear about it even when a command write fails.

        Returns:
            True if the transition ran, False if it was ignored
            (end_tx outside TX, handshake_ok outside STARTUP)

        Raises:
            ProtocolError: Unknown event, or event illegal in current mode
            RadioError: From send_command when a side-effect write fails
        """
        rule = TRANSITIONS.get(event)
        if rule is None:
            raise ProtocolError(f"Unknown event: {event}")

        changed = False
        listeners: List[Callable[[RadioMode, RadioMode], None]] = []
        try:
            with self._lock:
                old_mode = self._mode
                if old_mode not in rule.allowed:
                    if rule.strict:
                        raise ProtocolError(f"{event} not allowed in mode {old_mode.name}")
                    logger.debug(f"Ignoring {event} in mode {old_mode.name}")
                    return False

                self._mode = rule.target
                self._changed.notify_all()
                changed = old_mode is not rule.target
                if changed:
                    logger.info(f"Mode change: {old_mode.name} -> {rule.target.name}")
                    listeners = list(self._listeners)
                for command in rule.commands:
                    self._send_command(command)
        finally:
            if changed:
                self._notify(listeners, old_mode, rule.target)
        return True

    def _notify(self, listeners, old_mode: RadioMode, new_mode: RadioMode) -> None:
        for callback in listeners:
            try:
                callback(old_mode, new_mode)
            except Exception as e:
                logger.error(f"Mode callback failed: {e}")

    def wait_for_mode(self, mode: RadioMode, timeout: Optional[float] = None) -> bool:
        """Block until the given mode is live; False on timeout."""
        with self._changed:
            return self._changed.wait_for(lambda: self._mode is mode, timeout)

    def __repr__(self) -> str:
        return f"RadioStateMachine(mode={self.mode.name})"


__all__ = [
    'RadioMode',
    'InboundRoute',
    'classify_inbound',
    'TRANSITIONS',
    'RadioStateMachine',
]
