# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
examples/transmit_file.py

Transmit a raw audio file through an ESP32-bridged radio.

The file must already be raw mono PCM at 44.1 kHz; no resampling or
conversion is done here.

This example demonstrates:
- Keying the transmitter (PTT_DOWN)
- Pacing audio to real time with send_audio_data
- Always unkeying (PTT_UP) afterwards, even on error or interrupt

Run with:
    python examples/transmit_file.py

Only transmit on frequencies you are licensed to use.
"""

import asyncio
import logging
from pathlib import Path

from pykv4p import RadioSession, RadioError, configure_logging

logger = logging.getLogger("transmit_file")

# Default configuration - modify for your setup
SERIAL_PORT = "/dev/ttyUSB0"
FREQUENCY = "146.520"
AUDIO_FILE = Path("announcement.raw")


async def transmit() -> None:
    audio = AUDIO_FILE.read_bytes()
    session = RadioSession(SERIAL_PORT)
    session.on_error(lambda error: logger.error(f"Radio error: {error}"))

    with session:
        session.initialize()
        await session.wait_until_ready()
        session.tune_to_frequency(FREQUENCY, FREQUENCY, 0, 0)

        session.start_tx_mode()
        try:
            sent = await session.send_audio_data(audio)
            logger.info(f"Sent {sent} bytes ({sent / session.config.sample_rate:.1f} s)")
        finally:
            session.end_tx_mode()


def main() -> None:
    configure_logging("INFO")
    try:
        asyncio.run(transmit())
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except (RadioError, OSError) as e:
        logger.error(f"Transmit failed: {e}")


if __name__ == "__main__":
    main()
