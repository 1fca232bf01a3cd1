# SPDX-License-Identifier: LGPL-3.0-or-later
# Copyright (C) 2025-2026 Kris Kirby, KE4AHR

"""
examples/radio_monitor.py

Receive-only monitor for an ESP32-bridged radio.

This example demonstrates:
- Opening the serial link and running the firmware handshake
- Tuning and setting audio filters
- Subscribing to received audio and errors
- Graceful shutdown on interrupt

Run with:
    python examples/radio_monitor.py

Adjust the serial port and channel settings as needed for your hardware.
"""

import asyncio
import logging

from pykv4p import RadioSession, RadioError, configure_logging

logger = logging.getLogger("radio_monitor")

# Default configuration - modify for your setup
SERIAL_PORT = "/dev/ttyUSB0"      # Common Linux path; Windows: "COM3"
FREQUENCY = "146.520"             # National simplex calling frequency
TONE = 0                          # 0 = no tone
SQUELCH = 4                       # 0-9
REPORT_INTERVAL = 1.0             # Seconds between byte-count reports


async def monitor() -> None:
    """Main monitoring loop."""
    session = RadioSession(SERIAL_PORT)
    received = 0

    def on_audio(data: bytes) -> None:
        nonlocal received
        received += len(data)

    def on_error(error: Exception) -> None:
        logger.error(f"Radio error: {error}")

    session.on_audio_received(on_audio)
    session.on_error(on_error)

    with session:
        session.initialize()
        await session.wait_until_ready(timeout=5.0)
        logger.info("Handshake complete")

        session.tune_to_frequency(FREQUENCY, FREQUENCY, TONE, SQUELCH)
        session.set_filters(emphasis=True, highpass=True, lowpass=True)
        logger.info(f"Listening on {FREQUENCY} MHz - press Ctrl+C to stop")

        while True:
            await asyncio.sleep(REPORT_INTERVAL)
            print(f"{received} audio bytes received")
            received = 0


def main() -> None:
    configure_logging("INFO")
    try:
        asyncio.run(monitor())
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except RadioError as e:
        logger.error(f"Fatal error: {e}")
    print("Monitor stopped.")


if __name__ == "__main__":
    main()
