#!/usr/bin/env python3
"""Record a serial telemetry stream to CSV without the GUI (Ctrl-C to stop)."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from datetime import datetime
from pathlib import Path

from serial_plotter.io import configure_logging, load_plotter_settings
from serial_plotter.stream import StreamPump
from serial_plotter.telemetry import CsvSink
from serial_plotter.transport import SerialLineTransport, SimulatedTransport

logger = logging.getLogger("record_stream")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--settings", help="Optional path to a settings YAML file.")
    parser.add_argument("--port", help="Serial port (defaults to serial.port from settings).")
    parser.add_argument("--baud", type=int, help="Baud rate (defaults to serial.baudrate from settings).")
    parser.add_argument("--csv", type=Path, help="Output CSV file (default: timestamped file in the log directory).")
    parser.add_argument("--duration", type=float, help="Stop after this many seconds.")
    parser.add_argument("--simulate", action="store_true", help="Record from a simulated device.")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    settings = load_plotter_settings(args.settings)
    configure_logging(settings.log_level)

    port = args.port or settings.port
    baudrate = args.baud or settings.baudrate
    csv_path = args.csv or settings.log_directory / f"stream_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"

    if args.simulate:
        transport = SimulatedTransport()
    else:
        transport = SerialLineTransport(port, baudrate=baudrate, timeout=settings.timeout_s)
        try:
            transport.open()
        except ConnectionError as exc:
            logger.error("%s", exc)
            return 1

    started = time.monotonic()
    try:
        with CsvSink(csv_path) as sink, StreamPump(
            window_size=settings.window_size_s,
            sink=sink,
            poll_interval=settings.poll_interval_s,
        ) as pump:
            pump.start(transport)
            logger.info("Recording to %s", csv_path)
            while args.duration is None or time.monotonic() - started < args.duration:
                time.sleep(0.2)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        transport.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
