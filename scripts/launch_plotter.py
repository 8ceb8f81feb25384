#!/usr/bin/env python3
"""Launch the real-time serial plotter GUI."""

from __future__ import annotations

import argparse
from pathlib import Path

from serial_plotter.gui.main_window import run_gui
from serial_plotter.io import configure_logging, load_plotter_settings
from serial_plotter.transport import SerialLineTransport, SimulatedTransport


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--settings", help="Optional path to a settings YAML file.")
    parser.add_argument("--csv", type=Path, help="CSV file to log to (asks on Start when omitted).")
    parser.add_argument(
        "--simulate",
        action="store_true",
        help="Use a simulated device emitting three sine waves instead of a serial port.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = load_plotter_settings(args.settings)
    configure_logging(settings.log_level)

    def open_transport(port: str, baudrate: int):
        if args.simulate:
            return SimulatedTransport()
        transport = SerialLineTransport(port, baudrate=baudrate, timeout=settings.timeout_s)
        transport.open()
        return transport

    run_gui(settings, open_transport, csv_path=args.csv)


if __name__ == "__main__":
    main()
