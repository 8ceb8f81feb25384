"""Line transports (serial ports, simulated devices)."""

from __future__ import annotations

from .base import LineTransport
from .mock import SimulatedTransport, format_demo_line
from .serial_port import SerialLineTransport, available_ports

__all__ = [
    "LineTransport",
    "SerialLineTransport",
    "SimulatedTransport",
    "available_ports",
    "format_demo_line",
]
