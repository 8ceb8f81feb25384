"""Real-time plotting and logging of ``key:value`` telemetry from a serial port."""

__all__ = ["stream", "transport", "telemetry", "io", "gui"]
__version__ = "0.1.0"
