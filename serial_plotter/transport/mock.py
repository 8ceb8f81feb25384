"""Simulated device producing the demo sine-wave stream."""

from __future__ import annotations

import math
import time
from typing import Callable, List, Optional, Sequence


def format_demo_line(t: float, names: Sequence[str] = ("DataA", "DataB", "DataC")) -> str:
    """Three 0.2 Hz sine waves, a quarter period apart, amplitude 10."""
    fields = [f"Time:{t:.3f}"]
    for offset, name in enumerate(names):
        value = 10.0 * math.sin(2 * math.pi * t / 5.0 + offset * math.pi / 2)
        fields.append(f"{name}:{value:.2f}")
    return ",".join(fields)


class SimulatedTransport:
    """Emits one demo line every ``period`` seconds of the supplied clock.

    Lines that came due while nobody polled are queued, so a slow consumer
    sees a backlog just like on a real serial buffer.
    """

    def __init__(
        self,
        period: float = 0.02,
        names: Sequence[str] = ("DataA", "DataB", "DataC"),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if period <= 0:
            raise ValueError("period must be positive")
        self.period = period
        self.names = tuple(names)
        self._clock = clock
        self._t0: Optional[float] = None
        self._emitted = 0
        self.commands: List[str] = []

    def _due(self) -> int:
        now = self._clock()
        if self._t0 is None:
            self._t0 = now
        return int((now - self._t0) / self.period) + 1 - self._emitted

    def is_line_available(self) -> bool:
        return self._due() > 0

    def read_line(self) -> str:
        line = format_demo_line(self._emitted * self.period, self.names)
        self._emitted += 1
        return line

    def write_line(self, line: str) -> None:
        self.commands.append(line.rstrip("\n"))

    def close(self) -> None:
        self._t0 = None
        self._emitted = 0
