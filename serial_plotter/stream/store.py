"""Append-only per-signal sample storage with a shared time index."""

from __future__ import annotations

import logging
import threading
from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

SeriesData = Tuple[List[float], List[float]]


class StoreError(RuntimeError):
    """Base class for sample store failures."""


class SignalNotFoundError(StoreError, KeyError):
    """Raised when a signal is addressed before it was registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Signal {name!r} is not registered")
        self.name = name

    def __str__(self) -> str:
        return self.args[0]


@dataclass
class _Series:
    timestamps: List[float] = field(default_factory=list)
    values: List[float] = field(default_factory=list)


class SampleStore:
    """Keeps every sample of every signal; the time window is only a view.

    The time index holds one timestamp per stored line, in arrival order.
    Timestamps are expected to be non-decreasing. When one regresses it is
    still appended as-is and counted in ``regressions``; window lookups then
    run a binary search over unsorted data and give a degraded but valid index.
    """

    def __init__(self, lock: Optional[threading.RLock] = None) -> None:
        self.lock = lock or threading.RLock()
        self._series: Dict[str, _Series] = {}
        self._time_index: List[float] = []
        self.regressions = 0

    # ------------------------------------------------------------------ ingest
    def register(self, name: str) -> None:
        with self.lock:
            self._series.setdefault(name, _Series())

    def append(self, name: str, timestamp: float, value: float) -> None:
        """Append one sample and its timestamp to the shared time index."""
        self.append_line(timestamp, {name: value})

    def append_line(self, timestamp: float, samples: Mapping[str, float]) -> None:
        """Store all samples of one decoded line under a single timestamp."""
        with self.lock:
            missing = [name for name in samples if name not in self._series]
            if missing:
                raise SignalNotFoundError(missing[0])
            if self._time_index and timestamp < self._time_index[-1]:
                self.regressions += 1
                logger.warning(
                    "Timestamp regressed from %r to %r; window accuracy degraded",
                    self._time_index[-1],
                    timestamp,
                )
            self._time_index.append(timestamp)
            for name, value in samples.items():
                series = self._series[name]
                series.timestamps.append(timestamp)
                series.values.append(value)

    # ------------------------------------------------------------------- query
    def window_start(self, window_size: float) -> int:
        """Index of the first timestamp inside ``[latest - window_size, latest]``."""
        with self.lock:
            if not self._time_index:
                return 0
            start_time = max(0.0, self._time_index[-1] - window_size)
            index = bisect_left(self._time_index, start_time)
            if index >= len(self._time_index):
                return 0
            return index

    def window(self, name: str, start: int) -> SeriesData:
        """Samples of ``name`` at or after the time index entry ``start``."""
        with self.lock:
            series = self._get(name)
            if not self._time_index:
                return [], []
            start = min(max(start, 0), len(self._time_index) - 1)
            offset = bisect_left(series.timestamps, self._time_index[start])
            return series.timestamps[offset:], series.values[offset:]

    def series(self, name: str) -> SeriesData:
        with self.lock:
            series = self._get(name)
            return list(series.timestamps), list(series.values)

    def time_index(self) -> List[float]:
        with self.lock:
            return list(self._time_index)

    @property
    def latest_time(self) -> Optional[float]:
        with self.lock:
            return self._time_index[-1] if self._time_index else None

    def _get(self, name: str) -> _Series:
        try:
            return self._series[name]
        except KeyError:
            raise SignalNotFoundError(name) from None

    def __contains__(self, name: object) -> bool:
        with self.lock:
            return name in self._series

    def __len__(self) -> int:
        with self.lock:
            return len(self._time_index)
