"""Ordered registry of signal names discovered in the stream."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from serial_plotter.stream.store import SignalNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class Signal:
    """A named signal with its immutable order index and inclusion flag."""

    name: str
    index: int
    included: bool = True


class SignalRegistry:
    """Assigns stable order indices to signal names on first sight.

    Only the stream pump registers names. Readers may call :meth:`names` and
    :meth:`is_included` from another thread; all access goes through ``lock``.
    """

    def __init__(self, lock: Optional[threading.RLock] = None) -> None:
        self.lock = lock or threading.RLock()
        self._signals: Dict[str, Signal] = {}
        self._order: List[str] = []

    def register_if_new(self, name: str) -> Tuple[int, bool]:
        """Return ``(index, is_new)`` for ``name``, allocating an index if unseen."""
        with self.lock:
            signal = self._signals.get(name)
            if signal is not None:
                return signal.index, False
            signal = Signal(name=name, index=len(self._order))
            self._signals[name] = signal
            self._order.append(name)
        logger.info("Registered signal %r at index %d", name, signal.index)
        return signal.index, True

    def names(self) -> List[str]:
        with self.lock:
            return list(self._order)

    def index_of(self, name: str) -> int:
        return self._get(name).index

    def is_included(self, name: str) -> bool:
        return self._get(name).included

    def set_included(self, name: str, included: bool) -> None:
        with self.lock:
            self._get(name).included = bool(included)

    def included_names(self) -> List[str]:
        with self.lock:
            return [name for name in self._order if self._signals[name].included]

    def _get(self, name: str) -> Signal:
        with self.lock:
            try:
                return self._signals[name]
            except KeyError:
                raise SignalNotFoundError(name) from None

    def __contains__(self, name: object) -> bool:
        with self.lock:
            return name in self._signals

    def __len__(self) -> int:
        with self.lock:
            return len(self._order)
