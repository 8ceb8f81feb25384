"""User-controlled signal selection and windowed views for plotting."""

from __future__ import annotations

import logging
import math
from typing import Dict, Optional, Tuple, Union

from serial_plotter.stream.registry import SignalRegistry
from serial_plotter.stream.store import SampleStore, SeriesData

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when a runtime configuration value is unusable."""


class InvalidWindowSizeError(ConfigError):
    """Raised when the time window is not a positive finite number."""


def validate_window_size(value: Union[str, float, int, None]) -> float:
    """Return ``value`` as a positive float or raise :class:`InvalidWindowSizeError`.

    Accepts the raw text of an edit field as well as numbers.
    """
    try:
        window = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        raise InvalidWindowSizeError(f"Invalid window size: {value!r}") from None
    if not math.isfinite(window) or window <= 0:
        raise InvalidWindowSizeError(f"Invalid window size: {value!r}")
    return window


class RenderSelector:
    """Inclusion set over registered signals plus windowed series views."""

    def __init__(self, registry: SignalRegistry, store: SampleStore, window_size: float = 10.0) -> None:
        self.registry = registry
        self.store = store
        self._window_size = validate_window_size(window_size)

    @property
    def window_size(self) -> float:
        return self._window_size

    @window_size.setter
    def window_size(self, value: Union[str, float]) -> None:
        self._window_size = validate_window_size(value)

    def toggle(self, name: str, included: bool) -> None:
        self.registry.set_included(name, included)
        logger.debug("Signal %r %s", name, "included" if included else "excluded")

    def on_signal_registered(self, name: str, index: int) -> None:
        self.registry.set_included(name, True)

    def color_index(self, name: str) -> int:
        return self.registry.index_of(name)

    def visible_series(self, window_size: Optional[Union[str, float]] = None) -> Dict[str, SeriesData]:
        """Windowed ``(timestamps, values)`` of every included signal, in registry order."""
        window = self._resolve_window(window_size)
        with self.store.lock:
            start = self.store.window_start(window)
            return {
                name: self.store.window(name, start)
                for name in self.registry.included_names()
            }

    def x_limits(self, window_size: Optional[Union[str, float]] = None) -> Optional[Tuple[float, float]]:
        """Axis range from the window's first timestamp to ``max(latest, window_size)``."""
        window = self._resolve_window(window_size)
        with self.store.lock:
            time_index = self.store.time_index()
            if not time_index:
                return None
            start = self.store.window_start(window)
            return time_index[start], max(time_index[-1], window)

    def _resolve_window(self, window_size: Optional[Union[str, float]]) -> float:
        if window_size is None:
            return self._window_size
        return validate_window_size(window_size)
