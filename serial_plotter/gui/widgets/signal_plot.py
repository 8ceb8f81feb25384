"""Signal plotting widget embedded in Qt."""

from __future__ import annotations

import math
from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple

from PySide6.QtWidgets import QSizePolicy, QWidget, QVBoxLayout
from matplotlib.backends.backend_qtagg import FigureCanvasQTAgg as FigureCanvas
from matplotlib.figure import Figure
from matplotlib.lines import Line2D

SeriesMap = Mapping[str, Tuple[Sequence[float], Sequence[float]]]


class SignalPlot(QWidget):
    """Embeds a Matplotlib axis showing one line per selected signal.

    ``color_for`` maps a signal name to its registration index so a signal
    keeps its color while others are toggled on and off.
    """

    def __init__(self, color_for: Callable[[str], int], parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._color_for = color_for
        self._lines: Dict[str, Line2D] = {}
        self._legend_names: Tuple[str, ...] = ()

        self._figure = Figure(figsize=(8, 5))
        self._canvas = FigureCanvas(self._figure)
        self._canvas.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)

        layout = QVBoxLayout()
        layout.addWidget(self._canvas)
        self.setLayout(layout)

        self._ax = self._figure.add_subplot(111)
        self._ax.set_title("Real-time Data Plot")
        self._ax.set_xlabel("Time")
        self._ax.grid(True, linestyle="--", linewidth=0.3)
        self._figure.tight_layout()

    def _line_for(self, name: str) -> Line2D:
        line = self._lines.get(name)
        if line is None:
            color = f"C{self._color_for(name) % 10}"
            line = self._ax.plot([], [], color=color, label=name)[0]
            self._lines[name] = line
        return line

    def redraw(self, series: SeriesMap, order: Sequence[str], x_limits: Optional[Tuple[float, float]] = None) -> None:
        for name, line in self._lines.items():
            if name not in series:
                line.set_visible(False)
        for name in order:
            timestamps, values = series[name]
            line = self._line_for(name)
            line.set_data(timestamps, values)
            line.set_visible(True)

        if tuple(order) != self._legend_names:
            self._legend_names = tuple(order)
            legend = self._ax.get_legend()
            if legend is not None:
                legend.remove()
            if order:
                self._ax.legend([self._lines[n] for n in order], list(order), loc="upper right")

        if x_limits is not None:
            x_min, x_max = x_limits
            if x_min == x_max:
                x_max = x_min + 1.0
            self._ax.set_xlim(x_min, x_max)

        # NaN samples leave gaps; limits come from the finite values only
        finite_values = [v for name in order for v in series[name][1] if math.isfinite(v)]
        if finite_values:
            y_min, y_max = min(finite_values), max(finite_values)
            if y_min == y_max:
                delta = max(1.0, abs(y_min) * 0.1 + 0.1)
                y_min -= delta
                y_max += delta
            margin = 0.05 * (y_max - y_min)
            self._ax.set_ylim(y_min - margin, y_max + margin)

        self._canvas.draw_idle()
