"""Qt-based main window for plotting and logging a serial telemetry stream."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional

from PySide6.QtCore import Qt, QTimer, Signal, Slot
from PySide6.QtWidgets import (
    QApplication,
    QCheckBox,
    QComboBox,
    QDoubleSpinBox,
    QFileDialog,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSplitter,
    QVBoxLayout,
    QWidget,
)

from serial_plotter.gui.widgets import SignalPlot
from serial_plotter.io import PlotterSettings, update_settings_value
from serial_plotter.stream import (
    DecodeError,
    InvalidWindowSizeError,
    PumpState,
    RenderSelector,
    StreamPump,
    validate_window_size,
)
from serial_plotter.telemetry import CsvSink
from serial_plotter.transport import LineTransport, available_ports

logger = logging.getLogger(__name__)

TransportFactory = Callable[[str, int], LineTransport]

# ---------------------------------------------------------------------------
# Layout constants
WINDOW_DEFAULT_SIZE = (1000, 600)
COMMAND_VALUE_RANGE = (-1e6, 1e6)
SIDE_PANEL_MIN_WIDTH = 220


class SignalSelectionPane(QGroupBox):
    """One checkbox per registered signal, appended in registration order."""

    selection_changed = Signal(str, bool)

    def __init__(self) -> None:
        super().__init__("Select Signals to Plot")
        self.checkboxes: Dict[str, QCheckBox] = {}
        self._layout = QVBoxLayout()
        self._layout.addStretch()
        self.setLayout(self._layout)

    def add_signal(self, name: str) -> None:
        if name in self.checkboxes:
            return
        box = QCheckBox(name)
        box.setChecked(True)
        box.toggled.connect(lambda checked, n=name: self.selection_changed.emit(n, checked))
        self.checkboxes[name] = box
        self._layout.insertWidget(self._layout.count() - 1, box)


class ParameterPane(QGroupBox):
    """Window size, port and baud rate fields plus Start/Stop buttons."""

    start_requested = Signal()
    stop_requested = Signal()

    def __init__(self, settings: PlotterSettings) -> None:
        super().__init__("Fig and save parameters")
        self.window_field = QLineEdit(f"{settings.window_size_s:g}")
        self.port_combo = QComboBox()
        self.port_combo.setEditable(True)
        ports = available_ports()
        if settings.port not in ports:
            ports.insert(0, settings.port)
        self.port_combo.addItems(ports)
        self.port_combo.setCurrentText(settings.port)
        self.baud_field = QLineEdit(str(settings.baudrate))

        self.start_btn = QPushButton("Start")
        self.stop_btn = QPushButton("Stop")
        self.start_btn.clicked.connect(self.start_requested.emit)
        self.stop_btn.clicked.connect(self.stop_requested.emit)

        form = QFormLayout()
        form.addRow("Time Window Size", self.window_field)
        form.addRow("COM Port", self.port_combo)
        form.addRow("Baudrate", self.baud_field)

        buttons = QHBoxLayout()
        buttons.addWidget(self.start_btn)
        buttons.addWidget(self.stop_btn)

        layout = QVBoxLayout()
        layout.addLayout(form)
        layout.addLayout(buttons)
        self.setLayout(layout)
        self.update_state(PumpState.IDLE)

    def update_state(self, state: PumpState) -> None:
        running = state is PumpState.RUNNING
        self.start_btn.setEnabled(not running)
        self.stop_btn.setEnabled(running)
        self.port_combo.setEnabled(not running)
        self.baud_field.setEnabled(not running)


class CommandPane(QGroupBox):
    """Sends ``name:value`` commands back to the device."""

    command_requested = Signal(str, float)

    def __init__(self) -> None:
        super().__init__("Send Command")
        self.name_field = QLineEdit()
        self.name_field.setPlaceholderText("Variable name")
        self.value_spin = QDoubleSpinBox()
        self.value_spin.setRange(*COMMAND_VALUE_RANGE)
        self.value_spin.setDecimals(0)
        send_btn = QPushButton("Send")
        send_btn.clicked.connect(self._emit_command)

        layout = QFormLayout()
        layout.addRow("Name", self.name_field)
        layout.addRow("Value", self.value_spin)
        layout.addRow(send_btn)
        self.setLayout(layout)

    def _emit_command(self) -> None:
        name = self.name_field.text().strip()
        if name:
            self.command_requested.emit(name, self.value_spin.value())


class MainWindow(QMainWindow):
    """Real-time serial plotter: plot on the left, controls on the right."""

    def __init__(
        self,
        settings: PlotterSettings,
        transport_factory: TransportFactory,
        csv_path: Optional[Path] = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle("Real-Time Serial Plotter")
        self.resize(*WINDOW_DEFAULT_SIZE)

        self.settings = settings
        self.transport_factory = transport_factory
        self.csv_path = csv_path
        self.transport: Optional[LineTransport] = None
        self.sink: Optional[CsvSink] = None
        self._dirty = False

        self.pump = StreamPump(
            window_size=settings.window_size_s,
            on_error=self._on_decode_error,
            poll_interval=settings.poll_interval_s,
        )
        self.selector = RenderSelector(self.pump.registry, self.pump.store, settings.window_size_s)
        self.pump.add_listener(self.selector)
        self.pump.add_listener(self)

        self.plot = SignalPlot(color_for=self.selector.color_index)
        self.selection_pane = SignalSelectionPane()
        self.parameter_pane = ParameterPane(settings)
        self.command_pane = CommandPane()
        self.status_label = QLabel("Idle")
        self.status_label.setAlignment(Qt.AlignLeft)

        side = QWidget()
        side.setMinimumWidth(SIDE_PANEL_MIN_WIDTH)
        side_layout = QVBoxLayout()
        side_layout.addWidget(self.selection_pane, stretch=3)
        side_layout.addWidget(self.parameter_pane)
        side_layout.addWidget(self.command_pane)
        side_layout.addWidget(self.status_label)
        side.setLayout(side_layout)

        splitter = QSplitter()
        splitter.addWidget(self.plot)
        splitter.addWidget(side)
        splitter.setStretchFactor(0, 1)
        splitter.setStretchFactor(1, 0)
        self.setCentralWidget(splitter)

        self.selection_pane.selection_changed.connect(self._on_selection_changed)
        self.parameter_pane.start_requested.connect(self.start)
        self.parameter_pane.stop_requested.connect(self.stop)
        self.command_pane.command_requested.connect(self._on_command)

        self._poll_timer = QTimer(self)
        self._poll_timer.timeout.connect(self.pump.tick)
        self._redraw_timer = QTimer(self)
        self._redraw_timer.timeout.connect(self.redraw)

    # ------------------------------------------------------------------
    # Stream lifecycle
    @Slot()
    def start(self) -> None:
        port = self.parameter_pane.port_combo.currentText().strip()
        try:
            baudrate = int(self.parameter_pane.baud_field.text())
            window = validate_window_size(self.parameter_pane.window_field.text())
        except (ValueError, InvalidWindowSizeError) as exc:
            QMessageBox.warning(self, "Invalid Parameters", str(exc))
            return

        if self.sink is None:
            path = self.csv_path or self._ask_csv_path()
            if path is None:
                return
            self.sink = CsvSink(path)
            self.sink.open()
            self.pump.sink = self.sink

        if self.transport is None:
            try:
                self.transport = self.transport_factory(port, baudrate)
            except (ConnectionError, OSError) as exc:
                QMessageBox.critical(self, "Connection Failed", str(exc))
                return

        self.pump.window_size = window
        self.selector.window_size = window
        self.pump.start(self.transport, self._on_line, threaded=False)
        self._poll_timer.start(max(1, int(self.settings.poll_interval_s * 1000)))
        self._redraw_timer.start(self.settings.redraw_interval_ms)
        self.parameter_pane.update_state(self.pump.state)
        self.status_label.setText(f"Running on {port} @ {baudrate} baud")
        self._remember(port, baudrate, window)

    @Slot()
    def stop(self) -> None:
        self._poll_timer.stop()
        self._redraw_timer.stop()
        self.pump.stop()
        self.parameter_pane.update_state(self.pump.state)
        self.status_label.setText(
            f"Stopped: {self.pump.lines_processed} lines, {self.pump.decode_errors} dropped"
        )
        self.redraw()

    def _ask_csv_path(self) -> Optional[Path]:
        filename, _ = QFileDialog.getSaveFileName(
            self,
            "Select path and filename to store data",
            str(self.settings.log_directory / "test.csv"),
            "CSV files (*.csv)",
        )
        return Path(filename) if filename else None

    def _remember(self, port: str, baudrate: int, window: float) -> None:
        try:
            update_settings_value("serial.port", port)
            update_settings_value("serial.baudrate", baudrate)
            update_settings_value("plot.window_size_s", window)
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Could not persist settings: %s", exc)

    # ------------------------------------------------------------------
    # Pump callbacks
    def on_signal_registered(self, name: str, index: int) -> None:
        self.selection_pane.add_signal(name)

    def _on_line(self, time_index: List[float], window_start: int) -> None:
        self._dirty = True

    def _on_decode_error(self, line: str, exc: DecodeError) -> None:
        self.statusBar().showMessage(f"Dropped line: {exc}", 2000)

    @Slot(str, bool)
    def _on_selection_changed(self, name: str, included: bool) -> None:
        self.selector.toggle(name, included)
        self._dirty = True
        self.redraw()

    @Slot(str, float)
    def _on_command(self, name: str, value: float) -> None:
        try:
            self.pump.send_command(name, value)
        except (RuntimeError, ValueError) as exc:
            QMessageBox.warning(self, "Command Failed", str(exc))

    # ------------------------------------------------------------------
    @Slot()
    def redraw(self) -> None:
        if not self._dirty:
            return
        try:
            window = validate_window_size(self.parameter_pane.window_field.text())
        except InvalidWindowSizeError as exc:
            # keep the previous frame
            self.statusBar().showMessage(str(exc), 2000)
            return
        self.pump.window_size = window
        self.selector.window_size = window
        series = self.selector.visible_series()
        self.plot.redraw(series, list(series), self.selector.x_limits())
        self._dirty = False

    def closeEvent(self, event) -> None:  # noqa: N802 - Qt override
        self.stop()
        if self.transport is not None:
            self.transport.close()
        if self.sink is not None:
            self.sink.close()
        super().closeEvent(event)


def run_gui(settings: PlotterSettings, transport_factory: TransportFactory, csv_path: Optional[Path] = None) -> None:
    """Launch the plotter window and run the Qt event loop."""
    app = QApplication.instance() or QApplication([])
    window = MainWindow(settings, transport_factory, csv_path=csv_path)
    window.show()
    app.exec()
