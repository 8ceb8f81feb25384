"""Polling loop that feeds transport lines through the decoder into the store."""

from __future__ import annotations

import logging
import math
import threading
from enum import Enum
from typing import Callable, List, Optional, Protocol, Sequence

from serial_plotter.stream.decoder import TIME_KEY, DecodeError, DecodedLine, decode_line, encode_command
from serial_plotter.stream.registry import SignalRegistry
from serial_plotter.stream.selector import validate_window_size
from serial_plotter.stream.store import SampleStore
from serial_plotter.transport import LineTransport

logger = logging.getLogger(__name__)

LineHandler = Callable[[List[float], int], None]
ErrorHandler = Callable[[str, DecodeError], None]


class PumpState(Enum):
    IDLE = "idle"
    RUNNING = "running"


class SchemaListener(Protocol):
    """Receives a notification whenever a signal is registered."""

    def on_signal_registered(self, name: str, index: int) -> None:
        ...


class PersistenceSink(Protocol):
    """Consumes the schema (header) and every decoded line as values."""

    def on_schema_changed(self, headers: Sequence[str]) -> None:
        ...

    def on_line(self, values: Sequence[float]) -> None:
        ...


class StreamPump:
    """Drives decoder, registry and store from a line transport.

    ``start`` puts the pump into the running state. By default a daemon
    thread then calls :meth:`tick` every ``poll_interval`` seconds; with
    ``threaded=False`` the caller schedules :meth:`tick` itself (e.g. from a
    Qt timer). Each tick consumes at most one line.
    """

    def __init__(
        self,
        registry: Optional[SignalRegistry] = None,
        store: Optional[SampleStore] = None,
        window_size: float = 10.0,
        sink: Optional[PersistenceSink] = None,
        listeners: Optional[Sequence[SchemaListener]] = None,
        on_error: Optional[ErrorHandler] = None,
        poll_interval: float = 0.01,
    ) -> None:
        lock = store.lock if store is not None else threading.RLock()
        self.registry = registry if registry is not None else SignalRegistry(lock)
        self.store = store if store is not None else SampleStore(self.registry.lock)
        self.sink = sink
        self.listeners: List[SchemaListener] = list(listeners or [])
        self.on_error = on_error
        self.poll_interval = poll_interval
        self._window_size = validate_window_size(window_size)

        self._state = PumpState.IDLE
        self._transport: Optional[LineTransport] = None
        self._line_handler: Optional[LineHandler] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._tick_lock = threading.RLock()

        self.lines_processed = 0
        self.decode_errors = 0

    # ------------------------------------------------------------------ config
    @property
    def state(self) -> PumpState:
        return self._state

    @property
    def window_size(self) -> float:
        return self._window_size

    @window_size.setter
    def window_size(self, value: float) -> None:
        self._window_size = validate_window_size(value)

    def add_listener(self, listener: SchemaListener) -> None:
        self.listeners.append(listener)

    # --------------------------------------------------------------- lifecycle
    def start(self, transport: LineTransport, line_handler: Optional[LineHandler] = None, threaded: bool = True) -> None:
        if self._state is PumpState.RUNNING:
            raise RuntimeError("Stream pump is already running")
        self._transport = transport
        self._line_handler = line_handler
        self._stop_event.clear()
        self._state = PumpState.RUNNING
        logger.info("Stream pump started (threaded=%s, poll_interval=%.3fs)", threaded, self.poll_interval)
        if threaded:
            self._thread = threading.Thread(target=self._poll_loop, name="stream-pump", daemon=True)
            self._thread.start()

    def stop(self) -> None:
        if self._state is PumpState.IDLE:
            return
        self._stop_event.set()
        with self._tick_lock:
            self._state = PumpState.IDLE
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=max(1.0, 10 * self.poll_interval))
        self._thread = None
        logger.info(
            "Stream pump stopped after %d lines (%d decode errors)",
            self.lines_processed,
            self.decode_errors,
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()

    def _poll_loop(self) -> None:
        while not self._stop_event.is_set():
            self.tick()
            self._stop_event.wait(self.poll_interval)

    # -------------------------------------------------------------------- tick
    def tick(self) -> bool:
        """Process at most one available line. Returns True if a line was read."""
        with self._tick_lock:
            if self._state is not PumpState.RUNNING or self._transport is None:
                return False
            if not self._transport.is_line_available():
                return False
            line = self._transport.read_line()
            self.process_line(line)
            return True

    def process_line(self, line: str) -> Optional[DecodedLine]:
        """Decode one line and push it through registry, store, handler and sink.

        Decode failures are logged, counted and passed to ``on_error``; the
        line is dropped and ``None`` is returned.
        """
        try:
            decoded = decode_line(line)
        except DecodeError as exc:
            self.decode_errors += 1
            logger.warning("Dropping line: %s", exc)
            if self.on_error:
                self.on_error(line, exc)
            return None
        if decoded.skipped:
            logger.debug("Skipped malformed fields %r", decoded.skipped)

        self._register(decoded)
        self.store.append_line(decoded.timestamp, decoded.samples)
        window_start = self.store.window_start(self._window_size)
        self.lines_processed += 1

        if self._line_handler:
            self._line_handler(self.store.time_index(), window_start)
        if self.sink is not None:
            self.sink.on_line(self._sink_values(decoded))
        return decoded

    def _register(self, decoded: DecodedLine) -> None:
        schema_changed = False
        for name in decoded.names():
            index, is_new = self.registry.register_if_new(name)
            if not is_new:
                continue
            self.store.register(name)
            schema_changed = True
            for listener in self.listeners:
                listener.on_signal_registered(name, index)
        if schema_changed and self.sink is not None:
            self.sink.on_schema_changed(self.headers())

    def _sink_values(self, decoded: DecodedLine) -> List[float]:
        values = [decoded.timestamp]
        for name in self.registry.names():
            values.append(decoded.samples.get(name, math.nan))
        return values

    def headers(self) -> List[str]:
        return [TIME_KEY] + self.registry.names()

    # ---------------------------------------------------------------- outbound
    def send_command(self, name: str, value: float) -> None:
        """Write a ``name:value`` command line to the active transport."""
        if self._transport is None:
            raise RuntimeError("No transport attached")
        command = encode_command(name, value)
        logger.debug("Sending command %r", command)
        self._transport.write_line(command)
