import math
import threading
import time

import pytest

from serial_plotter.stream import (
    MissingTimestampError,
    PumpState,
    RenderSelector,
    SampleStore,
    SignalRegistry,
    StreamPump,
)


class DummyTransport:
    def __init__(self, lines=None):
        self.lines = list(lines or [])
        self.written = []
        self.closed = False

    def is_line_available(self) -> bool:
        return bool(self.lines)

    def read_line(self) -> str:
        return self.lines.pop(0)

    def write_line(self, line: str) -> None:
        self.written.append(line)

    def close(self) -> None:
        self.closed = True


class RecordingSink:
    def __init__(self):
        self.events = []

    def on_schema_changed(self, headers):
        self.events.append(("schema", list(headers)))

    def on_line(self, values):
        self.events.append(("line", list(values)))


class RecordingListener:
    def __init__(self, pump):
        self.pump = pump
        self.registered = []

    def on_signal_registered(self, name, index):
        # samples of a new signal must not be stored yet
        self.registered.append((name, index, self.pump.store.series(name)))


def drain(pump):
    while pump.tick():
        pass


def test_end_to_end_series_and_headers():
    sink = RecordingSink()
    pump = StreamPump(sink=sink)
    transport = DummyTransport(["Time:0,A:1", "Time:1,A:2,B:5", "Time:2,B:6"])
    pump.start(transport, threaded=False)
    drain(pump)

    assert pump.store.series("A") == ([0.0, 1.0], [1.0, 2.0])
    assert pump.store.series("B") == ([1.0, 2.0], [5.0, 6.0])
    assert pump.headers() == ["Time", "A", "B"]
    schemas = [payload for kind, payload in sink.events if kind == "schema"]
    assert schemas == [["Time", "A"], ["Time", "A", "B"]]
    assert pump.lines_processed == 3


def test_sink_receives_schema_before_line_in_header_order():
    sink = RecordingSink()
    pump = StreamPump(sink=sink)
    pump.start(DummyTransport(["Time:0,A:1", "Time:1,B:5"]), threaded=False)
    drain(pump)

    assert sink.events[0] == ("schema", ["Time", "A"])
    assert sink.events[1] == ("line", [0.0, 1.0])
    assert sink.events[2] == ("schema", ["Time", "A", "B"])
    kind, values = sink.events[3]
    assert kind == "line"
    assert values[0] == 1.0 and math.isnan(values[1]) and values[2] == 5.0


def test_listeners_notified_before_samples_stored():
    pump = StreamPump()
    listener = RecordingListener(pump)
    pump.add_listener(listener)
    pump.start(DummyTransport(["Time:0,A:1,B:2", "Time:1,A:3"]), threaded=False)
    drain(pump)
    assert listener.registered == [("A", 0, ([], [])), ("B", 1, ([], []))]


def test_line_handler_gets_time_index_and_window_start():
    calls = []
    pump = StreamPump(window_size=2)
    lines = [f"Time:{t},A:{t}" for t in range(6)]
    pump.start(DummyTransport(lines), lambda index, start: calls.append((index, start)), threaded=False)
    drain(pump)
    last_index, last_start = calls[-1]
    assert last_index == [0.0, 1.0, 2.0, 3.0, 4.0, 5.0]
    assert last_start == 3


def test_decode_error_is_reported_and_pump_keeps_running():
    errors = []
    pump = StreamPump(on_error=lambda line, exc: errors.append((line, exc)))
    pump.start(DummyTransport(["A:1", "Time:1,A:2"]), threaded=False)
    drain(pump)

    assert pump.state is PumpState.RUNNING
    assert pump.decode_errors == 1
    assert errors[0][0] == "A:1"
    assert isinstance(errors[0][1], MissingTimestampError)
    assert pump.store.series("A") == ([1.0], [2.0])
    assert pump.store.time_index() == [1.0]


def test_one_line_per_tick():
    pump = StreamPump()
    transport = DummyTransport(["Time:0,A:1", "Time:1,A:2"])
    pump.start(transport, threaded=False)
    assert pump.tick() is True
    assert len(transport.lines) == 1
    assert pump.tick() is True
    assert pump.tick() is False


def test_tick_does_nothing_when_idle():
    pump = StreamPump()
    transport = DummyTransport(["Time:0,A:1"])
    assert pump.tick() is False
    pump.start(transport, threaded=False)
    pump.stop()
    assert pump.state is PumpState.IDLE
    assert pump.tick() is False
    assert transport.lines == ["Time:0,A:1"]


def test_restart_after_stop_and_double_start():
    pump = StreamPump()
    transport = DummyTransport(["Time:0,A:1", "Time:1,A:2"])
    pump.start(transport, threaded=False)
    with pytest.raises(RuntimeError):
        pump.start(transport, threaded=False)
    pump.tick()
    pump.stop()
    pump.start(transport, threaded=False)
    pump.tick()
    assert pump.store.series("A")[1] == [1.0, 2.0]


def test_threaded_polling_consumes_lines_and_stops():
    done = threading.Event()
    lines = [f"Time:{t},A:{t}" for t in range(5)]

    def handler(index, start):
        if len(index) == 5:
            done.set()

    pump = StreamPump(poll_interval=0.001)
    transport = DummyTransport(lines)
    pump.start(transport, handler)
    assert done.wait(timeout=5.0)
    pump.stop()
    assert pump.state is PumpState.IDLE
    transport.lines.append("Time:9,A:9")
    time.sleep(0.05)
    assert len(pump.store) == 5


def test_selector_sees_registered_signals():
    pump = StreamPump()
    selector = RenderSelector(pump.registry, pump.store, window_size=10)
    pump.add_listener(selector)
    pump.start(DummyTransport(["Time:0,A:1,B:2"]), threaded=False)
    drain(pump)
    selector.toggle("A", False)
    assert list(selector.visible_series()) == ["B"]


def test_send_command_writes_to_transport():
    pump = StreamPump()
    with pytest.raises(RuntimeError):
        pump.send_command("Gain", 3)
    transport = DummyTransport()
    pump.start(transport, threaded=False)
    pump.send_command("Gain", 3)
    assert transport.written == ["Gain:3"]


def test_invalid_window_size_rejected():
    with pytest.raises(ValueError):
        StreamPump(window_size=0)


def test_injected_empty_registry_and_store_are_used():
    registry = SignalRegistry()
    store = SampleStore(registry.lock)
    selector = RenderSelector(registry, store, window_size=10)
    pump = StreamPump(registry=registry, store=store, listeners=[selector])
    assert pump.registry is registry
    assert pump.store is store

    pump.start(DummyTransport(["Time:0,A:1", "Time:1,A:2,B:3"]), threaded=False)
    drain(pump)

    assert registry.names() == ["A", "B"]
    assert store.series("A") == ([0.0, 1.0], [1.0, 2.0])
    assert list(selector.visible_series()) == ["A", "B"]


def test_injected_store_lock_is_shared_with_default_registry():
    store = SampleStore()
    pump = StreamPump(store=store)
    assert pump.store is store
    assert pump.registry.lock is store.lock
