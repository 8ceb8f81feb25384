from pathlib import Path

from serial_plotter.stream import StreamPump
from serial_plotter.telemetry import CsvSink


def test_csv_sink_rewrites_header_and_keeps_rows(tmp_path: Path):
    log_path = tmp_path / "nested" / "log.csv"
    with CsvSink(log_path) as sink:
        sink.on_schema_changed(["Time", "A"])
        sink.on_line([0.0, 1.0])
        sink.on_schema_changed(["Time", "A", "B"])
        sink.on_line([1.0, float("nan"), 5.0])

    text = log_path.read_text().strip().splitlines()
    assert text == ["Time,A,B", "0.0,1.0", "1.0,,5.0"]
    assert sink.rows_written == 2
    assert sink.headers == ["Time", "A", "B"]


def test_csv_sink_fed_by_pump(tmp_path: Path):
    class ListTransport:
        def __init__(self, lines):
            self.lines = list(lines)

        def is_line_available(self):
            return bool(self.lines)

        def read_line(self):
            return self.lines.pop(0)

        def write_line(self, line):
            pass

        def close(self):
            pass

    log_path = tmp_path / "stream.csv"
    with CsvSink(log_path) as sink:
        pump = StreamPump(sink=sink)
        pump.start(ListTransport(["Time:0,A:1", "Time:1,A:2,B:5", "bad line", "Time:2,B:6"]), threaded=False)
        while pump.tick():
            pass

    rows = log_path.read_text().strip().splitlines()
    assert rows[0] == "Time,A,B"
    assert rows[1:] == ["0.0,1.0", "1.0,2.0,5.0", "2.0,,6.0"]


def test_csv_sink_truncates_file_from_earlier_session(tmp_path: Path):
    log_path = tmp_path / "log.csv"
    log_path.write_text("Time,Old\n5.0,9.0\n")
    with CsvSink(log_path) as sink:
        sink.on_schema_changed(["Time", "A"])
        sink.on_line([0.0, 1.0])

    assert log_path.read_text().strip().splitlines() == ["Time,A", "0.0,1.0"]


def test_csv_sink_schema_change_before_open_ignores_old_content(tmp_path: Path):
    log_path = tmp_path / "log.csv"
    log_path.write_text("Time,Old\n5.0,9.0\n")
    sink = CsvSink(log_path)
    sink.on_schema_changed(["Time", "A"])
    sink.on_line([0.0, 1.0])
    sink.on_schema_changed(["Time", "A", "B"])
    sink.on_line([1.0, 2.0, 3.0])
    sink.close()

    assert log_path.read_text().strip().splitlines() == ["Time,A,B", "0.0,1.0", "1.0,2.0,3.0"]
