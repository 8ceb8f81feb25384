"""CSV persistence sink whose header follows the discovered signals."""

from __future__ import annotations

import csv
import logging
import math
from pathlib import Path
from typing import List, Sequence

logger = logging.getLogger(__name__)


def _format_value(value: float) -> str:
    if value is None or math.isnan(value):
        return ""
    return repr(float(value))


class CsvSink:
    """Append-only CSV writer for decoded stream lines.

    Each row holds the line's values in the current header order. When the
    header grows, the file is rewritten with the new header on top of the rows
    already written; earlier rows keep their shorter width. A file left over
    from an earlier session is truncated when the sink first opens it.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.headers: List[str] = []
        self.rows_written = 0
        self._file = None
        self._writer = None
        self._truncated = False

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        mode = "a" if self._truncated else "w"
        self._file = self.path.open(mode, newline="", encoding="utf-8")
        self._truncated = True
        self._writer = csv.writer(self._file)

    def close(self) -> None:
        if self._file:
            self._file.close()
        self._file = None
        self._writer = None

    def on_schema_changed(self, headers: Sequence[str]) -> None:
        """Rewrite the file with ``headers`` as its first row."""
        self.close()
        previous: List[List[str]] = []
        if self._truncated and self.path.exists():
            with self.path.open("r", newline="", encoding="utf-8") as handle:
                previous = list(csv.reader(handle))
            if self.headers and previous:
                previous = previous[1:]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle)
            writer.writerow(list(headers))
            writer.writerows(previous)
        self._truncated = True
        self.headers = list(headers)
        logger.debug("Rewrote %s header: %s", self.path, ",".join(self.headers))
        self.open()

    def on_line(self, values: Sequence[float]) -> None:
        if not self._writer:
            self.open()
        self._writer.writerow([_format_value(v) for v in values])
        self._file.flush()
        self.rows_written += 1
