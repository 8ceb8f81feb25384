"""Transport interface consumed by the stream pump."""

from __future__ import annotations

from typing import Protocol


class LineTransport(Protocol):
    """Minimal interface for line-oriented byte streams."""

    def is_line_available(self) -> bool:
        ...

    def read_line(self) -> str:
        ...

    def write_line(self, line: str) -> None:
        ...

    def close(self) -> None:
        ...
