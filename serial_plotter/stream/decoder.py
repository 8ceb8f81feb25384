"""Decoder for ``Time:t,Name:value,...`` telemetry lines."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Tuple

TIME_KEY = "Time"
FIELD_SEPARATOR = ","
PAIR_SEPARATOR = ":"


class DecodeError(ValueError):
    """Raised when a line cannot be turned into a timestamped sample set."""

    def __init__(self, message: str, line: str = "") -> None:
        super().__init__(message)
        self.line = line


class MissingTimestampError(DecodeError):
    """Raised when a line carries no usable ``Time`` field."""


@dataclass(frozen=True)
class DecodedLine:
    """One decoded record: the line's timestamp plus its named samples."""

    timestamp: float
    samples: Dict[str, float] = field(default_factory=dict)
    skipped: Tuple[str, ...] = ()

    def names(self) -> Tuple[str, ...]:
        return tuple(self.samples)


def _to_float(value: str) -> float:
    try:
        return float(value.strip())
    except ValueError:
        return float("nan")


def decode_line(line: str) -> DecodedLine:
    """Parse one raw line.

    Fields without exactly one ``key:value`` pair are skipped and listed in
    ``DecodedLine.skipped``. Values that are not numbers become ``NaN``.
    Raises :class:`MissingTimestampError` if no field has the key ``Time``
    or its value is not a finite number.
    """
    text = line.rstrip("\r\n")
    timestamp = None
    samples: Dict[str, float] = {}
    skipped = []

    for raw_field in text.split(FIELD_SEPARATOR):
        parts = raw_field.split(PAIR_SEPARATOR)
        if len(parts) != 2:
            if raw_field.strip():
                skipped.append(raw_field)
            continue
        name = parts[0].strip()
        if not name:
            skipped.append(raw_field)
            continue
        value = _to_float(parts[1])
        if name == TIME_KEY:
            timestamp = value
        else:
            samples[name] = value

    if timestamp is None or not math.isfinite(timestamp):
        raise MissingTimestampError(f"Time value is missing in line {text!r}", line=text)
    return DecodedLine(timestamp=timestamp, samples=samples, skipped=tuple(skipped))


def encode_command(name: str, value: float) -> str:
    """Format an outbound ``name:value`` command line (no terminator)."""
    name = name.strip()
    if not name or FIELD_SEPARATOR in name or PAIR_SEPARATOR in name:
        raise ValueError(f"Invalid command name {name!r}")
    if float(value).is_integer():
        return f"{name}{PAIR_SEPARATOR}{int(value)}"
    return f"{name}{PAIR_SEPARATOR}{float(value)}"
