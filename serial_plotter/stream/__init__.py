"""Streaming decode, registration, windowing and selection engine."""

from .decoder import (
    TIME_KEY,
    DecodedLine,
    DecodeError,
    MissingTimestampError,
    decode_line,
    encode_command,
)
from .store import SampleStore, SignalNotFoundError, StoreError
from .registry import Signal, SignalRegistry
from .selector import ConfigError, InvalidWindowSizeError, RenderSelector, validate_window_size
from .pump import PersistenceSink, PumpState, SchemaListener, StreamPump

__all__ = [
    "TIME_KEY",
    "ConfigError",
    "DecodeError",
    "DecodedLine",
    "InvalidWindowSizeError",
    "MissingTimestampError",
    "PersistenceSink",
    "PumpState",
    "RenderSelector",
    "SampleStore",
    "SchemaListener",
    "Signal",
    "SignalNotFoundError",
    "SignalRegistry",
    "StoreError",
    "StreamPump",
    "decode_line",
    "encode_command",
    "validate_window_size",
]
