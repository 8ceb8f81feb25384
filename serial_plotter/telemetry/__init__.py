"""Persistence of decoded telemetry."""

from .csv_sink import CsvSink

__all__ = ["CsvSink"]
