"""Reporting utilities for Neucremental."""

from .metrics import CsvSink, JsonlSink
from .plots import PlotAdapter
from .text import format_gradients, format_parameters, format_predictions

__all__ = [
    "CsvSink",
    "JsonlSink",
    "PlotAdapter",
    "format_gradients",
    "format_parameters",
    "format_predictions",
]
