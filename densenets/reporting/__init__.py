"""Reporting utilities for DenseNets."""

from .artifacts import write_manifest
from .metrics import CsvSink, JsonlSink
from .plots import PlotAdapter
from .progress import ConsoleProgress
from .summary import write_summary

__all__ = ["ConsoleProgress", "CsvSink", "JsonlSink", "PlotAdapter", "write_manifest", "write_summary"]
