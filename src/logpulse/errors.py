"""
errors.py

Exception taxonomy for the access log pipeline.

Each error maps to one recovery policy:
- MalformedRecordError: one bad line. Skipped and counted, the run continues.
- EmptyDatasetError: nothing parsed. Fatal, every report would be vacuous.
- SinkWriteError: one report could not be written. Logged, siblings continue.
- InvalidThresholdError: bad configuration. Raised before any work starts.
"""

from __future__ import annotations

from typing import Optional


class LogPulseError(Exception):
    """Base class for all pipeline errors."""


class MalformedRecordError(LogPulseError, ValueError):
    def __init__(self, message: str, *, reason: str, line_number: Optional[int] = None):
        super().__init__(message)
        self.reason = reason
        self.line_number = line_number


class EmptyDatasetError(LogPulseError, ValueError):
    pass


class SinkWriteError(LogPulseError, OSError):
    def __init__(self, report_name: str, message: str):
        super().__init__(f"{report_name}: {message}")
        self.report_name = report_name


class InvalidThresholdError(LogPulseError, ValueError):
    pass
