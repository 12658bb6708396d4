"""
Typed failures raised by the report engine.
"""

from __future__ import annotations


class ReportError(Exception):
    """Base exception for aggregation, selection and export failures."""


class FetchFailure(ReportError):
    """Raised when a request store call fails or times out."""


class EmptyDataset(ReportError):
    """Raised when a chart or export is requested for a period without records."""


class UnknownPeriod(ReportError):
    """Raised when a year, month or quarter cannot be resolved."""
