"""
Core services for anxiety monitoring.

This package contains the severity classifier and the detection, rate
limiting and alerting logic built on top of it.
"""

from .alert_content import build_alert_content
from .alert_service import AnxietyAlertService
from .rate_limiting import AlertRateLimiter
from .severity import (
    ClassificationError,
    InvalidBaselineError,
    InvalidReadingError,
    classify,
    deviation,
    deviation_percent,
    threshold_bpm,
)
from .result import Result
from .structured_logging import configure_logging
from .sustained_detection import (
    InMemoryReadingSource,
    ReadingSource,
    SustainedAnxietyDetector,
)

__all__ = [
    "classify",
    "deviation",
    "deviation_percent",
    "threshold_bpm",
    "ClassificationError",
    "InvalidBaselineError",
    "InvalidReadingError",
    "Result",
    "configure_logging",
    "ReadingSource",
    "InMemoryReadingSource",
    "SustainedAnxietyDetector",
    "AlertRateLimiter",
    "build_alert_content",
    "AnxietyAlertService",
]
