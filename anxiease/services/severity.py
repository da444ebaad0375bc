"""
Severity classification of a heart-rate reading against a personal baseline.

Deviation is the fraction by which a reading exceeds the baseline:

    deviation = (reading - baseline) / baseline

Thresholds are inclusive lower bounds checked from highest to lowest, so the
highest matching level wins. Comparisons use exact rational arithmetic over
the given values: a reading exactly 20% above baseline is mild, and one that
only rounds to 20% for display is not.
"""

import math
from fractions import Fraction

from anxiease.domain.models import Severity

# Highest first; first match wins
SEVERITY_THRESHOLDS: tuple[tuple[Fraction, Severity], ...] = (
    (Fraction(80, 100), Severity.CRITICAL),
    (Fraction(50, 100), Severity.SEVERE),
    (Fraction(30, 100), Severity.MODERATE),
    (Fraction(20, 100), Severity.MILD),
)


class ClassificationError(ValueError):
    """Base class for inputs that cannot be classified."""


class InvalidBaselineError(ClassificationError):
    """Baseline is not a positive, finite number of beats per minute."""

    def __init__(self, baseline: float) -> None:
        super().__init__(f"Baseline must be a positive number of BPM, got {baseline!r}")
        self.baseline = baseline


class InvalidReadingError(ClassificationError):
    """Reading is not a finite number."""

    def __init__(self, reading: float) -> None:
        super().__init__(f"Reading must be a finite number of BPM, got {reading!r}")
        self.reading = reading


def validate_baseline(baseline: float) -> None:
    """Raise ``InvalidBaselineError`` unless ``baseline`` is a positive finite number."""
    if not math.isfinite(baseline) or baseline <= 0:
        raise InvalidBaselineError(baseline)


def _validate(reading: float, baseline: float) -> None:
    validate_baseline(baseline)
    if not math.isfinite(reading):
        raise InvalidReadingError(reading)


def _exact_deviation(reading: float, baseline: float) -> Fraction:
    base = Fraction(baseline)
    return (Fraction(reading) - base) / base


def deviation(reading: float, baseline: float) -> float:
    """Fraction by which ``reading`` exceeds ``baseline`` (negative when below)."""
    _validate(reading, baseline)
    return float(_exact_deviation(reading, baseline))


def deviation_percent(reading: float, baseline: float) -> int:
    """Deviation as a whole percentage. For display only, never for classification."""
    return round(deviation(reading, baseline) * 100)


def classify(reading: float, baseline: float) -> Severity:
    """
    Map a reading and a baseline to exactly one severity level.

    Args:
        reading: Current heart rate in BPM. Any finite value is accepted.
        baseline: Resting heart rate in BPM. Must be positive.

    Returns:
        Severity: ``Severity.NORMAL`` below the lowest threshold, otherwise the
        highest level whose threshold the deviation reaches.

    Raises:
        InvalidBaselineError: If the baseline is zero, negative or not finite.
        InvalidReadingError: If the reading is not finite.
    """
    _validate(reading, baseline)
    exact = _exact_deviation(reading, baseline)

    for threshold, severity in SEVERITY_THRESHOLDS:
        if exact >= threshold:
            return severity
    return Severity.NORMAL


def threshold_bpm(baseline: float, severity: Severity) -> float:
    """Lowest heart rate that classifies as ``severity`` for this baseline."""
    validate_baseline(baseline)

    for threshold, level in SEVERITY_THRESHOLDS:
        if level is severity:
            return float(Fraction(baseline) * (1 + threshold))
    raise ValueError(f"{severity.value} has no lower threshold")
