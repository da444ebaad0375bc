"""
Sustained anxiety detection over a window of heart-rate readings.

A single elevated reading is noise; anxiety is flagged only when heart rate
stays at or above the mild threshold for a minimum duration while the device
is worn. Severity is then taken from the average heart rate of that period.

Key patterns:
- Protocol-based reading sources (any store can feed the detector)
- Generic Result type for expected failures of those sources
- Pure analysis separated from async fetching
"""

import asyncio
import statistics
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Protocol

from anxiease.config import DetectionConfig
from anxiease.domain.models import HeartRateReading, Severity, SustainedAnalysis
from anxiease.services.result import Result
from anxiease.services.severity import (
    ClassificationError,
    classify,
    deviation_percent,
    validate_baseline,
)
from anxiease.services.structured_logging import get_logger


class ReadingSource(Protocol):
    """
    Protocol for anything that can supply a user's recent readings.

    Structural typing keeps the detector independent of where readings live.
    """

    source_name: str

    async def fetch_recent(self, window_seconds: float) -> list[HeartRateReading]:
        """Return readings from the last ``window_seconds``, in any order."""
        ...


class InMemoryReadingSource:
    """Reading source backed by a list, for tests and local simulation."""

    def __init__(
        self,
        source_name: str,
        readings: Sequence[HeartRateReading] = (),
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.source_name = source_name
        self._readings: list[HeartRateReading] = list(readings)
        self._clock = clock

    def add(self, reading: HeartRateReading) -> None:
        self._readings.append(reading)

    async def fetch_recent(self, window_seconds: float) -> list[HeartRateReading]:
        cutoff = self._clock() - timedelta(seconds=window_seconds)
        return [r for r in self._readings if r.timestamp >= cutoff]


class SustainedAnxietyDetector:
    """
    Finds the longest continuously elevated period in a window of readings.

    A reading is elevated when the device is worn and the reading classifies
    as at least mild. A run ends at the first non-elevated reading; an
    unfinished run ends at the latest reading.
    """

    def __init__(self, config: DetectionConfig | None = None) -> None:
        self.config = config or DetectionConfig()
        self.logger = get_logger(__name__, component="sustained_anxiety_detector")

    def analyze(self, readings: Sequence[HeartRateReading], baseline: float) -> SustainedAnalysis:
        """
        Analyze readings against a baseline.

        Raises:
            InvalidBaselineError: If the baseline is not positive.
        """
        validate_baseline(baseline)

        if len(readings) < self.config.min_data_points:
            return SustainedAnalysis(
                is_sustained=False,
                duration_seconds=0,
                data_points=0,
                reason=(
                    f"Not enough readings ({len(readings)} < {self.config.min_data_points}) "
                    "for sustained detection"
                ),
            )

        ordered = sorted(readings, key=lambda r: r.timestamp)

        longest_seconds = 0.0
        best_run: list[HeartRateReading] = []
        run: list[HeartRateReading] = []

        for reading in ordered:
            if reading.worn and classify(reading.heart_rate, baseline).is_anxiety:
                run.append(reading)
                continue

            if run:
                elapsed = (reading.timestamp - run[0].timestamp).total_seconds()
                if elapsed > longest_seconds:
                    longest_seconds = elapsed
                    best_run = run
            run = []

        # Still elevated at the latest reading
        if run:
            elapsed = (ordered[-1].timestamp - run[0].timestamp).total_seconds()
            if elapsed > longest_seconds:
                longest_seconds = elapsed
                best_run = run

        duration = int(longest_seconds)

        if best_run and longest_seconds >= self.config.min_sustained_seconds:
            average = statistics.fmean(r.heart_rate for r in best_run)
            severity = classify(average, baseline)
            percentage = deviation_percent(average, baseline)

            self.logger.info(
                "sustained_anxiety_detected",
                duration_seconds=duration,
                average_heart_rate=round(average, 1),
                baseline=baseline,
                severity=severity.value,
            )
            return SustainedAnalysis(
                is_sustained=True,
                duration_seconds=duration,
                data_points=len(best_run),
                average_heart_rate=round(average),
                percentage_above=percentage,
                severity=severity,
                reason=(
                    f"Heart rate sustained {percentage}% above personal baseline "
                    f"for {duration}+ seconds"
                ),
            )

        if longest_seconds > 0:
            reason = f"Elevated for {duration}s (need {self.config.min_sustained_seconds:g}s)"
        else:
            reason = "Heart rate within normal range"

        return SustainedAnalysis(
            is_sustained=False,
            duration_seconds=duration,
            data_points=len(best_run),
            severity=Severity.NORMAL,
            reason=reason,
        )

    async def detect(
        self, source: ReadingSource, baseline: float
    ) -> Result[SustainedAnalysis, Exception]:
        """
        Fetch the recent window from ``source`` and analyze it.

        Source failures, timeouts and unusable readings from the source come
        back as ``Result.err``. An invalid baseline is a caller error and is
        raised before anything is fetched.
        """
        validate_baseline(baseline)

        try:
            readings = await asyncio.wait_for(
                source.fetch_recent(self.config.history_window_seconds),
                timeout=self.config.fetch_timeout_seconds,
            )
        except TimeoutError as e:
            self.logger.warning("reading_fetch_timeout", source=source.source_name)
            return Result.err(e)
        except Exception as e:
            self.logger.exception(
                "reading_fetch_failed", source=source.source_name, error=str(e)
            )
            return Result.err(e)

        self.logger.debug(
            "readings_fetched", source=source.source_name, count=len(readings)
        )
        try:
            analysis = self.analyze(readings, baseline)
        except ClassificationError as e:
            self.logger.warning(
                "invalid_reading_from_source", source=source.source_name, error=str(e)
            )
            return Result.err(e)

        return Result.ok(analysis)
