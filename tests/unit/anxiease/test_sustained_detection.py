"""
Tests for sustained anxiety detection.

These tests verify that only continuous, worn elevation lasting long enough is
reported, and that severity comes from the average of the elevated period.
"""

import asyncio
import math
from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from anxiease.config import DetectionConfig
from anxiease.domain.models import HeartRateReading, Severity
from anxiease.services.severity import InvalidBaselineError, InvalidReadingError
from anxiease.services.sustained_detection import InMemoryReadingSource, SustainedAnxietyDetector

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)
BASELINE = 70.0


def series(*heart_rates: float, step: float = 5.0, start: datetime = T0) -> list[HeartRateReading]:
    """Readings spaced ``step`` seconds apart."""
    return [
        HeartRateReading(heart_rate=hr, timestamp=start + timedelta(seconds=i * step))
        for i, hr in enumerate(heart_rates)
    ]


@pytest.fixture
def detector() -> SustainedAnxietyDetector:
    return SustainedAnxietyDetector(DetectionConfig(min_sustained_seconds=30.0))


class TestAnalyze:
    def test_too_few_readings_is_not_sustained(self, detector: SustainedAnxietyDetector) -> None:
        analysis = detector.analyze(series(130, 130), BASELINE)

        assert not analysis.is_sustained
        assert analysis.duration_seconds == 0
        assert "Not enough readings" in analysis.reason

    def test_ongoing_elevation_long_enough_is_sustained(
        self, detector: SustainedAnxietyDetector
    ) -> None:
        # 8 readings, 5s apart, all at 90 BPM (about 28.6% above baseline)
        analysis = detector.analyze(series(*[90] * 8), BASELINE)

        assert analysis.is_sustained
        assert analysis.duration_seconds == 35
        assert analysis.data_points == 8
        assert analysis.average_heart_rate == 90
        assert analysis.percentage_above == 29
        assert analysis.severity == Severity.MILD
        assert "29% above personal baseline" in analysis.reason

    def test_run_closed_by_normal_reading_lasts_until_that_reading(
        self, detector: SustainedAnxietyDetector
    ) -> None:
        # Elevated from 0s to 25s, normal at 30s: the run spans 30s
        analysis = detector.analyze(series(100, 100, 100, 100, 100, 100, 72), BASELINE)

        assert analysis.is_sustained
        assert analysis.duration_seconds == 30
        assert analysis.data_points == 6
        assert analysis.severity == Severity.MODERATE

    def test_short_elevation_is_not_sustained(self, detector: SustainedAnxietyDetector) -> None:
        analysis = detector.analyze(series(110, 110, 110, 110, 110, 75, 75), BASELINE)

        assert not analysis.is_sustained
        assert analysis.duration_seconds == 25
        assert analysis.severity == Severity.NORMAL
        assert analysis.reason == "Elevated for 25s (need 30s)"

    def test_not_worn_reading_breaks_the_run(self, detector: SustainedAnxietyDetector) -> None:
        readings = series(*[120] * 8)
        readings[3] = readings[3].model_copy(update={"worn": False})

        analysis = detector.analyze(readings, BASELINE)

        # 0-15s and 20-35s, neither reaches 30s
        assert not analysis.is_sustained
        assert analysis.duration_seconds == 15

    def test_normal_heart_rate(self, detector: SustainedAnxietyDetector) -> None:
        analysis = detector.analyze(series(*[72] * 10), BASELINE)

        assert not analysis.is_sustained
        assert analysis.duration_seconds == 0
        assert analysis.reason == "Heart rate within normal range"

    def test_severity_comes_from_average_of_run(self, detector: SustainedAnxietyDetector) -> None:
        # Average of 100..130 is 115, about 64% above baseline
        analysis = detector.analyze(series(100, 105, 110, 115, 120, 125, 130), BASELINE)

        assert analysis.is_sustained
        assert analysis.average_heart_rate == 115
        assert analysis.severity == Severity.SEVERE

    def test_critical_elevation(self, detector: SustainedAnxietyDetector) -> None:
        analysis = detector.analyze(series(*[130] * 7), BASELINE)

        assert analysis.severity == Severity.CRITICAL

    def test_readings_are_sorted_before_analysis(self, detector: SustainedAnxietyDetector) -> None:
        readings = series(*[95] * 7)
        analysis = detector.analyze(list(reversed(readings)), BASELINE)

        assert analysis.is_sustained
        assert analysis.duration_seconds == 30

    def test_longest_run_wins(self, detector: SustainedAnxietyDetector) -> None:
        # 10s critical burst, then a 35s mild run
        readings = series(130, 130, 130, 72, *[90] * 8)

        analysis = detector.analyze(readings, BASELINE)

        assert analysis.is_sustained
        assert analysis.severity == Severity.MILD
        assert analysis.duration_seconds == 35

    def test_invalid_baseline_raises(self, detector: SustainedAnxietyDetector) -> None:
        with pytest.raises(InvalidBaselineError):
            detector.analyze(series(*[90] * 8), 0)


class FailingSource:
    """Test double that always fails."""

    source_name = "failing"

    async def fetch_recent(self, window_seconds: float) -> list[HeartRateReading]:
        raise ConnectionError("device store unavailable")


class SlowSource:
    """Test double slower than any reasonable timeout."""

    source_name = "slow"

    async def fetch_recent(self, window_seconds: float) -> list[HeartRateReading]:
        await asyncio.sleep(5)
        return []


class TestDetect:
    @pytest.mark.asyncio
    async def test_detect_uses_recent_window(self) -> None:
        detector = SustainedAnxietyDetector(
            DetectionConfig(min_sustained_seconds=30.0, history_window_seconds=40.0)
        )
        stale = series(*[130] * 8, start=T0 - timedelta(minutes=10))
        fresh = series(*[100] * 8)
        source = InMemoryReadingSource(
            "watch-1", stale + fresh, clock=lambda: T0 + timedelta(seconds=35)
        )

        result = await detector.detect(source, BASELINE)

        assert result.is_ok()
        analysis = result.unwrap()
        assert analysis.is_sustained
        assert analysis.severity == Severity.MODERATE
        assert analysis.data_points == 8

    @pytest.mark.asyncio
    async def test_detect_returns_error_when_source_fails(self) -> None:
        detector = SustainedAnxietyDetector()

        result = await detector.detect(FailingSource(), BASELINE)

        assert result.is_err()
        assert "device store unavailable" in str(result.unwrap_err())

    @pytest.mark.asyncio
    async def test_detect_times_out(self) -> None:
        detector = SustainedAnxietyDetector(DetectionConfig(fetch_timeout_seconds=0.01))

        result = await detector.detect(SlowSource(), BASELINE)

        assert result.is_err()
        assert isinstance(result.unwrap_err(), TimeoutError)

    @pytest.mark.asyncio
    async def test_detect_raises_on_invalid_baseline(self) -> None:
        detector = SustainedAnxietyDetector()

        with pytest.raises(InvalidBaselineError):
            await detector.detect(FailingSource(), -1)

    @pytest.mark.asyncio
    async def test_in_memory_source_add(self) -> None:
        source = InMemoryReadingSource("watch-1", clock=lambda: T0)
        source.add(HeartRateReading(heart_rate=80, timestamp=T0))

        assert len(await source.fetch_recent(10)) == 1


    @pytest.mark.asyncio
    async def test_detect_returns_error_for_non_finite_reading(self) -> None:
        detector = SustainedAnxietyDetector()
        # model_construct skips validation, as a store deserializing raw rows might
        corrupt = HeartRateReading.model_construct(
            heart_rate=math.nan, timestamp=T0 + timedelta(seconds=40), worn=True
        )
        source = InMemoryReadingSource(
            "watch-1", [*series(*[100] * 7), corrupt], clock=lambda: T0 + timedelta(seconds=40)
        )

        result = await detector.detect(source, BASELINE)

        assert result.is_err()
        assert isinstance(result.unwrap_err(), InvalidReadingError)


class TestHeartRateReading:
    @pytest.mark.parametrize("heart_rate", [math.nan, math.inf, -math.inf])
    def test_non_finite_heart_rate_is_rejected(self, heart_rate: float) -> None:
        with pytest.raises(ValidationError):
            HeartRateReading(heart_rate=heart_rate)
