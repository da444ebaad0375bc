"""
Alert service that chains detection, rate limiting and alert content.

Pipeline for one evaluation:
1. Analyze recent readings for sustained elevation
2. Check the user's rate limits (atomically recording the alert)
3. Build user-facing content for the severity
4. Hand the alert to caller-supplied handlers

Storage and transport stay with the caller: readings come in as arguments or
through a ReadingSource, and alerts leave through handler callables.
"""

import asyncio
import inspect
from collections import deque
from collections.abc import Awaitable, Callable, Sequence

from anxiease.config import AppConfig, get_config
from anxiease.domain.models import (
    AnxietyAlert,
    HeartRateReading,
    Severity,
    SustainedAnalysis,
    UserResponse,
)
from anxiease.services.alert_content import build_alert_content
from anxiease.services.rate_limiting import AlertRateLimiter
from anxiease.services.structured_logging import get_logger
from anxiease.services.sustained_detection import ReadingSource, SustainedAnxietyDetector

AlertHandler = Callable[[AnxietyAlert], None] | Callable[[AnxietyAlert], Awaitable[None]]


class AnxietyAlertService:
    """Orchestrates sustained detection, rate limiting and alert dispatch."""

    def __init__(
        self,
        config: AppConfig | None = None,
        rate_limiter: AlertRateLimiter | None = None,
    ) -> None:
        self.config = config or get_config()
        self.detector = SustainedAnxietyDetector(self.config.detection)
        self.rate_limiter = rate_limiter or AlertRateLimiter(self.config.rate_limit)
        self.alert_history: deque[AnxietyAlert] = deque(maxlen=self.config.alert_history_size)
        self.logger = get_logger(__name__, component="anxiety_alert_service")

    async def evaluate(
        self,
        user_id: str,
        readings: Sequence[HeartRateReading],
        baseline: float,
        session_id: str | None = None,
        device_id: str | None = None,
    ) -> AnxietyAlert | None:
        """
        Decide whether ``readings`` warrant an alert for ``user_id``.

        Returns the alert, or None when elevation is not sustained or the user
        is still within a cooldown.
        """
        analysis = self.detector.analyze(readings, baseline)
        return await self._alert_from_analysis(user_id, analysis, baseline, session_id, device_id)

    async def evaluate_source(
        self,
        user_id: str,
        source: ReadingSource,
        baseline: float,
        session_id: str | None = None,
        device_id: str | None = None,
    ) -> AnxietyAlert | None:
        """Fetch readings from ``source`` and evaluate them. Source failures yield None."""
        result = await self.detector.detect(source, baseline)
        if result.is_err():
            self.logger.warning(
                "evaluation_skipped",
                user_id=user_id,
                source=source.source_name,
                error=str(result.unwrap_err()),
            )
            return None

        return await self._alert_from_analysis(
            user_id, result.unwrap(), baseline, session_id, device_id
        )

    async def _alert_from_analysis(
        self,
        user_id: str,
        analysis: SustainedAnalysis,
        baseline: float,
        session_id: str | None,
        device_id: str | None,
    ) -> AnxietyAlert | None:
        if not analysis.is_sustained:
            self.logger.debug("no_sustained_anxiety", user_id=user_id, reason=analysis.reason)
            return None

        if not await self.rate_limiter.try_acquire(user_id, analysis.severity):
            return None

        # Sustained analyses always carry both figures
        heart_rate = analysis.average_heart_rate or 0
        percentage = analysis.percentage_above or 0

        alert = AnxietyAlert(
            user_id=user_id,
            severity=analysis.severity,
            heart_rate=heart_rate,
            baseline=baseline,
            duration_seconds=analysis.duration_seconds,
            reason=analysis.reason,
            content=build_alert_content(
                analysis.severity, heart_rate, percentage, analysis.duration_seconds
            ),
            session_id=session_id,
            device_id=device_id,
        )
        self.alert_history.append(alert)

        self.logger.info(
            "alert_generated",
            user_id=user_id,
            severity=alert.severity.value,
            heart_rate=alert.heart_rate,
            duration_seconds=alert.duration_seconds,
        )
        return alert

    async def dispatch(
        self,
        alert: AnxietyAlert,
        handlers: list[AlertHandler] | None = None,
    ) -> None:
        """Dispatch an alert to handlers (push, SMS, storage...). One failure does not stop the rest."""
        if not handlers:
            handlers = [self._console_alert_handler]

        for handler in handlers:
            try:
                if inspect.iscoroutinefunction(handler):
                    await handler(alert)
                else:
                    handler(alert)
            except Exception as e:
                self.logger.error(
                    "alert_dispatch_failed",
                    error=str(e),
                    user_id=alert.user_id,
                    severity=alert.severity.value,
                )

    async def record_response(
        self, user_id: str, severity: Severity, response: UserResponse
    ) -> float:
        """Record the user's answer to a check-in; returns the next cooldown in seconds."""
        return await self.rate_limiter.record_response(user_id, severity, response)

    def _console_alert_handler(self, alert: AnxietyAlert) -> None:
        """Development alert handler that prints to console."""
        print(f"\n{alert.content.title}")
        print(f"User: {alert.user_id}")
        print(f"Time: {alert.created_at.strftime('%Y-%m-%d %H:%M:%S UTC')}")
        print(f"Severity: {alert.severity.value.upper()}")
        print(f"Message: {alert.content.body}")
        if alert.content.requires_confirmation:
            print("Asks: Are you feeling anxious?")
        print("-" * 80)


async def main() -> None:
    """Demonstrate the alert pipeline on simulated readings."""
    from datetime import UTC, datetime, timedelta

    from anxiease.services.structured_logging import configure_logging
    from anxiease.services.sustained_detection import InMemoryReadingSource

    print("Starting anxiety alert demo (baseline 70 BPM)")

    config = get_config()
    configure_logging(config.logging)
    service = AnxietyAlertService(config)
    now = datetime.now(UTC)

    scenarios = [
        ("user-mild", 88.0),
        ("user-moderate", 100.0),
        ("user-severe", 115.0),
        ("user-critical", 130.0),
    ]

    for user_id, heart_rate in scenarios:
        # 45 seconds of readings every 5 seconds, ending now
        readings = [
            HeartRateReading(heart_rate=heart_rate, timestamp=now - timedelta(seconds=offset))
            for offset in range(45, -1, -5)
        ]
        source = InMemoryReadingSource(f"{user_id}-watch", readings)

        alert = await service.evaluate_source(user_id, source, baseline=70.0)
        if alert is None:
            print(f"{user_id}: no alert")
            continue
        await service.dispatch(alert)

    # Same user again: suppressed by rate limiting
    repeat = await service.evaluate_source("user-critical", source, baseline=70.0)
    print(f"Repeat critical alert sent: {repeat is not None}")


if __name__ == "__main__":
    asyncio.run(main())
