"""
Alert rate limiting with cooldowns shaped by user responses.

Two limits apply before an alert goes out:
- a short per-user window so simultaneous detections cannot double-alert
- a per-severity cooldown, lengthened when the user said they were not
  anxious and shortened when they dismissed the check-in
"""

import asyncio
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from anxiease.config import RateLimitConfig, SeverityCooldown
from anxiease.domain.models import ALERT_LEVELS, RateLimitStatus, Severity, UserResponse
from anxiease.services.structured_logging import get_logger


@dataclass
class _CooldownState:
    last_notification: float | None = None
    last_response: UserResponse | None = None
    responded_at: float | None = None


class AlertRateLimiter:
    """
    In-memory alert rate limiter.

    Check-and-record runs under one lock, so two evaluations racing for the
    same user cannot both pass.
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._lock = asyncio.Lock()
        self._last_alert: dict[str, float] = {}
        self._states: dict[tuple[str, Severity], _CooldownState] = {}
        self.logger = get_logger(__name__, component="alert_rate_limiter")

    def _cooldown_config(self, severity: Severity) -> SeverityCooldown:
        if not severity.is_anxiety:
            raise ValueError("normal readings never produce alerts")
        return self.config.cooldowns[severity]

    def _cooldown(
        self, severity: Severity, state: _CooldownState, now: float
    ) -> tuple[float, str]:
        """Cooldown length and its kind, given the user's latest response."""
        cooldown = self._cooldown_config(severity)

        if state.last_response is None or state.responded_at is None:
            return cooldown.base_seconds, "normal"
        if now - state.responded_at >= cooldown.max_seconds:
            return cooldown.base_seconds, "normal"

        if state.last_response is UserResponse.NO:
            return cooldown.denied_seconds, "extended"
        if state.last_response is UserResponse.NOT_NOW:
            return cooldown.dismissed_seconds, "dismissed"
        return cooldown.base_seconds, "normal"

    async def try_acquire(self, user_id: str, severity: Severity) -> bool:
        """Return True and record the alert if ``user_id`` may be alerted now."""
        self._cooldown_config(severity)

        async with self._lock:
            now = self._clock()

            last_alert = self._last_alert.get(user_id)
            if last_alert is not None and now - last_alert < self.config.user_window_seconds:
                self.logger.info(
                    "alert_rate_limited",
                    user_id=user_id,
                    severity=severity.value,
                    scope="user",
                    remaining_seconds=math.ceil(
                        self.config.user_window_seconds - (now - last_alert)
                    ),
                )
                return False

            state = self._states.setdefault((user_id, severity), _CooldownState())
            if state.last_notification is not None:
                cooldown, kind = self._cooldown(severity, state, now)
                elapsed = now - state.last_notification
                if elapsed < cooldown:
                    self.logger.info(
                        "alert_rate_limited",
                        user_id=user_id,
                        severity=severity.value,
                        scope="severity",
                        cooldown_type=kind,
                        remaining_seconds=math.ceil(cooldown - elapsed),
                    )
                    return False

            self._last_alert[user_id] = now
            state.last_notification = now
            return True

    async def record_response(
        self, user_id: str, severity: Severity, response: UserResponse
    ) -> float:
        """Store the user's answer to a check-in and return the next cooldown in seconds."""
        cooldown = self._cooldown_config(severity)

        async with self._lock:
            now = self._clock()
            state = self._states.setdefault((user_id, severity), _CooldownState())
            if state.last_notification is None:
                state.last_notification = now
            state.last_response = response
            state.responded_at = now

        if response is UserResponse.NO:
            next_cooldown = cooldown.denied_seconds
        elif response is UserResponse.NOT_NOW:
            next_cooldown = cooldown.dismissed_seconds
        else:
            next_cooldown = cooldown.base_seconds

        self.logger.info(
            "user_response_recorded",
            user_id=user_id,
            severity=severity.value,
            response=response.value,
            next_cooldown_seconds=next_cooldown,
        )
        return next_cooldown

    def status(self, user_id: str) -> list[RateLimitStatus]:
        """Cooldown state of every alert level for ``user_id``."""
        now = self._clock()
        statuses = []

        for severity in ALERT_LEVELS:
            state = self._states.get((user_id, severity))
            if state is None or state.last_notification is None:
                statuses.append(
                    RateLimitStatus(severity=severity, rate_limited=False, remaining_seconds=0)
                )
                continue

            cooldown, kind = self._cooldown(severity, state, now)
            elapsed = now - state.last_notification
            rate_limited = elapsed < cooldown
            statuses.append(
                RateLimitStatus(
                    severity=severity,
                    rate_limited=rate_limited,
                    remaining_seconds=math.ceil(cooldown - elapsed) if rate_limited else 0,
                    cooldown_type=kind,
                    last_response=state.last_response,
                )
            )

        return statuses

    def clear(self, user_id: str | None = None) -> None:
        """Drop rate limit state for one user, or for everyone."""
        if user_id is None:
            self._last_alert.clear()
            self._states.clear()
        else:
            self._last_alert.pop(user_id, None)
            for key in [key for key in self._states if key[0] == user_id]:
                del self._states[key]

        self.logger.info("rate_limits_cleared", user_id=user_id or "all")
