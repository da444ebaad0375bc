"""
Domain models for heart-rate based anxiety monitoring.

These models represent the core business concepts and are framework-agnostic.
They use Pydantic for validation so results can be handed to any transport.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    """Anxiety severity levels, ordered from no event to emergency."""

    NORMAL = "normal"
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANKS[self]

    @property
    def is_anxiety(self) -> bool:
        """Whether this level represents an anxiety event at all."""
        return self is not Severity.NORMAL


_SEVERITY_RANKS = {severity: rank for rank, severity in enumerate(Severity)}

# Levels that can produce an alert, lowest first
ALERT_LEVELS: tuple[Severity, ...] = (
    Severity.MILD,
    Severity.MODERATE,
    Severity.SEVERE,
    Severity.CRITICAL,
)


class UserResponse(str, Enum):
    """Answers a user can give to an anxiety check-in."""

    YES = "yes"
    NO = "no"
    NOT_NOW = "not_now"


class HeartRateReading(BaseModel):
    """Single heart-rate sample from a wearable."""

    model_config = ConfigDict(frozen=True)  # Immutable for better reasoning

    heart_rate: float = Field(allow_inf_nan=False, description="Beats per minute")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    worn: bool = Field(default=True, description="False when the device reports it is off-wrist")
    spo2: float | None = Field(None, ge=0.0, le=100.0)
    body_temp: float | None = None


class SustainedAnalysis(BaseModel):
    """Outcome of checking a window of readings for sustained elevation."""

    is_sustained: bool
    duration_seconds: int = Field(ge=0)
    data_points: int = Field(ge=0, description="Readings in the longest elevated run")
    average_heart_rate: int | None = None
    percentage_above: int | None = None
    severity: Severity = Severity.NORMAL
    reason: str


class AlertContent(BaseModel):
    """Presentation details for an anxiety alert, keyed off severity."""

    model_config = ConfigDict(frozen=True)

    title: str
    body: str
    color: str = Field(pattern=r"^#[0-9A-F]{6}$")
    channel_id: str
    sound: str
    requires_confirmation: bool
    alert_type: str
    auto_confirm: bool = False
    confidence: int = Field(ge=0, le=100, description="Confidence shown to the user, percent")


class AnxietyAlert(BaseModel):
    """An alert that passed detection and rate limiting."""

    user_id: str
    severity: Severity
    heart_rate: int
    baseline: float = Field(gt=0.0)
    duration_seconds: int = Field(ge=0)
    reason: str
    content: AlertContent
    session_id: str | None = None
    device_id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class RateLimitStatus(BaseModel):
    """Current cooldown state of one severity for one user."""

    severity: Severity
    rate_limited: bool
    remaining_seconds: int = Field(ge=0)
    cooldown_type: str = "normal"
    last_response: UserResponse | None = None
