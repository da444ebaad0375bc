"""User-facing alert content for each anxiety severity."""

from typing import NamedTuple

from anxiease.domain.models import AlertContent, Severity


class _Presentation(NamedTuple):
    label: str
    icon: str
    color: str
    channel_id: str
    requires_confirmation: bool
    alert_type: str
    confidence: int


_PRESENTATION: dict[Severity, _Presentation] = {
    Severity.MILD: _Presentation(
        "Mild", "🟢", "#4CAF50", "mild_anxiety_alerts_v4", True, "check_in_mild", 60
    ),
    Severity.MODERATE: _Presentation(
        "Moderate", "🟡", "#FFFF00", "moderate_anxiety_alerts_v2", True, "check_in_moderate", 70
    ),
    Severity.SEVERE: _Presentation(
        "Severe", "🟠", "#FFA500", "severe_anxiety_alerts_v2", True, "check_in_severe", 85
    ),
    Severity.CRITICAL: _Presentation(
        "Critical", "🚨", "#FF0000", "critical_anxiety_alerts_v2", False, "definitive_anxiety", 95
    ),
}


def _body(severity: Severity, heart_rate: int, percentage: int, duration_seconds: int) -> str:
    elevation = f"{heart_rate} BPM ({percentage}% above your baseline) for {duration_seconds}s"

    if severity is Severity.CRITICAL:
        return (
            f"URGENT: Your heart rate has been critically elevated at {elevation}. "
            "This indicates a severe anxiety episode. Please seek immediate support if needed."
        )
    if severity is Severity.SEVERE:
        return (
            f"Hi there! I noticed your heart rate was elevated to {elevation}. "
            "Are you experiencing any anxiety or stress right now?"
        )
    if severity is Severity.MODERATE:
        return (
            f"Your heart rate increased to {elevation}. "
            "How are you feeling? Is everything alright?"
        )
    return (
        f"I noticed a slight increase in your heart rate to {elevation}. "
        "Are you experiencing any anxiety or is this just normal activity?"
    )


def build_alert_content(
    severity: Severity, heart_rate: int, percentage_above: int, duration_seconds: int
) -> AlertContent:
    """
    Build the title, body and delivery hints for an alert.

    Critical alerts count as a confirmed episode; every other level asks the
    user to confirm.

    Raises:
        ValueError: For ``Severity.NORMAL``, which never alerts.
    """
    if severity not in _PRESENTATION:
        raise ValueError(f"No alert content for severity {severity.value!r}")

    p = _PRESENTATION[severity]
    return AlertContent(
        title=f"{p.icon} {p.label} Alert - {p.confidence}% Confidence",
        body=_body(severity, heart_rate, percentage_above, duration_seconds),
        color=p.color,
        channel_id=p.channel_id,
        sound=f"{severity.value}_alert.mp3",
        requires_confirmation=p.requires_confirmation,
        alert_type=p.alert_type,
        auto_confirm=severity is Severity.CRITICAL,
        confidence=p.confidence,
    )
