"""
Threshold report for a baseline heart rate.

Usage:
    python -m anxiease.report 73.2
    python -m anxiease.report 70 --reading 84 --reading 100 --reading 126
"""

from __future__ import annotations

import argparse
import sys

from rich.console import Console
from rich.table import Table

from anxiease.domain.models import ALERT_LEVELS, Severity
from anxiease.services.severity import (
    SEVERITY_THRESHOLDS,
    ClassificationError,
    classify,
    deviation_percent,
    threshold_bpm,
    validate_baseline,
)

SEVERITY_STYLES = {
    Severity.NORMAL: "green",
    Severity.MILD: "bright_green",
    Severity.MODERATE: "yellow",
    Severity.SEVERE: "dark_orange",
    Severity.CRITICAL: "bold red",
}


def build_threshold_table(baseline: float) -> Table:
    """Table of the heart rate at which each severity starts."""
    validate_baseline(baseline)
    percentages = {severity: int(threshold * 100) for threshold, severity in SEVERITY_THRESHOLDS}

    table = Table(title=f"Anxiety thresholds for baseline {baseline:g} BPM")
    table.add_column("Severity", style="bold")
    table.add_column("Above baseline", justify="right")
    table.add_column("Starts at (BPM)", justify="right")

    table.add_row(
        f"[{SEVERITY_STYLES[Severity.NORMAL]}]normal[/]",
        f"< {percentages[Severity.MILD]}%",
        f"< {threshold_bpm(baseline, Severity.MILD):.1f}",
    )
    for severity in ALERT_LEVELS:
        table.add_row(
            f"[{SEVERITY_STYLES[severity]}]{severity.value}[/]",
            f">= {percentages[severity]}%",
            f"{threshold_bpm(baseline, severity):.1f}",
        )
    return table


def build_readings_table(baseline: float, readings: list[float]) -> Table:
    """Table classifying each reading against the baseline."""
    table = Table(title="Readings")
    table.add_column("Heart rate (BPM)", justify="right")
    table.add_column("Deviation", justify="right")
    table.add_column("Severity", style="bold")

    for reading in readings:
        severity = classify(reading, baseline)
        table.add_row(
            f"{reading:g}",
            f"{deviation_percent(reading, baseline):+d}%",
            f"[{SEVERITY_STYLES[severity]}]{severity.value}[/]",
        )
    return table


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Show anxiety severity thresholds for a baseline")
    parser.add_argument("baseline", type=float, help="Resting heart rate in BPM")
    parser.add_argument(
        "--reading",
        type=float,
        action="append",
        default=[],
        help="Heart rate to classify (repeatable)",
    )
    args = parser.parse_args(argv)

    console = Console()
    try:
        console.print(build_threshold_table(args.baseline))
        if args.reading:
            console.print(build_readings_table(args.baseline, args.reading))
    except ClassificationError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
