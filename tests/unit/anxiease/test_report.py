"""Tests for the threshold report command."""

import pytest
from rich.console import Console

from anxiease.report import build_readings_table, build_threshold_table, main
from anxiease.services.severity import InvalidBaselineError


def render(table) -> str:
    console = Console(width=120, record=True)
    console.print(table)
    return console.export_text()


def test_threshold_table_lists_each_level() -> None:
    text = render(build_threshold_table(70))

    for label, bpm in [("mild", "84.0"), ("moderate", "91.0"), ("severe", "105.0"), ("critical", "126.0")]:
        assert label in text
        assert bpm in text
    assert ">= 20%" in text


def test_readings_table_classifies_readings() -> None:
    text = render(build_readings_table(70, [83.99, 100, 126]))

    assert "normal" in text
    assert "+43%" in text
    assert "critical" in text


def test_threshold_table_rejects_invalid_baseline() -> None:
    with pytest.raises(InvalidBaselineError):
        build_threshold_table(0)


def test_main_prints_report(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["70", "--reading", "100"]) == 0

    out = capsys.readouterr().out
    assert "moderate" in out
    assert "84.0" in out


def test_main_reports_invalid_baseline(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["0"]) == 1

    assert "Error" in capsys.readouterr().out


def test_main_reports_non_finite_reading(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["70", "--reading", "nan"]) == 1

    assert "Error" in capsys.readouterr().out
