"""Tests for report rendering and JSON output."""

import click

from repodoctor.format import format_pre_commit_report, format_report, format_upgrade_hint, report_to_dict
from repodoctor.models import CheckReport, CheckResult, PresetName, Severity, UpgradeReadiness


def _report():
    results = [
        CheckResult("files/readme", "files", True, "README.md exists", Severity.ERROR),
        CheckResult("files/license", "files", False, "Missing LICENSE", Severity.ERROR, hint="Create LICENSE"),
        CheckResult("files/changelog", "files", False, "Missing CHANGELOG.md", Severity.WARN),
        CheckResult("rust/edition", "rust", True, "No Cargo.toml (skipped)", Severity.ERROR, skipped=True),
    ]
    return CheckReport(total=4, passed=2, failed=1, warnings=1, results=results)


def test_format_report_hides_all_skipped_categories():
    text = click.unstyle(format_report(_report(), PresetName.DEV))
    assert "repodoctor · preset dev" in text
    assert "FILES" in text
    assert "RUST" not in text
    assert "✗ Missing LICENSE" in text
    assert "! Missing CHANGELOG.md" in text
    assert "→ Create LICENSE" in text
    assert "Score    2/4 (50%)" in text
    assert "1 error(s)" in text


def test_format_report_verbose_shows_names():
    text = click.unstyle(format_report(_report(), PresetName.DEV, verbose=True))
    assert "[files/license]" in text


def test_pre_commit_report_blocking_only():
    text = click.unstyle(format_pre_commit_report(_report()))
    assert "1 blocking issue(s)" in text
    assert "Missing LICENSE" in text
    assert "CHANGELOG" not in text


def test_pre_commit_report_all_clear():
    report = CheckReport(total=2, passed=2, failed=0, warnings=0, results=[])
    assert click.unstyle(format_pre_commit_report(report)) == "✓ repodoctor: 2/2 checks passed"


def test_upgrade_hint():
    ready = UpgradeReadiness(ready=True, next_preset=PresetName.STABLE, current_score=100, next_score=100, blockers=0)
    assert '"preset": "stable"' in click.unstyle(format_upgrade_hint(ready))
    top = UpgradeReadiness(ready=False, next_preset=None, current_score=100, next_score=100, blockers=0)
    assert format_upgrade_hint(top) is None


def test_report_to_dict():
    data = report_to_dict(_report())
    assert data["total"] == 4
    assert data["score"] == 50
    assert data["results"][1] == {
        "name": "files/license",
        "category": "files",
        "passed": False,
        "message": "Missing LICENSE",
        "severity": "error",
        "fixable": False,
        "hint": "Create LICENSE",
        "skipped": False,
        "crashed": False,
    }
