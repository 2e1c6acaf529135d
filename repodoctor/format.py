"""Terminal output formatting — box layout, colors, width control."""

import shutil
from typing import Any, List, Optional

import click

from .models import CheckReport, CheckResult, PresetName, Severity, UpgradeReadiness
from .rules.registry import categories


def _get_width() -> int:
    try:
        return min(72, shutil.get_terminal_size((72, 24)).columns)
    except OSError:
        return 72


def _wrap(text: str, indent: int = 0, width: int = 72) -> List[str]:
    """Wrap text to width, first line has indent, following lines +2."""
    prefix = " " * indent
    extra = "  "
    lines = []
    rest = text
    first = True
    while rest:
        max_len = width - (indent if first else indent + len(extra))
        if len(rest) <= max_len:
            lines.append(prefix + rest)
            break
        break_at = rest.rfind(" ", 0, max_len + 1)
        if break_at <= 0:
            break_at = max_len
        lines.append(prefix + rest[:break_at].strip())
        rest = rest[break_at:].strip()
        prefix = " " * indent + extra
        first = False
    return lines


def _score_color(score: int) -> str:
    if score >= 90:
        return "green"
    if score >= 70:
        return "yellow"
    return "red"


def _status(r: CheckResult) -> tuple[str, str]:
    """(bullet, color) for one result."""
    if r.skipped:
        return "-", "white"
    if r.passed:
        return "✓", "green"
    if r.crashed or r.severity == Severity.ERROR:
        return "✗", "red"
    if r.severity == Severity.WARN:
        return "!", "yellow"
    return "i", "blue"


def _group(results: List[CheckResult]) -> dict[str, List[CheckResult]]:
    groups: dict[str, List[CheckResult]] = {}
    for r in results:
        groups.setdefault(r.category, []).append(r)
    return groups


def _result_lines(r: CheckResult, width: int, verbose: bool) -> List[str]:
    bullet, color = _status(r)
    text = f"{bullet} {r.message}"
    if verbose:
        text = f"{text} [{r.name}]"
    lines = [click.style(ln, fg=color, dim=r.skipped) for ln in _wrap(text, indent=2, width=width)]
    if r.hint and not r.passed:
        for ln in _wrap(f"→ {r.hint}", indent=4, width=width):
            lines.append(click.style(ln, dim=True))
    return lines


def format_report(report: CheckReport, preset: PresetName, verbose: bool = False) -> str:
    """Human report grouped by category. Categories where every rule was skipped are hidden."""
    width = _get_width()
    labels = categories()
    lines = []

    lines.append("┌" + "─" * (width - 2) + "┐")
    lines.append(f" repodoctor · preset {PresetName(preset).value}")
    lines.append("─" * width)

    for category, results in _group(report.results).items():
        if all(r.skipped for r in results):
            continue
        lines.append(f" {labels.get(category, category).upper()}")
        for r in results:
            if r.skipped and not verbose:
                continue
            lines.extend(_result_lines(r, width, verbose))

    lines.append("─" * width)
    score = report.score
    lines.append(click.style(f" Score    {report.passed}/{report.total} ({score}%)", fg=_score_color(score)))
    counts = [f"{report.failed} error(s)", f"{report.warnings} warning(s)"]
    fixable = len(report.fixable)
    if fixable:
        counts.append(f"{fixable} fixable")
    lines.append(click.style(" " + "  ·  ".join(counts), dim=True))
    if fixable:
        lines.append(click.style(" Run with --fix to apply fixes", dim=True))
    lines.append("└" + "─" * (width - 2) + "┘")
    return "\n".join(lines)


def format_pre_commit_report(report: CheckReport) -> str:
    """Only blocking failures; a single line when everything passes."""
    blocking = [
        r for r in report.results if not r.passed and not r.skipped and (r.crashed or r.severity == Severity.ERROR)
    ]
    if not blocking:
        return click.style(f"✓ repodoctor: {report.passed}/{report.total} checks passed", fg="green")
    width = _get_width()
    lines = [click.style(f"✗ repodoctor: {len(blocking)} blocking issue(s)", fg="red")]
    for r in blocking:
        lines.extend(_result_lines(r, width, verbose=True))
    return "\n".join(lines)


def format_upgrade_hint(readiness: UpgradeReadiness) -> Optional[str]:
    if readiness.next_preset is None:
        return None
    target = readiness.next_preset.value
    if readiness.ready:
        return click.style(f" Ready to upgrade: set \"preset\": \"{target}\"", fg="green")
    return click.style(
        f" Next preset {target}: {readiness.next_score}% passing, {readiness.blockers} blocker(s)",
        dim=True,
    )


def result_to_dict(r: CheckResult) -> dict[str, Any]:
    return {
        "name": r.name,
        "category": r.category,
        "passed": r.passed,
        "message": r.message,
        "severity": r.severity.value,
        "fixable": r.fixable,
        "hint": r.hint,
        "skipped": r.skipped,
        "crashed": r.crashed,
    }


def report_to_dict(report: CheckReport) -> dict[str, Any]:
    return {
        "total": report.total,
        "passed": report.passed,
        "failed": report.failed,
        "warnings": report.warnings,
        "score": report.score,
        "results": [result_to_dict(r) for r in report.results],
    }
