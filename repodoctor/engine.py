"""Rule engine: selects rules for a project, runs them concurrently, reconciles and fixes."""

from __future__ import annotations

import asyncio
import inspect
import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .config import load_root_config
from .context import build_context, has_ecosystem
from .models import (
    CheckReport,
    CheckResult,
    DoctorConfig,
    FixFn,
    HookName,
    PresetName,
    ProjectContext,
    Severity,
    UpgradeReadiness,
    score_percent,
)
from .presets import get_severity, next_preset
from .rules.base import Rule, RuleModule
from .rules.registry import MODULES

logger = logging.getLogger(__name__)

# Results at these severities are advisory and never block
NON_BLOCKING = (Severity.OFF, Severity.INFO)


def resolve_preset(preset: Optional[PresetName | str], config: DoctorConfig) -> PresetName:
    """Explicit argument, then the config's preset, then dev."""
    return PresetName(preset or config.preset or PresetName.DEV)


async def module_applies(module: RuleModule, base: ProjectContext) -> bool:
    if module.ecosystem is not None and not has_ecosystem(base, module.ecosystem):
        logger.debug("skipping module %s: no %s ecosystem", module.category, module.ecosystem.value)
        return False
    try:
        enabled = await module.is_enabled(base)
    except Exception as e:
        logger.warning("enabled check for module %s raised %s: %s", module.category, type(e).__name__, e)
        return False
    if not enabled:
        logger.debug("skipping module %s: disabled for this project", module.category)
    return enabled


async def select_rules(
    base: ProjectContext,
    modules: Iterable[RuleModule],
    preset: PresetName,
    config: DoctorConfig,
    hook: Optional[HookName | str] = None,
    pre_commit: bool = False,
) -> list[tuple[Rule, ProjectContext]]:
    """Applicable rules in registration order, each with its own context."""
    hook = HookName(hook) if hook is not None else None
    queued: list[tuple[Rule, ProjectContext]] = []
    for module in modules:
        if not await module_applies(module, base):
            continue
        for rule in module.rules:
            if not rule.runs_under(hook):
                continue
            severity = get_severity(rule.name, preset, config.rules)
            if severity == Severity.OFF:
                continue
            # pre-commit only surfaces blocking issues
            if pre_commit and severity == Severity.WARN:
                continue
            queued.append((rule, base.for_rule(severity, config.options.get(rule.name))))
    return queued


def crash_result(rule: Rule, ctx: ProjectContext, error: BaseException) -> CheckResult:
    return CheckResult(
        name=rule.name,
        category=rule.category,
        passed=False,
        message=f"{rule.name} crashed: {type(error).__name__}: {error}",
        severity=ctx.severity,
        hint="This is a bug in the rule; please report it",
        crashed=True,
    )


async def run_rule(rule: Rule, ctx: ProjectContext) -> CheckResult:
    """rule.run, with an exception turned into a crashed result."""
    try:
        return await rule.run(ctx)
    except Exception as e:
        logger.warning(
            "rule %s crashed: %s: %s", rule.name, type(e).__name__, e, exc_info=logger.isEnabledFor(logging.DEBUG)
        )
        return crash_result(rule, ctx, e)


async def _apply_fix(fix: FixFn) -> None:
    outcome = fix()
    if inspect.isawaitable(outcome):
        await outcome


def counts_as_passed(result: CheckResult) -> bool:
    if result.crashed:
        return False
    return result.passed or result.skipped or result.severity in NON_BLOCKING


async def _fix_and_verify(rule: Rule, ctx: ProjectContext, result: CheckResult) -> bool:
    """Apply the result's fix, then re-run the original check. True when it now passes."""
    try:
        await _apply_fix(result.fix)
    except Exception as e:
        logger.warning("fix for %s failed: %s", rule.name, e)
        result.message = f"{result.message} (fix failed: {e})"
        return False
    recheck = await run_rule(rule, ctx)
    if not recheck.passed:
        logger.debug("fix for %s applied but the check still fails: %s", rule.name, recheck.message)
        return False
    result.passed = True
    result.message = f"{result.message} (fixed)"
    return True


async def reconcile(
    evaluated: Sequence[tuple[Rule, ProjectContext, CheckResult]], fix: bool = False
) -> CheckReport:
    """Count results in registration order; fixes run one at a time."""
    report = CheckReport(total=0, passed=0, failed=0, warnings=0)
    for rule, ctx, result in evaluated:
        report.results.append(result)
        if counts_as_passed(result):
            report.passed += 1
            continue
        is_warning = result.severity == Severity.WARN and not result.crashed
        if is_warning:
            report.warnings += 1
        else:
            report.failed += 1

        if fix and result.fixable and result.fix is not None:
            if await _fix_and_verify(rule, ctx, result):
                report.passed += 1
                if is_warning:
                    report.warnings -= 1
                else:
                    report.failed -= 1
    report.total = len(report.results)
    return report


async def run_checks(
    cwd: Path | str,
    fix: bool = False,
    preset: Optional[PresetName | str] = None,
    config: Optional[DoctorConfig] = None,
    hook: Optional[HookName | str] = None,
    pre_commit: bool = False,
    modules: Optional[Iterable[RuleModule]] = None,
) -> CheckReport:
    """Run every applicable rule against the project at `cwd`.

    Args:
        fix: apply fixes for failing fixable rules and re-verify each one.
        preset: overrides the configured preset.
        config: skips config loading when given.
        hook: only rules that declare this hook (or no hooks) run.
        pre_commit: drop rules resolved to warn.
        modules: rule modules to use instead of the built-in registry.
    """
    cwd = Path(cwd).resolve()
    config = config if config is not None else load_root_config(cwd)
    preset = resolve_preset(preset, config)
    modules = MODULES if modules is None else tuple(modules)

    # placeholder severity; each rule gets its own resolved copy
    base = await build_context(cwd, config, Severity.ERROR)
    queued = await select_rules(base, modules, preset, config, hook=hook, pre_commit=pre_commit)
    logger.debug("running %d rule(s) with preset %s", len(queued), preset.value)

    results = await asyncio.gather(*(run_rule(rule, ctx) for rule, ctx in queued))
    evaluated = [(rule, ctx, result) for (rule, ctx), result in zip(queued, results)]
    return await reconcile(evaluated, fix=fix)


async def check_upgrade_readiness(
    cwd: Path | str,
    preset: Optional[PresetName | str] = None,
    config: Optional[DoctorConfig] = None,
    modules: Optional[Iterable[RuleModule]] = None,
) -> UpgradeReadiness:
    """Run a second pass against the next stricter preset and report the gap."""
    cwd = Path(cwd).resolve()
    config = config if config is not None else load_root_config(cwd)
    current = resolve_preset(preset, config)
    target = next_preset(current)
    if target is None:
        return UpgradeReadiness(ready=False, next_preset=None, current_score=100, next_score=100, blockers=0)

    report = await run_checks(cwd, preset=target, config=config, modules=modules)
    blockers = report.failed + report.warnings
    return UpgradeReadiness(
        ready=blockers == 0,
        next_preset=target,
        current_score=100,
        next_score=score_percent(report.passed, report.total),
        blockers=blockers,
    )


def get_exit_code(report: CheckReport) -> int:
    """1 when any blocking failure remains; warnings never fail the process."""
    return 1 if report.failed > 0 else 0
