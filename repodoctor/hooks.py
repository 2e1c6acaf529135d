"""Git/publish hook integration: guards, checks scoped to the hook, info messages."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Mapping, Optional, Union

from .engine import run_checks
from .models import CheckReport, DoctorConfig, HookName, PresetName
from .rules.base import RuleModule
from .scanner.exec import is_ci

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuardOutcome:
    passed: bool
    message: str


@dataclass(frozen=True)
class Guard:
    """Precondition that aborts a hook before any rule runs."""

    name: str
    hooks: tuple[HookName, ...]
    description: str
    run: Callable[[], Union[GuardOutcome, Awaitable[GuardOutcome]]]


@dataclass(frozen=True)
class InfoMessage:
    name: str
    hooks: tuple[HookName, ...]
    message: Callable[[], str]


@dataclass
class HookResult:
    success: bool
    report: Optional[CheckReport] = None
    failed_guard: Optional[Guard] = None
    guard_message: Optional[str] = None
    info: list[str] = field(default_factory=list)


PUBLISH_BLOCKED = """\
Direct publish blocked. Use the release workflow instead.

To release:
  1. Push changes to trigger CI
  2. CI creates or updates a release PR
  3. Merge the PR to publish

Or set CI=true to bypass (not recommended)"""


def ci_env_guard(env: Optional[Mapping[str, str]] = None) -> GuardOutcome:
    if is_ci(env):
        return GuardOutcome(passed=True, message="Running in CI environment")
    return GuardOutcome(passed=False, message=PUBLISH_BLOCKED)


GUARDS: tuple[Guard, ...] = (
    Guard(
        name="guard/ci-env",
        hooks=(HookName.PREPUBLISH,),
        description="Block direct publish outside CI",
        run=ci_env_guard,
    ),
)

INFO_MESSAGES: tuple[InfoMessage, ...] = (
    InfoMessage(
        name="info/release-flow",
        hooks=(HookName.PREPUSH,),
        message=lambda: "Release workflow: push to main -> release PR is opened -> merge the PR to publish",
    ),
    InfoMessage(
        name="info/build-reminder",
        hooks=(HookName.PREPUSH,),
        message=lambda: "Releases do not build: make sure a prepack script or a CI build step exists",
    ),
)


def guards_for_hook(guards: Iterable[Guard], hook: HookName) -> list[Guard]:
    return [g for g in guards if hook in g.hooks]


def info_for_hook(info: Iterable[InfoMessage], hook: HookName) -> list[InfoMessage]:
    return [i for i in info if hook in i.hooks]


async def run_hook(
    hook: HookName | str,
    cwd: Path | str,
    preset: Optional[PresetName | str] = None,
    config: Optional[DoctorConfig] = None,
    fix: bool = False,
    guards: Iterable[Guard] = GUARDS,
    info: Iterable[InfoMessage] = INFO_MESSAGES,
    modules: Optional[Iterable[RuleModule]] = None,
) -> HookResult:
    """Guards first (fail fast), then the hook's rules with warnings suppressed, then info."""
    hook = HookName(hook)
    for guard in guards_for_hook(guards, hook):
        outcome = guard.run()
        if inspect.isawaitable(outcome):
            outcome = await outcome
        if not outcome.passed:
            logger.debug("guard %s blocked %s", guard.name, hook.value)
            return HookResult(success=False, failed_guard=guard, guard_message=outcome.message)

    report = await run_checks(
        cwd, fix=fix, preset=preset, config=config, hook=hook, pre_commit=True, modules=modules
    )
    return HookResult(
        success=report.failed == 0,
        report=report,
        info=[i.message() for i in info_for_hook(info, hook)],
    )
