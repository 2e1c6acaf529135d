"""Rule and module definitions.

Every concrete check is declared with ``define_rule`` inside a
``define_module`` call; the engine only ever sees ``Rule`` objects and never
special-cases how a check was built.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field, replace
from typing import Awaitable, Callable, Optional, Sequence, Union

from ..models import CheckResult, Ecosystem, HookName, ProjectContext, RuleOutcome

CheckFn = Callable[[ProjectContext], Union[RuleOutcome, Awaitable[RuleOutcome]]]
EnabledFn = Callable[[ProjectContext], Union[bool, Awaitable[bool]]]


def category_of(name: str) -> str:
    """'files/readme' -> 'files'."""
    return name.split("/", 1)[0]


@dataclass(frozen=True)
class Rule:
    """A named check. Immutable once its module is built."""

    name: str
    description: str
    check: CheckFn
    category: str = ""
    fixable: bool = False
    hooks: tuple[HookName, ...] = ()

    def runs_under(self, hook: Optional[HookName]) -> bool:
        """Rules with no declared hooks run under every hook."""
        return hook is None or not self.hooks or HookName(hook) in self.hooks

    async def evaluate(self, ctx: ProjectContext) -> RuleOutcome:
        outcome = self.check(ctx)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        if not isinstance(outcome, RuleOutcome):
            raise TypeError(f"{self.name}: check returned {type(outcome).__name__}, expected RuleOutcome")
        return outcome

    async def run(self, ctx: ProjectContext) -> CheckResult:
        """Evaluate against ctx and normalize. Exceptions from the check propagate."""
        outcome = await self.evaluate(ctx)
        return CheckResult(
            name=self.name,
            category=self.category,
            passed=outcome.passed,
            message=outcome.message,
            severity=outcome.severity if outcome.severity is not None else ctx.severity,
            fixable=self.fixable and outcome.fix is not None,
            hint=outcome.hint,
            skipped=outcome.skipped,
            fix=outcome.fix,
        )


def define_rule(
    name: str,
    description: str,
    check: CheckFn,
    fixable: bool = False,
    hooks: Sequence[HookName | str] = (),
    category: Optional[str] = None,
) -> Rule:
    if not name or not name.strip():
        raise ValueError("rule name must be non-empty")
    return Rule(
        name=name,
        description=description,
        check=check,
        category=category or category_of(name),
        fixable=fixable,
        hooks=tuple(HookName(h) for h in hooks),
    )


@dataclass(frozen=True)
class RuleModule:
    """Rules sharing a category, with optional gates for the whole group."""

    category: str
    label: str
    description: str
    rules: tuple[Rule, ...] = field(default_factory=tuple)
    enabled: Optional[EnabledFn] = None
    ecosystem: Optional[Ecosystem] = None

    async def is_enabled(self, ctx: ProjectContext) -> bool:
        if self.enabled is None:
            return True
        enabled = self.enabled(ctx)
        if inspect.isawaitable(enabled):
            enabled = await enabled
        return bool(enabled)


def define_module(
    category: str,
    label: str,
    description: str,
    rules: Sequence[Rule],
    enabled: Optional[EnabledFn] = None,
    ecosystem: Optional[Ecosystem | str] = None,
) -> RuleModule:
    """Assemble a module; every rule is re-stamped with the module's category."""
    return RuleModule(
        category=category,
        label=label,
        description=description,
        rules=tuple(replace(r, category=category) for r in rules),
        enabled=enabled,
        ecosystem=Ecosystem(ecosystem) if ecosystem is not None else None,
    )
