"""Static rule registry, built once at import."""

from __future__ import annotations

from typing import Iterable, Optional

from . import ci, config_files, deps, files, format, hooks, monorepo, pkg, python, release, runtime, rust, testing
from .base import Rule, RuleModule

MODULES: tuple[RuleModule, ...] = (
    files.MODULE,
    config_files.MODULE,
    pkg.MODULE,
    runtime.MODULE,
    ci.MODULE,
    hooks.MODULE,
    format.MODULE,
    testing.MODULE,
    deps.MODULE,
    release.MODULE,
    monorepo.MODULE,
    rust.MODULE,
    python.MODULE,
)


def validate_modules(modules: Iterable[RuleModule]) -> tuple[RuleModule, ...]:
    """Raise ValueError on duplicate categories or rule names."""
    modules = tuple(modules)
    categories: set[str] = set()
    names: set[str] = set()
    for module in modules:
        if module.category in categories:
            raise ValueError(f"Duplicate module category: {module.category}")
        categories.add(module.category)
        for rule in module.rules:
            if rule.name in names:
                raise ValueError(f"Duplicate rule name: {rule.name}")
            names.add(rule.name)
    return modules


validate_modules(MODULES)


def all_rules(modules: Iterable[RuleModule] = MODULES) -> list[Rule]:
    return [rule for module in modules for rule in module.rules]


def get_rule(name: str, modules: Iterable[RuleModule] = MODULES) -> Optional[Rule]:
    for rule in all_rules(modules):
        if rule.name == name:
            return rule
    return None


def get_module(category: str, modules: Iterable[RuleModule] = MODULES) -> Optional[RuleModule]:
    for module in modules:
        if module.category == category:
            return module
    return None


def categories(modules: Iterable[RuleModule] = MODULES) -> dict[str, str]:
    """category -> display label, in registration order."""
    return {m.category: m.label for m in modules}
