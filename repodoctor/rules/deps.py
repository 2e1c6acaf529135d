"""Dependency hygiene: banned packages and version drift across packages."""

from collections import defaultdict

from ..context import check_banned_deps, get_all_packages
from ..models import ProjectContext, RuleOutcome
from .base import define_module, define_rule
from .builders import skipped

# Packages with a maintained or built-in replacement
DEFAULT_BANNED = ("eslint", "prettier", "jest", "moment", "request", "tslint")


def _check_banned(ctx: ProjectContext) -> RuleOutcome:
    if ctx.manifest is None and not ctx.workspace_packages:
        return skipped("No package.json")
    banned = ctx.options.get_list("packages", list(DEFAULT_BANNED))
    found, issues = check_banned_deps(ctx, banned, include_root=True)
    if not found:
        return RuleOutcome(passed=True, message="No banned dependencies")
    where = "; ".join(f"{location}: {', '.join(deps)}" for location, deps in issues)
    return RuleOutcome(
        passed=False,
        message=f"Banned dependencies found ({where})",
        hint=f"Remove {', '.join(found)} (biome replaces eslint/prettier, bun test replaces jest)",
    )


def _check_duplicate(ctx: ProjectContext) -> RuleOutcome:
    """The same dependency must use one version spec across every package."""
    packages = get_all_packages(ctx)
    if len(packages) < 2:
        return skipped("Single package")
    specs: dict[str, set[str]] = defaultdict(set)
    for pkg in packages:
        manifest = pkg.manifest or {}
        for section in ("dependencies", "devDependencies"):
            for name, spec in (manifest.get(section) or {}).items():
                spec = str(spec)
                if not spec.startswith("workspace:"):
                    specs[name].add(spec)
    drift = sorted(name for name, versions in specs.items() if len(versions) > 1)
    if not drift:
        return RuleOutcome(passed=True, message="Dependency versions consistent")
    details = ", ".join(f"{name} ({' / '.join(sorted(specs[name]))})" for name in drift)
    return RuleOutcome(
        passed=False,
        message=f"{len(drift)} dependency(s) with mismatched versions: {details}",
        hint="Align versions, or use a catalog in the root package.json",
    )


MODULE = define_module(
    "deps",
    "Dependencies",
    "Dependency hygiene",
    [
        define_rule("deps/banned", "Check for banned dependencies", _check_banned),
        define_rule("deps/duplicate", "Check for the same dependency at different versions", _check_duplicate),
    ],
)
