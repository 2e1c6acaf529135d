"""Workspace layout for multi-package repositories."""

from pathlib import Path
from typing import Any, Mapping, Optional

from ..context import get_package_names, is_monorepo_root
from ..models import ProjectContext, RuleOutcome, WorkspacePackage
from ..scanner.fs import file_exists
from ..scanner.parsers import MANIFEST, read_manifest, write_json
from .base import define_module, define_rule
from .builders import per_package_rule, skipped

TURBO_CONFIG = """\
{
  "$schema": "https://turbo.build/schema.json",
  "tasks": {
    "build": { "dependsOn": ["^build"], "outputs": ["dist/**"] },
    "lint": { "dependsOn": ["^lint"] },
    "test": { "dependsOn": ["^build"] },
    "typecheck": { "dependsOn": ["^typecheck"] }
  }
}
"""


def _members(packages: list[WorkspacePackage], ctx: ProjectContext) -> list[WorkspacePackage]:
    return [p for p in packages if p.relative_path != "."]


def _public_members(packages: list[WorkspacePackage], ctx: ProjectContext) -> list[WorkspacePackage]:
    return [p for p in _members(packages, ctx) if not p.is_private]


def _current_manifest(path: Path, snapshot: Optional[Mapping[str, Any]]) -> Optional[Mapping[str, Any]]:
    # Re-read so a fix verification sees the rewritten file
    current = read_manifest(path)
    return current if current is not None else snapshot


def _check_root_private(ctx: ProjectContext) -> RuleOutcome:
    manifest = _current_manifest(ctx.cwd, ctx.manifest)
    if manifest is None:
        return skipped("No root package.json")
    if manifest.get("private") is True:
        return RuleOutcome(passed=True, message='Root package.json is "private": true')

    def fix() -> None:
        data = read_manifest(ctx.cwd) or {}
        data["private"] = True
        write_json(ctx.cwd / MANIFEST, data)

    return RuleOutcome(
        passed=False,
        message='Monorepo root package.json should be "private": true',
        hint="The root of a workspace is never published",
        fix=fix,
    )


def _check_turbo(ctx: ProjectContext) -> RuleOutcome:
    path = ctx.cwd / "turbo.json"
    if file_exists(path):
        return RuleOutcome(passed=True, message="turbo.json exists")

    def fix() -> None:
        path.write_text(TURBO_CONFIG, encoding="utf-8")

    return RuleOutcome(passed=False, message="Missing turbo.json (monorepo)", hint="Run: bunx turbo init", fix=fix)


def _missing_readme(pkg: WorkspacePackage, ctx: ProjectContext) -> Optional[str]:
    return None if file_exists(pkg.path / "README.md") else "README.md"


def _missing_license(pkg: WorkspacePackage, ctx: ProjectContext) -> Optional[str]:
    # a root LICENSE covers every package
    if file_exists(ctx.cwd / "LICENSE") or file_exists(pkg.path / "LICENSE"):
        return None
    return "LICENSE"


def _missing_description(pkg: WorkspacePackage, ctx: ProjectContext) -> Optional[str]:
    if pkg.manifest is None or pkg.manifest.get("description"):
        return None
    return "description"


def _internal_refs_without_protocol(pkg: WorkspacePackage, ctx: ProjectContext) -> Optional[list[str]]:
    """Sibling packages referenced by version instead of workspace:*."""
    siblings = get_package_names(ctx) - {pkg.name}
    manifest = _current_manifest(pkg.path, pkg.manifest) or {}
    bad = []
    for section in ("dependencies", "devDependencies", "peerDependencies"):
        for name, spec in (manifest.get(section) or {}).items():
            if name in siblings and not str(spec).startswith("workspace:"):
                bad.append(name)
    return sorted(set(bad)) or None


def _use_workspace_protocol(pkg: WorkspacePackage, names: list[str], ctx: ProjectContext) -> None:
    data = read_manifest(pkg.path)
    if data is None:
        return
    for section in ("dependencies", "devDependencies", "peerDependencies"):
        deps = data.get(section)
        if isinstance(deps, dict):
            for name in names:
                if name in deps:
                    deps[name] = "workspace:*"
    write_json(pkg.path / MANIFEST, data)


def _check_consistent_versions(ctx: ProjectContext) -> RuleOutcome:
    """Public packages share one version line (fixed versioning)."""
    if not is_monorepo_root(ctx):
        return skipped("Not a monorepo")
    versions: dict[str, list[str]] = {}
    for pkg in ctx.workspace_packages:
        if pkg.is_private or pkg.manifest is None:
            continue
        version = pkg.manifest.get("version")
        if version:
            versions.setdefault(str(version).split(".")[0], []).append(pkg.name)
    if len(versions) <= 1:
        return RuleOutcome(passed=True, message="Public packages share a major version")
    summary = "; ".join(f"{major}.x: {', '.join(names)}" for major, names in sorted(versions.items()))
    return RuleOutcome(
        passed=False,
        message=f"Public packages span {len(versions)} major versions ({summary})",
        hint="Release packages together or mark experimental ones private",
    )


MODULE = define_module(
    "monorepo",
    "Monorepo",
    "Workspace layout",
    [
        define_rule(
            "monorepo/root-private", "Check that the monorepo root is private", _check_root_private, fixable=True
        ),
        define_rule("monorepo/turbo-config", "Check that turbo.json exists", _check_turbo, fixable=True),
        per_package_rule(
            "monorepo/packages-readme",
            "Check that every package has a README.md",
            _missing_readme,
            lambda missing, pkg: f"missing {missing}",
            filter_packages=_members,
        ),
        per_package_rule(
            "monorepo/packages-license",
            "Check that every package is covered by a LICENSE",
            _missing_license,
            lambda missing, pkg: f"missing {missing}",
            filter_packages=_members,
        ),
        per_package_rule(
            "monorepo/packages-description",
            "Check that every public package has a description",
            _missing_description,
            lambda field, pkg: f'missing "{field}"',
            filter_packages=_public_members,
        ),
        per_package_rule(
            "monorepo/workspace-protocol",
            "Check that sibling packages are referenced with workspace:*",
            _internal_refs_without_protocol,
            lambda names, pkg: f"use workspace:* for {', '.join(names)}",
            fix_package=_use_workspace_protocol,
            filter_packages=_members,
        ),
        define_rule(
            "monorepo/consistent-versions",
            "Check that public packages share a major version",
            _check_consistent_versions,
        ),
    ],
    enabled=lambda ctx: ctx.is_monorepo,
)
