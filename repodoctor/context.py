"""Project context builder plus the helpers rules use to walk packages."""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Optional

from .config import load_config
from .models import DoctorConfig, Ecosystem, ProjectContext, ProjectType, Severity, WorkspacePackage, freeze
from .scanner.fs import has_source_code
from .scanner.parsers import detect_ecosystems, read_manifest
from .scanner.workspace import discover_workspace_packages, find_workspace_root, get_workspace_patterns, is_monorepo, rel_path

logger = logging.getLogger(__name__)

# Export targets that are data rather than code
CONFIG_EXTENSIONS = (".json", ".yaml", ".yml", ".toml", ".css", ".scss", ".less")

SHARED_CONFIG_PATTERNS = [
    re.compile(r"^@[\w-]+/(biome-config|eslint-config|prettier-config|tsconfig)$"),
    re.compile(r"^[\w-]+-config$"),
    re.compile(r"^config-[\w-]+$"),
]

EXAMPLE_PATH_PATTERNS = [
    re.compile(r"^examples?/", re.I),
    re.compile(r"/examples?/", re.I),
    re.compile(r"^demos?/", re.I),
    re.compile(r"/demos?/", re.I),
    re.compile(r"[-_]example$", re.I),
    re.compile(r"[-_]demo$", re.I),
]


def is_example_path(relative_path: str) -> bool:
    return any(p.search(relative_path) for p in EXAMPLE_PATH_PATTERNS)


def detect_ecosystem(directory: Path) -> Ecosystem:
    """Primary ecosystem of a directory, by marker file priority."""
    found = detect_ecosystems(directory)
    return Ecosystem(found[0]) if found else Ecosystem.UNKNOWN


def _export_targets(exports: Any) -> list[str]:
    if isinstance(exports, str):
        return [exports]
    targets: list[str] = []
    if isinstance(exports, Mapping):
        for value in exports.values():
            if isinstance(value, str):
                targets.append(value)
            elif isinstance(value, Mapping):
                # conditional exports: {"import": ..., "types": ...}
                targets.extend(v for v in value.values() if isinstance(v, str))
    return targets


def detect_project_type(
    manifest: Optional[Mapping[str, Any]],
    source_present: bool,
    relative_path: Optional[str] = None,
) -> ProjectType:
    """Classify a package from its path and its manifest's exports."""
    if relative_path and is_example_path(relative_path):
        return ProjectType.EXAMPLE
    manifest = manifest or {}
    exports = manifest.get("exports")
    if manifest.get("private") and not exports:
        return ProjectType.APPLICATION
    targets = _export_targets(exports) if exports else []
    if not targets:
        return ProjectType.LIBRARY if source_present else ProjectType.UNKNOWN
    if all(t.endswith(CONFIG_EXTENSIONS) for t in targets):
        return ProjectType.CONFIG
    return ProjectType.LIBRARY


def is_shared_config_package(name: Optional[str]) -> bool:
    if not name:
        return False
    return any(p.search(name) for p in SHARED_CONFIG_PATTERNS)


def detect_is_shared_config_source(
    manifest: Optional[Mapping[str, Any]], packages: Iterable[WorkspacePackage]
) -> bool:
    """True when the root or any workspace member publishes shared config."""
    if any(is_shared_config_package(pkg.name) for pkg in packages):
        return True
    return is_shared_config_package((manifest or {}).get("name"))


def _load_package(
    path: Path, root: Path, root_config: DoctorConfig
) -> WorkspacePackage:
    manifest = read_manifest(path)
    relative = rel_path(path, root)
    return WorkspacePackage(
        name=(manifest or {}).get("name") or path.name,
        path=path,
        relative_path=relative,
        manifest=freeze(manifest) if manifest is not None else None,
        ecosystem=detect_ecosystem(path),
        project_type=detect_project_type(manifest, has_source_code(path), relative),
        config=load_config(path, root_config),
    )


def _discover(cwd: Path, config: DoctorConfig) -> dict[str, Any]:
    """Blocking part of context building; runs in a worker thread."""
    manifest = read_manifest(cwd)
    monorepo = is_monorepo(cwd)
    packages: list[WorkspacePackage] = []
    if monorepo:
        for path in discover_workspace_packages(cwd, ignore=config.ignore):
            packages.append(_load_package(path, cwd.resolve(), config))
    root = find_workspace_root(cwd)
    ecosystems = {Ecosystem(e) for e in detect_ecosystems(cwd)}
    ecosystems.update(p.ecosystem for p in packages if p.ecosystem != Ecosystem.UNKNOWN)
    return {
        "manifest": manifest,
        "is_monorepo": monorepo,
        "workspace_packages": tuple(packages),
        "workspace_patterns": tuple(get_workspace_patterns(cwd)),
        "workspace_root": root,
        "project_type": detect_project_type(manifest, has_source_code(cwd)),
        "ecosystem": detect_ecosystem(cwd),
        "ecosystems": frozenset(ecosystems),
        "is_shared_config_source": detect_is_shared_config_source(manifest, packages),
    }


async def build_context(
    cwd: Path | str, config: DoctorConfig, severity: Severity = Severity.ERROR
) -> ProjectContext:
    """Gather project facts once; the result is shared read-only by every rule."""
    cwd = Path(cwd).resolve()
    facts = await asyncio.to_thread(_discover, cwd, config)
    manifest = facts.pop("manifest")
    logger.debug(
        "context for %s: monorepo=%s packages=%d ecosystems=%s",
        cwd,
        facts["is_monorepo"],
        len(facts["workspace_packages"]),
        sorted(e.value for e in facts["ecosystems"]),
    )
    return ProjectContext(
        cwd=cwd,
        manifest=freeze(manifest) if manifest is not None else None,
        severity=severity,
        config=config,
        **facts,
    )


def is_monorepo_root(ctx: ProjectContext) -> bool:
    return ctx.is_monorepo and len(ctx.workspace_packages) > 0


def is_config_only_monorepo(ctx: ProjectContext) -> bool:
    if not is_monorepo_root(ctx):
        return False
    return all(p.project_type == ProjectType.CONFIG for p in ctx.workspace_packages)


def needs_build_scripts(ctx: ProjectContext) -> bool:
    """Config-only and example projects have nothing to build or test."""
    buildable = (ProjectType.LIBRARY, ProjectType.APPLICATION)
    if not is_monorepo_root(ctx):
        return ctx.project_type in buildable
    return any(p.project_type in buildable for p in ctx.workspace_packages)


def needs_tests(pkg: WorkspacePackage) -> bool:
    return pkg.project_type in (ProjectType.LIBRARY, ProjectType.APPLICATION)


def root_package(ctx: ProjectContext) -> Optional[WorkspacePackage]:
    """The root manifest as a package with relative path '.', or None without a manifest."""
    if ctx.manifest is None:
        return None
    return WorkspacePackage(
        name=ctx.manifest.get("name") or "root",
        path=ctx.cwd,
        relative_path=".",
        manifest=ctx.manifest,
        ecosystem=Ecosystem.TYPESCRIPT,
        project_type=ctx.project_type,
        config=ctx.config,
    )


def get_all_packages(ctx: ProjectContext) -> list[WorkspacePackage]:
    """Root first (when it has a manifest), then workspace packages in discovery order."""
    root = root_package(ctx)
    return ([root] if root else []) + list(ctx.workspace_packages)


def get_packages_to_check(
    ctx: ProjectContext,
    include_private: bool = True,
    include_root: bool = False,
    ecosystem: Optional[Ecosystem] = None,
    filter: Optional[Callable[[WorkspacePackage], bool]] = None,
) -> list[WorkspacePackage]:
    """Workspace packages for a monorepo, [root] for a single package; then filtered."""
    root = root_package(ctx)
    if is_monorepo_root(ctx):
        packages = list(ctx.workspace_packages)
        if include_root and root:
            packages.insert(0, root)
    else:
        if root is None:
            return []
        packages = [root]

    if not include_private:
        packages = [p for p in packages if not p.is_private]
    if ecosystem is not None:
        packages = [p for p in packages if p.ecosystem == ecosystem]
    if filter is not None:
        packages = [p for p in packages if filter(p)]
    return packages


def get_public_packages(ctx: ProjectContext) -> list[WorkspacePackage]:
    return get_packages_to_check(ctx, include_private=False)


def get_package_names(ctx: ProjectContext) -> set[str]:
    return {p.name for p in ctx.workspace_packages}


def has_ecosystem(ctx: ProjectContext, ecosystem: Ecosystem | str) -> bool:
    """Root or any workspace member belongs to the ecosystem."""
    ecosystem = Ecosystem(ecosystem)
    if ecosystem in ctx.ecosystems:
        return True
    return any(p.ecosystem == ecosystem for p in ctx.workspace_packages)


def check_banned_deps(
    ctx: ProjectContext, banned: Iterable[str], **options: Any
) -> tuple[list[str], list[tuple[str, list[str]]]]:
    """Banned names found across packages: (unique names, [(relative_path, names)])."""
    banned = list(banned)
    found: list[str] = []
    issues: list[tuple[str, list[str]]] = []
    for pkg in get_packages_to_check(ctx, **options):
        manifest = pkg.manifest or {}
        deps = {**(manifest.get("dependencies") or {}), **(manifest.get("devDependencies") or {})}
        hits = [d for d in banned if d in deps]
        if hits:
            found.extend(h for h in hits if h not in found)
            issues.append((pkg.relative_path, hits))
    return found, issues
