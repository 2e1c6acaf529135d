"""Workspace discovery — finds member packages of a monorepo."""

from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable, Optional

from .fs import SKIP_PARTS, directory_exists
from .parsers import parse_cargo_toml, parse_pnpm_workspace, read_manifest, workspace_patterns

# Conventional package directories scanned even without declared workspaces
CONVENTIONAL_DIRS = ("packages", "apps", "libs", "services", "tools")
PACKAGE_MARKERS = ("package.json", "Cargo.toml", "pyproject.toml", "go.mod")


def _should_skip(path: Path, repo_root: Path) -> bool:
    """Skip paths inside ignored directories."""
    try:
        rel = path.relative_to(repo_root)
    except ValueError:
        return True
    return any(part in SKIP_PARTS for part in rel.parts)


def rel_path(path: Path, repo_root: Path) -> str:
    """Relative POSIX path string, or '.' for root."""
    try:
        rel = path.relative_to(repo_root).as_posix()
        return rel if rel not in ("", ".") else "."
    except ValueError:
        return str(path)


def has_package_marker(directory: Path) -> bool:
    return any((directory / m).is_file() for m in PACKAGE_MARKERS)


def get_workspace_patterns(root: Path) -> list[str]:
    """Declared workspace globs: package.json workspaces, pnpm-workspace.yaml, Cargo workspace members."""
    patterns = list(workspace_patterns(read_manifest(root)))
    extra = parse_pnpm_workspace(root / "pnpm-workspace.yaml")
    extra += parse_cargo_toml(root / "Cargo.toml")["workspace_members"]
    for p in extra:
        if p not in patterns:
            patterns.append(p)
    return patterns


def _conventional_package_dirs(root: Path) -> list[Path]:
    found = []
    for name in CONVENTIONAL_DIRS:
        base = root / name
        if not directory_exists(base):
            continue
        try:
            children = sorted(base.iterdir())
        except OSError:
            continue
        for child in children:
            if child.is_dir() and not child.name.startswith(".") and has_package_marker(child):
                found.append(child)
    return found


def is_monorepo(root: Path) -> bool:
    """Workspaces declared with at least one entry, or conventional dirs holding child manifests."""
    return bool(get_workspace_patterns(root)) or bool(_conventional_package_dirs(root))


def _normalize(pattern: str) -> str:
    pattern = pattern.strip()
    if pattern.startswith("./"):
        pattern = pattern[2:]
    return pattern.rstrip("/")


def _expand(root: Path, pattern: str) -> list[Path]:
    pattern = _normalize(pattern)
    if not pattern or pattern.startswith("/") or ".." in Path(pattern).parts:
        return []
    try:
        matches = sorted(root.glob(pattern))
    except (ValueError, OSError):
        return []
    return [m for m in matches if m.is_dir()]


def discover_workspace_packages(root: Path, ignore: Iterable[str] = ()) -> list[Path]:
    """Member package directories in discovery order, de-duplicated by absolute path."""
    root = root.resolve()
    patterns = get_workspace_patterns(root)
    includes = [p for p in patterns if not p.startswith("!")]
    excludes = [_normalize(p[1:]) for p in patterns if p.startswith("!")]
    ignore = [_normalize(p) for p in ignore]

    seen: set[Path] = set()
    found: list[Path] = []

    def add(candidate: Path) -> None:
        resolved = candidate.resolve()
        if resolved == root or resolved in seen:
            return
        if _should_skip(resolved, root) or not has_package_marker(resolved):
            return
        rel = rel_path(resolved, root)
        if any(fnmatch(rel, p) for p in excludes) or any(fnmatch(rel, p) for p in ignore):
            return
        seen.add(resolved)
        found.append(resolved)

    for pattern in includes:
        for d in _expand(root, pattern):
            add(d)
    for d in _conventional_package_dirs(root):
        add(d)
    return found


def find_workspace_root(cwd: Path) -> Optional[Path]:
    """Nearest directory (cwd or an ancestor) that declares workspaces."""
    cwd = cwd.resolve()
    for candidate in (cwd, *cwd.parents):
        if get_workspace_patterns(candidate):
            return candidate
    return None
