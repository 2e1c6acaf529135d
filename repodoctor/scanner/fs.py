"""File-system probes. None of these raise for missing paths."""

import os
import re
from pathlib import Path
from typing import Iterable

SKIP_PARTS = {".git", "__pycache__", ".venv", "venv", "node_modules", ".tox", "build", "dist", "target", ".turbo"}


def file_exists(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False


def directory_exists(path: Path) -> bool:
    try:
        return path.is_dir()
    except OSError:
        return False


def any_exists(directory: Path, names: Iterable[str]) -> Path | None:
    """First of `names` that exists under `directory`."""
    for name in names:
        candidate = directory / name
        if candidate.exists():
            return candidate
    return None


def find_files(directory: Path, pattern: str | re.Pattern, limit: int | None = None) -> list[Path]:
    """Recursively find files whose name matches `pattern`, skipping vendored/build dirs."""
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    results: list[Path] = []
    if not directory_exists(directory):
        return results
    for root, dirs, files in os.walk(directory, onerror=lambda _err: None):
        dirs[:] = sorted(d for d in dirs if d not in SKIP_PARTS)
        for name in sorted(files):
            if regex.search(name):
                results.append(Path(root) / name)
                if limit is not None and len(results) >= limit:
                    return results
    return results


def has_source_code(directory: Path) -> bool:
    """True if the directory has a src/ tree or top-level source files."""
    if directory_exists(directory / "src") or directory_exists(directory / "lib"):
        return True
    return bool(find_files(directory, r"\.(ts|tsx|js|mjs|py|rs|go)$", limit=1))
