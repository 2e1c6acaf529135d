"""Parsers for manifests and config files. Missing or malformed input yields None/empty."""

import json
import re
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

import yaml

MANIFEST = "package.json"

# Files whose presence marks a directory's ecosystem, in priority order
ECOSYSTEM_MARKERS = [
    ("typescript", ("package.json",)),
    ("rust", ("Cargo.toml",)),
    ("go", ("go.mod",)),
    ("python", ("pyproject.toml", "setup.py")),
]


def read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None


def read_json(path: Path) -> Optional[Any]:
    content = read_text(path)
    if content is None:
        return None
    try:
        return json.loads(content)
    except ValueError:
        return None


def read_toml(path: Path) -> Optional[dict[str, Any]]:
    content = read_text(path)
    if content is None:
        return None
    try:
        return tomllib.loads(content)
    except tomllib.TOMLDecodeError:
        return None


def read_yaml(path: Path) -> Optional[Any]:
    content = read_text(path)
    if content is None:
        return None
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError:
        return None


def write_json(path: Path, data: Any, indent: int | str = 2) -> None:
    """Write JSON with a trailing newline (manifest style)."""
    path.write_text(json.dumps(data, indent=indent, ensure_ascii=False) + "\n", encoding="utf-8")


def read_manifest(directory: Path) -> Optional[dict[str, Any]]:
    """Parsed package.json, or None when absent or not an object."""
    data = read_json(directory / MANIFEST)
    return data if isinstance(data, dict) else None


def workspace_patterns(manifest: Optional[dict[str, Any]]) -> list[str]:
    """Workspace globs from package.json: a list, or {"packages": [...]} (yarn style)."""
    if not manifest:
        return []
    ws = manifest.get("workspaces")
    if isinstance(ws, dict):
        ws = ws.get("packages")
    if not isinstance(ws, list):
        return []
    return [p for p in ws if isinstance(p, str) and p.strip()]


def parse_pnpm_workspace(path: Path) -> list[str]:
    """Package globs from pnpm-workspace.yaml."""
    data = read_yaml(path)
    if not isinstance(data, dict):
        return []
    packages = data.get("packages")
    if not isinstance(packages, list):
        return []
    return [p for p in packages if isinstance(p, str) and p.strip()]


def parse_cargo_toml(path: Path) -> dict[str, Any]:
    """Parse Cargo.toml for crate name, edition, binary-ness and workspace members."""
    result: dict[str, Any] = {
        "name": "",
        "edition": None,
        "is_binary": False,
        "workspace_members": [],
    }
    data = read_toml(path)
    if data is None:
        return result

    package = data.get("package") or {}
    result["name"] = package.get("name", "")
    edition = package.get("edition")
    if isinstance(edition, dict):
        # edition.workspace = true
        edition = (data.get("workspace", {}).get("package") or {}).get("edition")
    result["edition"] = str(edition) if edition else None
    result["is_binary"] = bool(data.get("bin")) or (path.parent / "src" / "main.rs").exists()
    workspace = data.get("workspace") or {}
    members = workspace.get("members") if isinstance(workspace, dict) else None
    if isinstance(members, list):
        result["workspace_members"] = [m for m in members if isinstance(m, str)]
    return result


def parse_pyproject(path: Path) -> dict[str, Any]:
    """Parse pyproject.toml for project name, Python constraint and build backend."""
    result: dict[str, Any] = {
        "name": "",
        "python_version": None,
        "build_backend": None,
        "build_requires": [],
        "has_scripts": False,
        "tool": {},
    }
    data = read_toml(path)
    if data is None:
        return result

    if "project" in data:
        proj = data["project"]
        result["name"] = proj.get("name", "")
        if "requires-python" in proj:
            result["python_version"] = proj["requires-python"]
        result["has_scripts"] = bool(proj.get("scripts"))

    if "build-system" in data:
        build = data["build-system"]
        result["build_backend"] = build.get("build-backend")
        result["build_requires"] = [str(r) for r in build.get("requires", [])]

    tool = data.get("tool") or {}
    result["tool"] = tool
    # Tool.poetry
    if "poetry" in tool:
        poetry = tool["poetry"]
        if not result["name"]:
            result["name"] = poetry.get("name", "")
        if not result["python_version"]:
            py = (poetry.get("dependencies") or {}).get("python")
            if py:
                result["python_version"] = str(py)
        result["has_scripts"] = result["has_scripts"] or bool(poetry.get("scripts"))
    return result


def parse_workflow(path: Path) -> dict[str, Any]:
    """Parse a GitHub workflow YAML for runners, reusable workflows and secrets."""
    result: dict[str, Any] = {"runs_on": [], "uses": [], "secrets_inherit": False, "run": []}
    data = read_yaml(path)
    if not isinstance(data, dict):
        return result

    jobs = data.get("jobs") or {}
    for job in jobs.values():
        if not isinstance(job, dict):
            continue
        runs = job.get("runs-on", [])
        if isinstance(runs, str):
            runs = [runs]
        result["runs_on"].extend(runs)
        if isinstance(job.get("uses"), str):
            result["uses"].append(job["uses"])
        if job.get("secrets") == "inherit":
            result["secrets_inherit"] = True
        for step in job.get("steps") or []:
            if isinstance(step, dict):
                if isinstance(step.get("uses"), str):
                    result["uses"].append(step["uses"])
                if isinstance(step.get("run"), str):
                    result["run"].append(step["run"])
    return result


def detect_ecosystems(directory: Path) -> list[str]:
    """Every ecosystem whose marker file is present, in priority order."""
    found = []
    for ecosystem, markers in ECOSYSTEM_MARKERS:
        if any((directory / m).is_file() for m in markers):
            found.append(ecosystem)
    return found


def dependency_names(manifest: Optional[dict[str, Any]]) -> dict[str, str]:
    """dependencies + devDependencies (+ peer/optional) as name -> spec."""
    if not manifest:
        return {}
    deps: dict[str, str] = {}
    for key in ("dependencies", "devDependencies", "peerDependencies", "optionalDependencies"):
        section = manifest.get(key) or {}
        if hasattr(section, "items"):
            for name, spec in section.items():
                deps.setdefault(name, str(spec))
    return deps


_SEMVER_RE = re.compile(r"(\d+)\.(\d+)(?:\.(\d+))?")


def parse_version(spec: str) -> Optional[tuple[int, int, int]]:
    """Extract (major, minor, patch) from a version spec like '^1.2.3'."""
    m = _SEMVER_RE.search(spec or "")
    if not m:
        return None
    return int(m.group(1)), int(m.group(2)), int(m.group(3) or 0)
