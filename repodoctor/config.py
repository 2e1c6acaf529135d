"""Config loading — doctor.config.{json,yaml}, pyproject [tool.repodoctor], package.json "doctor"."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any, Optional

from .models import DoctorConfig, PresetName, Severity
from .scanner.parsers import read_json, read_manifest, read_text, read_toml, read_yaml
from .scanner.workspace import find_workspace_root

logger = logging.getLogger(__name__)

CONFIG_FILES = (
    "doctor.config.json",
    "doctor.config.yaml",
    "doctor.config.yml",
    ".doctorrc.json",
    ".doctorrc.yaml",
)

DEFAULT_CONFIG = DoctorConfig(preset=PresetName.DEV)


class ConfigError(ValueError):
    """Config file exists but cannot be used."""


def parse_config(data: Any, source: Optional[str] = None) -> DoctorConfig:
    """Validate a raw mapping into a DoctorConfig."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{source or 'config'}: expected a mapping, got {type(data).__name__}")

    preset = data.get("preset")
    if preset is not None:
        try:
            preset = PresetName(preset)
        except ValueError:
            raise ConfigError(f"{source or 'config'}: unknown preset {preset!r}") from None

    raw_rules = data.get("rules") or {}
    if not isinstance(raw_rules, dict):
        raise ConfigError(f"{source or 'config'}: rules must map rule names to severities")
    rules: dict[str, Severity] = {}
    for name, sev in raw_rules.items():
        try:
            rules[str(name)] = Severity(sev)
        except ValueError:
            raise ConfigError(f"{source or 'config'}: rule {name!r} has invalid severity {sev!r}") from None

    options = data.get("options") or {}
    if not isinstance(options, dict) or not all(isinstance(v, dict) for v in options.values()):
        raise ConfigError(f"{source or 'config'}: options must map rule names to mappings")

    ignore = data.get("ignore") or []
    if not isinstance(ignore, list):
        raise ConfigError(f"{source or 'config'}: ignore must be a list")

    return DoctorConfig(
        preset=preset,
        rules=rules,
        options={str(k): dict(v) for k, v in options.items()},
        ignore=[str(p) for p in ignore],
        source=source,
    )


def _raw_config(cwd: Path) -> tuple[Optional[Any], Optional[str]]:
    """First config source found in cwd: (raw data, file name)."""
    for name in CONFIG_FILES:
        path = cwd / name
        if not path.is_file():
            continue
        if name.endswith(".json"):
            data = read_json(path)
        else:
            data = read_yaml(path)
        if data is None and (read_text(path) or "").strip():
            raise ConfigError(f"{name}: could not be parsed")
        return data or {}, name

    pyproject = read_toml(cwd / "pyproject.toml") or {}
    tools = pyproject.get("tool") or {}
    if not isinstance(tools, dict):
        raise ConfigError("pyproject.toml: [tool] must be a table")
    tool = tools.get("repodoctor")
    if tool is not None:
        return tool, "pyproject.toml"

    manifest = read_manifest(cwd) or {}
    if "doctor" in manifest:
        return manifest["doctor"], "package.json"
    return None, None


def merge_configs(root: DoctorConfig, child: DoctorConfig) -> DoctorConfig:
    """Child wins per field; rules/options shallow-merged; preset/ignore replaced when set."""
    return DoctorConfig(
        preset=child.preset if child.preset is not None else root.preset,
        rules={**root.rules, **child.rules},
        options={**root.options, **child.options},
        ignore=list(child.ignore) if child.ignore else list(root.ignore),
        source=child.source or root.source,
    )


def find_config(cwd: Path) -> Optional[DoctorConfig]:
    """Config declared in cwd itself, or None. Raises ConfigError for malformed files."""
    data, source = _raw_config(cwd)
    if source is None:
        return None
    return parse_config(data, source)


def load_config(cwd: Path | str, root_config: Optional[DoctorConfig] = None) -> DoctorConfig:
    """Config for cwd merged over root_config. Malformed files fall back to the default."""
    cwd = Path(cwd)
    try:
        local = find_config(cwd)
    except ConfigError as e:
        logger.warning("Ignoring config in %s: %s", cwd, e)
        local = None
    if local is None:
        return root_config if root_config is not None else DEFAULT_CONFIG
    if root_config is None:
        if local.preset is None:
            local = dataclasses.replace(local, preset=DEFAULT_CONFIG.preset)
        return local
    return merge_configs(root_config, local)


def load_root_config(cwd: Path | str) -> DoctorConfig:
    """Config for cwd, layered on the workspace root's config when run inside a member package."""
    cwd = Path(cwd).resolve()
    root = find_workspace_root(cwd)
    if root is None or root == cwd:
        return load_config(cwd)
    return load_config(cwd, root_config=load_config(root))
