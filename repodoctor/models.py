"""Structured values shared by the engine, the rules and the reporters."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, Optional, Union


class Severity(str, Enum):
    OFF = "off"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


# Blocking order: off < info < warn < error
SEVERITY_RANK = {
    Severity.OFF: 0,
    Severity.INFO: 1,
    Severity.WARN: 2,
    Severity.ERROR: 3,
}


def severity_rank(severity: Severity | str) -> int:
    return SEVERITY_RANK[Severity(severity)]


class PresetName(str, Enum):
    INIT = "init"
    DEV = "dev"
    STABLE = "stable"


# Least to most strict
PRESET_ORDER = (PresetName.INIT, PresetName.DEV, PresetName.STABLE)


class HookName(str, Enum):
    PRECOMMIT = "precommit"
    PREPUSH = "prepush"
    PREPUBLISH = "prepublish"


class ProjectType(str, Enum):
    LIBRARY = "library"
    APPLICATION = "application"
    CONFIG = "config"  # exports only JSON/YAML/CSS files
    EXAMPLE = "example"  # lives under examples/ or demos/
    UNKNOWN = "unknown"


class Ecosystem(str, Enum):
    TYPESCRIPT = "typescript"
    RUST = "rust"
    GO = "go"
    PYTHON = "python"
    UNKNOWN = "unknown"


FixFn = Callable[[], Union[None, Awaitable[None]]]


def freeze(value: Any) -> Any:
    """Deep read-only copy: dicts become mapping proxies, lists become tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of freeze, for rules that need to write a manifest back."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


@dataclass(frozen=True)
class DoctorConfig:
    """Resolved configuration for one directory (root/child merge already applied)."""

    preset: Optional[PresetName] = None
    rules: dict[str, Severity] = field(default_factory=dict)
    options: dict[str, dict[str, Any]] = field(default_factory=dict)
    ignore: list[str] = field(default_factory=list)
    source: Optional[str] = None  # file the config was read from, if any


@dataclass(frozen=True)
class RuleOptions:
    """Typed view over one rule's options bag."""

    raw: Mapping[str, Any] = field(default_factory=dict)

    def get_int(self, key: str, default: int) -> int:
        value = self.raw.get(key, default)
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def get_float(self, key: str, default: float) -> float:
        value = self.raw.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    def get_str(self, key: str, default: str) -> str:
        value = self.raw.get(key)
        return value if isinstance(value, str) else default

    def get_bool(self, key: str, default: bool) -> bool:
        value = self.raw.get(key)
        return value if isinstance(value, bool) else default

    def get_list(self, key: str, default: list[str]) -> list[str]:
        value = self.raw.get(key)
        if isinstance(value, (list, tuple)):
            return [str(v) for v in value]
        return list(default)

    def min(self, default: float) -> float:
        """The `min` threshold used by coverage/count style rules."""
        return self.get_float("min", default)


@dataclass(frozen=True)
class WorkspacePackage:
    """One member of a multi-package project."""

    name: str
    path: Path  # absolute
    relative_path: str  # "." for the root
    manifest: Optional[Mapping[str, Any]] = None
    ecosystem: Ecosystem = Ecosystem.UNKNOWN
    project_type: ProjectType = ProjectType.UNKNOWN
    config: Optional[DoctorConfig] = None

    @property
    def is_private(self) -> bool:
        return bool(self.manifest and self.manifest.get("private"))


@dataclass(frozen=True)
class ProjectContext:
    """Read-only snapshot of project facts handed to every rule."""

    cwd: Path
    manifest: Optional[Mapping[str, Any]]
    severity: Severity
    config: DoctorConfig = field(default_factory=DoctorConfig)
    options: RuleOptions = field(default_factory=RuleOptions)
    is_monorepo: bool = False
    workspace_packages: tuple[WorkspacePackage, ...] = ()
    workspace_patterns: tuple[str, ...] = ()
    workspace_root: Optional[Path] = None
    project_type: ProjectType = ProjectType.UNKNOWN
    ecosystem: Ecosystem = Ecosystem.UNKNOWN
    ecosystems: frozenset[Ecosystem] = frozenset()
    is_shared_config_source: bool = False

    def for_rule(self, severity: Severity, options: Optional[Mapping[str, Any]] = None) -> "ProjectContext":
        """Clone with one rule's resolved severity and options."""
        return dataclasses.replace(self, severity=severity, options=RuleOptions(freeze(options or {})))


@dataclass
class RuleOutcome:
    """What a rule's check function returns."""

    passed: bool
    message: str
    severity: Optional[Severity] = None  # overrides the context severity
    hint: Optional[str] = None
    skipped: bool = False  # not applicable here; distinct from failing
    fix: Optional[FixFn] = None


@dataclass
class CheckResult:
    """Engine output for a single rule."""

    name: str
    category: str
    passed: bool
    message: str
    severity: Severity
    fixable: bool = False
    hint: Optional[str] = None
    skipped: bool = False
    fix: Optional[FixFn] = field(default=None, repr=False, compare=False)
    crashed: bool = False  # the check function raised instead of returning

    def __post_init__(self) -> None:
        if self.fixable and self.fix is None:
            raise ValueError(f"{self.name}: fixable result without a fix")


def score_percent(passed: int, total: int) -> int:
    """Rounded pass percentage; an empty run scores 100."""
    if total <= 0:
        return 100
    return int(passed * 100 / total + 0.5)


@dataclass
class CheckReport:
    total: int
    passed: int
    failed: int
    warnings: int
    results: list[CheckResult] = field(default_factory=list)

    @property
    def score(self) -> int:
        return score_percent(self.passed, self.total)

    @property
    def fixable(self) -> list[CheckResult]:
        return [r for r in self.results if r.fixable and not r.passed]


@dataclass(frozen=True)
class UpgradeReadiness:
    ready: bool
    next_preset: Optional[PresetName]
    current_score: int
    next_score: int
    blockers: int
