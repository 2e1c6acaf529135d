"""Presets — maturity levels mapping every rule to a default severity."""

from __future__ import annotations

from typing import Mapping, Optional

from .models import PRESET_ORDER, PresetName, Severity

OFF, INFO, WARN, ERROR = Severity.OFF, Severity.INFO, Severity.WARN, Severity.ERROR

# rule name: (init, dev, stable)
_LEVELS: dict[str, tuple[Severity, Severity, Severity]] = {
    # Files
    "files/readme": (ERROR, ERROR, ERROR),
    "files/license": (WARN, ERROR, ERROR),
    "files/gitignore": (ERROR, ERROR, ERROR),
    "files/changelog": (OFF, WARN, ERROR),
    # Config
    "config/biome-extends": (WARN, ERROR, ERROR),
    "config/tsconfig-extends": (WARN, ERROR, ERROR),
    # Package manifest
    "pkg/name": (ERROR, ERROR, ERROR),
    "pkg/description": (ERROR, ERROR, ERROR),
    "pkg/repository": (OFF, WARN, ERROR),
    "pkg/keywords": (OFF, WARN, ERROR),
    "pkg/type-module": (ERROR, ERROR, ERROR),
    "pkg/exports": (OFF, WARN, ERROR),
    "pkg/scripts-lint": (ERROR, ERROR, ERROR),
    "pkg/scripts-format": (ERROR, ERROR, ERROR),
    "pkg/scripts-build": (WARN, ERROR, ERROR),
    "pkg/scripts-test": (OFF, WARN, ERROR),
    "pkg/scripts-typecheck": (WARN, ERROR, ERROR),
    # Runtime
    "runtime/bun-lock": (ERROR, ERROR, ERROR),
    "runtime/no-npm-lock": (ERROR, ERROR, ERROR),
    "runtime/no-yarn-lock": (ERROR, ERROR, ERROR),
    "runtime/no-pnpm-lock": (ERROR, ERROR, ERROR),
    # CI/CD
    "ci/has-workflow": (WARN, ERROR, ERROR),
    "ci/publish-workflow": (OFF, WARN, ERROR),
    # Git hooks
    "hooks/pre-commit": (ERROR, ERROR, ERROR),
    "hooks/lefthook-config": (ERROR, ERROR, ERROR),
    # Formatting
    "format/biome-check": (ERROR, ERROR, ERROR),
    "format/biome-format": (ERROR, ERROR, ERROR),
    # Testing
    "test/has-tests": (OFF, WARN, ERROR),
    "test/passes": (OFF, ERROR, ERROR),
    "test/coverage-threshold": (OFF, OFF, ERROR),
    # Dependencies
    "deps/banned": (OFF, WARN, ERROR),
    "deps/duplicate": (OFF, WARN, ERROR),
    # Release
    "release/no-manual-version": (ERROR, ERROR, ERROR),
    "release/no-release-commit": (ERROR, ERROR, ERROR),
    # Monorepo
    "monorepo/root-private": (OFF, ERROR, ERROR),
    "monorepo/turbo-config": (WARN, ERROR, ERROR),
    "monorepo/packages-readme": (OFF, WARN, ERROR),
    "monorepo/packages-license": (OFF, WARN, ERROR),
    "monorepo/packages-description": (OFF, WARN, ERROR),
    "monorepo/workspace-protocol": (OFF, WARN, ERROR),
    "monorepo/consistent-versions": (OFF, WARN, ERROR),
    # Rust
    "rust/has-cargo": (ERROR, ERROR, ERROR),
    "rust/edition": (WARN, ERROR, ERROR),
    "rust/lockfile": (OFF, WARN, ERROR),
    "rust/clippy": (OFF, WARN, ERROR),
    # Python
    "python/project-name": (ERROR, ERROR, ERROR),
    "python/requires-python": (WARN, ERROR, ERROR),
    "python/build-system": (WARN, ERROR, ERROR),
}

PRESETS: dict[PresetName, dict[str, Severity]] = {
    preset: {name: levels[i] for name, levels in _LEVELS.items()}
    for i, preset in enumerate(PRESET_ORDER)
}


def get_preset(name: PresetName | str) -> dict[str, Severity]:
    return PRESETS[PresetName(name)]


def get_severity(
    rule_name: str,
    preset: PresetName | str,
    overrides: Optional[Mapping[str, Severity | str]] = None,
) -> Severity:
    """Override, then preset entry, then off. Total over arbitrary rule names."""
    if overrides and overrides.get(rule_name) is not None:
        return Severity(overrides[rule_name])
    return get_preset(preset).get(rule_name, Severity.OFF)


def next_preset(current: PresetName | str) -> Optional[PresetName]:
    """The next stricter preset, or None at the top."""
    index = PRESET_ORDER.index(PresetName(current))
    if index >= len(PRESET_ORDER) - 1:
        return None
    return PRESET_ORDER[index + 1]
