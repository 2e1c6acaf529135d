"""Tests for the built-in rule modules against small on-disk projects."""

import json
import tempfile
from pathlib import Path

import pytest

from repodoctor.context import build_context
from repodoctor.engine import run_checks
from repodoctor.models import DoctorConfig, Severity
from repodoctor.rules import MODULES, all_rules, define_module, get_rule
from repodoctor.rules.release import is_release_commit
from repodoctor.rules.testing import parse_coverage


def _write(path: Path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)


async def _run(name: str, root: Path, options: dict | None = None):
    ctx = await build_context(root, DoctorConfig())
    return await get_rule(name).run(ctx.for_rule(Severity.ERROR, options))


@pytest.mark.asyncio
async def test_license_fix_uses_author():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _write(root / "package.json", {"name": "x", "author": "Jane Doe"})
        result = await _run("files/license", root)
        assert not result.passed and result.fixable
        result.fix()
        text = (root / "LICENSE").read_text()
        assert text.startswith("MIT License")
        assert "Jane Doe" in text
        assert (await _run("files/license", root)).passed


@pytest.mark.asyncio
async def test_changelog_missing_is_informational():
    with tempfile.TemporaryDirectory() as d:
        result = await _run("files/changelog", Path(d))
    assert not result.passed
    assert result.severity == Severity.INFO


@pytest.mark.asyncio
async def test_script_fix_rewrites_manifest():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _write(root / "package.json", {"name": "x", "scripts": {"build": "tsc"}})
        result = await _run("pkg/scripts-lint", root)
        assert not result.passed
        result.fix()
        scripts = json.loads((root / "package.json").read_text())["scripts"]
        assert scripts == {"build": "tsc", "lint": "biome check ."}
        assert (await _run("pkg/scripts-lint", root)).passed


@pytest.mark.asyncio
async def test_build_scripts_skipped_for_config_package():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _write(root / "package.json", {"name": "x-config", "exports": "./biome.json"})
        result = await _run("pkg/scripts-build", root)
    assert result.skipped


@pytest.mark.asyncio
async def test_keywords_minimum_from_options():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _write(root / "package.json", {"name": "x", "keywords": ["a", "b"]})
        assert (await _run("pkg/keywords", root)).passed
        result = await _run("pkg/keywords", root, {"min": 3})
    assert not result.passed
    assert "at least 3" in result.message


@pytest.mark.asyncio
async def test_foreign_lockfile_removed_by_fix():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _write(root / "package.json", {"name": "x"})
        _write(root / "package-lock.json", "{}")
        result = await _run("runtime/no-npm-lock", root)
        assert not result.passed
        result.fix()
        assert not (root / "package-lock.json").exists()
        assert (await _run("runtime/no-npm-lock", root)).passed


@pytest.mark.asyncio
async def test_rust_edition_and_lockfile():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _write(root / "Cargo.toml", '[package]\nname = "x"\nedition = "2018"\n[[bin]]\nname = "x"\n')
        edition = await _run("rust/edition", root)
        lockfile = await _run("rust/lockfile", root)
    assert not edition.passed
    assert "2018" in edition.message
    assert not lockfile.passed


@pytest.mark.asyncio
async def test_rust_library_without_lockfile_passes():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _write(root / "Cargo.toml", '[package]\nname = "x"\nedition = "2021"\n[lints.clippy]\nall = "warn"\n')
        assert (await _run("rust/edition", root)).passed
        assert (await _run("rust/lockfile", root)).passed
        assert (await _run("rust/clippy", root)).passed


@pytest.mark.asyncio
async def test_python_rules():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _write(root / "pyproject.toml", '[project]\nname = "x"\n')
        assert (await _run("python/project-name", root)).passed
        assert not (await _run("python/requires-python", root)).passed
        assert not (await _run("python/build-system", root)).passed


def _monorepo(root: Path) -> None:
    _write(root / "package.json", {"name": "root", "workspaces": ["packages/*"]})
    _write(root / "packages" / "a" / "package.json", {"name": "a", "version": "1.0.0", "description": "a"})
    _write(
        root / "packages" / "b" / "package.json",
        {"name": "b", "version": "2.1.0", "dependencies": {"a": "^1.0.0", "zod": "^3.22.0"}},
    )
    _write(root / "packages" / "c" / "package.json", {"name": "c", "private": True, "dependencies": {"zod": "^3.23.0"}})


@pytest.mark.asyncio
async def test_monorepo_root_private_fix():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _monorepo(root)
        result = await _run("monorepo/root-private", root)
        assert not result.passed
        result.fix()
        assert json.loads((root / "package.json").read_text())["private"] is True
        assert (await _run("monorepo/root-private", root)).passed


@pytest.mark.asyncio
async def test_monorepo_workspace_protocol_fix():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _monorepo(root)
        result = await _run("monorepo/workspace-protocol", root)
        assert not result.passed
        assert "packages/b: use workspace:* for a" in result.message
        await result.fix()
        deps = json.loads((root / "packages" / "b" / "package.json").read_text())["dependencies"]
        assert deps["a"] == "workspace:*"
        assert (await _run("monorepo/workspace-protocol", root)).passed


@pytest.mark.asyncio
async def test_monorepo_descriptions_and_versions():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _monorepo(root)
        description = await _run("monorepo/packages-description", root)
        versions = await _run("monorepo/consistent-versions", root)
    assert not description.passed
    assert "packages/b" in description.message
    assert "packages/c" not in description.message
    assert not versions.passed
    assert "2 major versions" in versions.message


@pytest.mark.asyncio
async def test_duplicate_and_banned_deps():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _monorepo(root)
        duplicate = await _run("deps/duplicate", root)
        banned = await _run("deps/banned", root, {"packages": ["zod"]})
        default_banned = await _run("deps/banned", root)
    assert not duplicate.passed
    assert "zod (^3.22.0 / ^3.23.0)" in duplicate.message
    assert not banned.passed
    assert "packages/b: zod" in banned.message
    assert default_banned.passed


def test_release_commit_patterns():
    assert is_release_commit("chore(release): 1.2.0")
    assert is_release_commit("Release: v2")
    assert is_release_commit("1.2.3")
    assert not is_release_commit("fix: handle empty config")


def test_parse_coverage_takes_last_figure():
    assert parse_coverage("file a | 50%\nAll files | 87.5 %") == 87.5
    assert parse_coverage("no numbers here") == 0.0


# Rules whose fix shells out to an external tool
TOOL_BACKED_FIXES = {"format/biome-check", "format/biome-format"}

APP_MANIFEST = {"name": "app", "exports": "./dist/index.js"}


def _app(root: Path) -> None:
    _write(root / "package.json", APP_MANIFEST)


def _app_with(name: str, data):
    def setup(root: Path) -> None:
        _app(root)
        _write(root / name, data)

    return setup


def _workspace(root: Path) -> None:
    _write(root / "package.json", {"name": "root", "workspaces": ["packages/*"]})
    _write(root / "packages" / "a" / "package.json", {"name": "a", "version": "1.0.0"})
    _write(root / "packages" / "b" / "package.json", {"name": "b", "dependencies": {"a": "^1.0.0"}})


FIX_SETUPS = {
    "files/license": _app,
    "files/gitignore": _app,
    "config/biome-extends": _app_with("biome.json", {}),
    "config/tsconfig-extends": _app_with("tsconfig.json", {"compilerOptions": {"strict": True}}),
    "pkg/type-module": _app,
    "pkg/scripts-lint": _app,
    "pkg/scripts-format": _app,
    "pkg/scripts-build": _app,
    "pkg/scripts-test": _app,
    "pkg/scripts-typecheck": _app,
    "runtime/no-npm-lock": _app_with("package-lock.json", "{}"),
    "runtime/no-yarn-lock": _app_with("yarn.lock", "# yarn\n"),
    "runtime/no-pnpm-lock": _app_with("pnpm-lock.yaml", "lockfileVersion: 9\n"),
    "ci/has-workflow": _app,
    "ci/publish-workflow": _app,
    "hooks/pre-commit": _app,
    "hooks/lefthook-config": _app,
    "monorepo/root-private": _workspace,
    "monorepo/turbo-config": _workspace,
    "monorepo/workspace-protocol": _workspace,
}


def _single_rule_module(name: str):
    for module in MODULES:
        for rule in module.rules:
            if rule.name == name:
                return define_module(
                    module.category,
                    module.label,
                    module.description,
                    [rule],
                    enabled=module.enabled,
                    ecosystem=module.ecosystem,
                )
    raise KeyError(name)


def test_every_fixable_rule_has_a_fix_scenario():
    fixable = {rule.name for rule in all_rules() if rule.fixable}
    assert fixable - TOOL_BACKED_FIXES == set(FIX_SETUPS)


@pytest.mark.asyncio
@pytest.mark.parametrize("name", sorted(FIX_SETUPS))
async def test_builtin_fix_is_verified_in_the_same_run(name):
    """The engine's re-check after the fix sees the change and counts the rule as passed."""
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        FIX_SETUPS[name](root)
        config = DoctorConfig(rules={name: Severity.ERROR})
        report = await run_checks(root, fix=True, preset="stable", config=config, modules=[_single_rule_module(name)])
    assert report.total == 1
    result = report.results[0]
    assert result.passed, result.message
    assert result.message.endswith("(fixed)")
    assert (report.passed, report.failed, report.warnings) == (1, 0, 0)
