"""Tests for project context building and package helpers."""

import dataclasses
import json
import tempfile
from pathlib import Path

import pytest

from repodoctor.context import (
    build_context,
    check_banned_deps,
    detect_is_shared_config_source,
    detect_project_type,
    get_all_packages,
    get_package_names,
    get_packages_to_check,
    get_public_packages,
    has_ecosystem,
    is_config_only_monorepo,
    is_example_path,
    is_monorepo_root,
    is_shared_config_package,
    needs_build_scripts,
)
from repodoctor.models import DoctorConfig, Ecosystem, ProjectType, Severity, WorkspacePackage


def _write(path: Path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)


def _monorepo(root: Path) -> None:
    _write(root / "package.json", {"name": "root-pkg", "private": True, "workspaces": ["packages/*"]})
    _write(root / "packages" / "a" / "package.json", {"name": "@x/a", "exports": "./dist/index.js"})
    _write(root / "packages" / "b" / "package.json", {"name": "@x/b", "private": True})


@pytest.mark.asyncio
async def test_single_package_context():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _write(root / "package.json", {"name": "solo", "exports": {".": {"import": "./dist/index.js"}}})
        ctx = await build_context(root, DoctorConfig(), Severity.WARN)
    assert ctx.manifest["name"] == "solo"
    assert not ctx.is_monorepo
    assert ctx.workspace_packages == ()
    assert ctx.project_type == ProjectType.LIBRARY
    assert ctx.ecosystem == Ecosystem.TYPESCRIPT
    assert ctx.severity == Severity.WARN


@pytest.mark.asyncio
async def test_missing_manifest_is_not_an_error():
    with tempfile.TemporaryDirectory() as d:
        ctx = await build_context(d, DoctorConfig())
    assert ctx.manifest is None
    assert ctx.ecosystem == Ecosystem.UNKNOWN
    assert get_all_packages(ctx) == []
    assert get_packages_to_check(ctx) == []


@pytest.mark.asyncio
async def test_monorepo_discovery():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _monorepo(root)
        ctx = await build_context(root, DoctorConfig())
    assert ctx.is_monorepo
    assert [p.name for p in ctx.workspace_packages] == ["@x/a", "@x/b"]
    assert [p.relative_path for p in ctx.workspace_packages] == ["packages/a", "packages/b"]
    assert ctx.workspace_patterns == ("packages/*",)
    assert ctx.workspace_packages[0].project_type == ProjectType.LIBRARY
    assert ctx.workspace_packages[1].project_type == ProjectType.APPLICATION
    assert is_monorepo_root(ctx)
    assert get_package_names(ctx) == {"@x/a", "@x/b"}


@pytest.mark.asyncio
async def test_get_all_packages_root_first():
    """Root named root-pkg first with relative path '.', then the two members in discovery order."""
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _monorepo(root)
        ctx = await build_context(root, DoctorConfig())
    packages = get_all_packages(ctx)
    assert len(packages) == 3
    assert packages[0].name == "root-pkg"
    assert packages[0].relative_path == "."
    assert [p.name for p in packages[1:]] == ["@x/a", "@x/b"]


@pytest.mark.asyncio
async def test_packages_to_check_filters():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _monorepo(root)
        ctx = await build_context(root, DoctorConfig())
    assert [p.name for p in get_packages_to_check(ctx)] == ["@x/a", "@x/b"]
    assert [p.name for p in get_packages_to_check(ctx, include_root=True)][0] == "root-pkg"
    assert [p.name for p in get_public_packages(ctx)] == ["@x/a"]
    assert get_packages_to_check(ctx, filter=lambda p: p.name.endswith("b"))[0].name == "@x/b"
    assert get_packages_to_check(ctx, ecosystem=Ecosystem.RUST) == []


@pytest.mark.asyncio
async def test_package_config_merged_with_root():
    """A package-local config wins per field over the root config."""
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _monorepo(root)
        _write(root / "packages" / "a" / "doctor.config.json", {"rules": {"pkg/exports": "off"}})
        root_config = DoctorConfig(preset="stable", rules={"files/license": "warn"}, ignore=["packages/c"])
        ctx = await build_context(root, root_config)
    a, b = ctx.workspace_packages
    assert a.config.preset == "stable"
    assert a.config.rules == {"files/license": "warn", "pkg/exports": "off"}
    assert b.config is root_config


@pytest.mark.asyncio
async def test_ignore_patterns_exclude_packages():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _monorepo(root)
        ctx = await build_context(root, DoctorConfig(ignore=["packages/b"]))
    assert [p.name for p in ctx.workspace_packages] == ["@x/a"]


@pytest.mark.asyncio
async def test_context_is_read_only():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _write(root / "package.json", {"name": "solo", "scripts": {"lint": "biome check ."}})
        ctx = await build_context(root, DoctorConfig())
    with pytest.raises(dataclasses.FrozenInstanceError):
        ctx.severity = Severity.OFF
    with pytest.raises(TypeError):
        ctx.manifest["name"] = "other"
    with pytest.raises(TypeError):
        ctx.manifest["scripts"]["lint"] = "eslint"


@pytest.mark.asyncio
async def test_for_rule_clones():
    with tempfile.TemporaryDirectory() as d:
        ctx = await build_context(d, DoctorConfig())
    clone = ctx.for_rule(Severity.INFO, {"min": 5})
    assert clone.severity == Severity.INFO
    assert clone.options.get_int("min", 0) == 5
    assert ctx.severity == Severity.ERROR
    assert ctx.options.raw == {}


@pytest.mark.asyncio
async def test_ecosystems_include_members():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _write(root / "package.json", {"name": "root", "workspaces": ["crates/*"]})
        _write(root / "crates" / "core" / "Cargo.toml", '[package]\nname = "core"\n')
        ctx = await build_context(root, DoctorConfig())
    assert has_ecosystem(ctx, "rust")
    assert has_ecosystem(ctx, Ecosystem.TYPESCRIPT)
    assert not has_ecosystem(ctx, "python")
    assert ctx.workspace_packages[0].name == "core"


def test_detect_project_type():
    assert detect_project_type({"exports": "./dist/index.js"}, False) == ProjectType.LIBRARY
    assert detect_project_type({"exports": {"./biome": "./biome.json"}}, False) == ProjectType.CONFIG
    assert detect_project_type({"private": True}, True) == ProjectType.APPLICATION
    assert detect_project_type({}, True) == ProjectType.LIBRARY
    assert detect_project_type(None, False) == ProjectType.UNKNOWN
    assert detect_project_type({"exports": "./x.js"}, True, "examples/basic") == ProjectType.EXAMPLE


def test_example_paths():
    assert is_example_path("examples/basic")
    assert is_example_path("packages/demo/app")
    assert is_example_path("packages/react-example")
    assert not is_example_path("packages/core")


def test_shared_config_names():
    assert is_shared_config_package("@acme/biome-config")
    assert is_shared_config_package("eslint-config")
    assert is_shared_config_package("config-base")
    assert not is_shared_config_package("@acme/core")
    assert not is_shared_config_package(None)
    member = WorkspacePackage(name="@acme/tsconfig", path=Path("/x"), relative_path="packages/tsconfig")
    assert detect_is_shared_config_source({"name": "root"}, [member])
    assert detect_is_shared_config_source({"name": "shared-config"}, [])
    assert not detect_is_shared_config_source(None, [])


@pytest.mark.asyncio
async def test_build_script_needs():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _write(root / "package.json", {"name": "root", "private": True, "workspaces": ["packages/*"]})
        _write(root / "packages" / "biome-config" / "package.json", {"name": "biome-config", "exports": "./biome.json"})
        ctx = await build_context(root, DoctorConfig())
    assert is_config_only_monorepo(ctx)
    assert not needs_build_scripts(ctx)
    assert ctx.is_shared_config_source


@pytest.mark.asyncio
async def test_banned_deps_across_packages():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d)
        _monorepo(root)
        _write(root / "packages" / "a" / "package.json", {"name": "@x/a", "devDependencies": {"jest": "^29"}})
        _write(
            root / "packages" / "b" / "package.json",
            {"name": "@x/b", "dependencies": {"moment": "2"}, "devDependencies": {"jest": "^29"}},
        )
        ctx = await build_context(root, DoctorConfig())
    found, issues = check_banned_deps(ctx, ["jest", "moment", "eslint"])
    assert found == ["jest", "moment"]
    assert issues == [("packages/a", ["jest"]), ("packages/b", ["jest", "moment"])]
