"""Rust crates (Cargo)."""

from ..models import ProjectContext, RuleOutcome
from ..scanner.fs import any_exists, file_exists
from ..scanner.parsers import parse_cargo_toml, read_toml
from .base import define_module, define_rule
from .builders import skipped

MODERN_EDITIONS = ("2021", "2024")


def _check_has_cargo(ctx: ProjectContext) -> RuleOutcome:
    if file_exists(ctx.cwd / "Cargo.toml"):
        return RuleOutcome(passed=True, message="Cargo.toml exists")
    return RuleOutcome(passed=False, message="No Cargo.toml found", hint="Initialize with: cargo init")


def _check_edition(ctx: ProjectContext) -> RuleOutcome:
    cargo = ctx.cwd / "Cargo.toml"
    if not file_exists(cargo):
        return skipped("No Cargo.toml (skipped)")
    parsed = parse_cargo_toml(cargo)
    if not parsed["name"]:
        return skipped("Virtual workspace manifest")
    edition = parsed["edition"]
    if not edition:
        return RuleOutcome(
            passed=False, message="Cargo.toml missing edition field", hint='Add edition = "2021" to [package]'
        )
    if edition in MODERN_EDITIONS:
        return RuleOutcome(passed=True, message=f"Using Rust edition {edition}")
    return RuleOutcome(
        passed=False, message=f"Using outdated Rust edition {edition}", hint='Update to edition = "2021" or "2024"'
    )


def _check_lockfile(ctx: ProjectContext) -> RuleOutcome:
    """Binaries commit Cargo.lock; libraries may omit it."""
    cargo = ctx.cwd / "Cargo.toml"
    if not file_exists(cargo):
        return skipped("No Cargo.toml (skipped)")
    if file_exists(ctx.cwd / "Cargo.lock"):
        return RuleOutcome(passed=True, message="Cargo.lock committed")
    if not parse_cargo_toml(cargo)["is_binary"]:
        return RuleOutcome(passed=True, message="Library crate, Cargo.lock optional")
    return RuleOutcome(passed=False, message="Binary crate without Cargo.lock", hint="Run cargo generate-lockfile")


def _check_clippy(ctx: ProjectContext) -> RuleOutcome:
    found = any_exists(ctx.cwd, ("clippy.toml", ".clippy.toml"))
    if found is not None:
        return RuleOutcome(passed=True, message=f"{found.name} exists")
    lints = (read_toml(ctx.cwd / "Cargo.toml") or {}).get("lints") or {}
    if "clippy" in lints:
        return RuleOutcome(passed=True, message="Clippy configured in Cargo.toml")
    return RuleOutcome(
        passed=False, message="No clippy config found", hint="Create clippy.toml or add [lints.clippy] to Cargo.toml"
    )


MODULE = define_module(
    "rust",
    "Rust",
    "Rust crate configuration",
    [
        define_rule("rust/has-cargo", "Check that Cargo.toml exists", _check_has_cargo),
        define_rule("rust/edition", "Check that Cargo.toml uses a modern edition", _check_edition),
        define_rule("rust/lockfile", "Check that binary crates commit Cargo.lock", _check_lockfile),
        define_rule("rust/clippy", "Check that clippy is configured", _check_clippy),
    ],
    ecosystem="rust",
)
