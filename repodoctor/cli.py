"""CLI entry point — audit a project, print the report, exit on blocking failures."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import click
import typer

from . import __version__
from .config import CONFIG_FILES, load_root_config
from .engine import check_upgrade_readiness, get_exit_code, resolve_preset, run_checks
from .format import format_pre_commit_report, format_report, format_upgrade_hint, report_to_dict
from .hooks import run_hook
from .models import HookName, PresetName, Severity
from .presets import PRESETS
from .rules.registry import MODULES, get_rule
from .scanner.parsers import write_json


def _err(msg: str) -> None:
    """Raise a styled error (red box) — used for all CLI errors."""
    raise click.BadParameter(msg)


def _preset(value: Optional[str]) -> Optional[PresetName]:
    if value is None:
        return None
    try:
        return PresetName(value)
    except ValueError:
        _err(f"Unknown preset: {value}\nAvailable: {', '.join(p.value for p in PresetName)}")


app = typer.Typer(help="Audit a repository against project standards, and fix what can be fixed.")

_PATH_ARG = typer.Argument(Path("."), exists=True, file_okay=False, dir_okay=True, resolve_path=True, help="Project path")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging and rule names in output"),
    version: bool = typer.Option(False, "--version", help="Show version and exit"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if version:
        typer.echo(f"repodoctor {__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _verbose() -> bool:
    return logging.getLogger().isEnabledFor(logging.DEBUG)


@app.command("check")
def check_cmd(
    path: Path = _PATH_ARG,
    fix: bool = typer.Option(False, "--fix", help="Apply fixes for failing fixable rules"),
    dry_run: bool = typer.Option(False, "--dry-run", help="List what --fix would fix, without changing anything"),
    preset: Optional[str] = typer.Option(None, "--preset", help="init | dev | stable (default: from config)"),
    pre_commit: bool = typer.Option(False, "--pre-commit", help="Pre-commit mode: only blocking issues"),
    pre_push: bool = typer.Option(False, "--pre-push", help="Only rules that run on pre-push"),
    json_out: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Run every applicable rule and report."""
    preset_name = _preset(preset)
    config = load_root_config(path)
    hook = HookName.PRECOMMIT if pre_commit else HookName.PREPUSH if pre_push else None
    report = asyncio.run(
        run_checks(path, fix=fix and not dry_run, preset=preset_name, config=config, hook=hook, pre_commit=pre_commit)
    )
    effective = resolve_preset(preset_name, config)

    if json_out:
        typer.echo(json.dumps(report_to_dict(report), indent=2))
    elif pre_commit:
        typer.echo(format_pre_commit_report(report))
    else:
        typer.echo(format_report(report, effective, verbose=_verbose()))

    if dry_run and not json_out:
        fixable = report.fixable
        if fixable:
            typer.echo("Would fix:")
            for r in fixable:
                typer.echo(f"  {r.name}: {r.message}")
        else:
            typer.echo("Nothing to fix.")

    if not json_out and not pre_commit and report.failed == 0 and report.warnings == 0:
        readiness = asyncio.run(check_upgrade_readiness(path, preset=effective, config=config))
        hint = format_upgrade_hint(readiness)
        if hint:
            typer.echo(hint)

    raise typer.Exit(get_exit_code(report))


@app.command("hook")
def hook_cmd(
    name: str = typer.Argument(..., help="precommit | prepush | prepublish"),
    path: Path = typer.Option(Path("."), "--path", "-p", exists=True, file_okay=False, resolve_path=True),
    fix: bool = typer.Option(False, "--fix", help="Apply fixes"),
) -> None:
    """Run guards and checks for a git or publish hook."""
    try:
        hook = HookName(name)
    except ValueError:
        _err(f"Unknown hook: {name}\nAvailable: {', '.join(h.value for h in HookName)}")
    result = asyncio.run(run_hook(hook, path, fix=fix))
    if result.failed_guard is not None:
        typer.echo(click.style(f"✗ {result.failed_guard.description}", fg="red"), err=True)
        typer.echo(result.guard_message, err=True)
        raise typer.Exit(1)
    typer.echo(format_pre_commit_report(result.report))
    for line in result.info:
        typer.echo(click.style(line, dim=True))
    raise typer.Exit(0 if result.success else 1)


@app.command("upgrade")
def upgrade_cmd(
    path: Path = _PATH_ARG,
    target: Optional[str] = typer.Option(None, "--target", help="Preset to evaluate against (default: next)"),
) -> None:
    """Show how close the project is to the next stricter preset."""
    config = load_root_config(path)
    target_preset = _preset(target)
    if target_preset is not None:
        report = asyncio.run(run_checks(path, preset=target_preset, config=config))
        typer.echo(format_report(report, target_preset, verbose=_verbose()))
        raise typer.Exit(get_exit_code(report))

    readiness = asyncio.run(check_upgrade_readiness(path, config=config))
    if readiness.next_preset is None:
        typer.echo("Already on the strictest preset.")
        return
    typer.echo(f"Next preset:  {readiness.next_preset.value}")
    typer.echo(f"Score:        {readiness.next_score}%")
    typer.echo(f"Blockers:     {readiness.blockers}")
    typer.echo("Ready to upgrade." if readiness.ready else "Not ready yet.")


@app.command("init")
def init_cmd(
    path: Path = _PATH_ARG,
    preset: str = typer.Option("dev", "--preset", help="init | dev | stable"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config"),
) -> None:
    """Write doctor.config.json for the project."""
    preset_name = _preset(preset)
    target = path / CONFIG_FILES[0]
    existing = [name for name in CONFIG_FILES if (path / name).exists()]
    if existing and not force:
        _err(f"Config already exists: {existing[0]}\nUse --force to overwrite {CONFIG_FILES[0]}")
    write_json(target, {"preset": preset_name.value})
    typer.echo(f"Wrote {target}")


@app.command("rules")
def rules_cmd(
    preset: str = typer.Option("dev", "--preset", help="Show severities for this preset"),
) -> None:
    """List every rule with its severity under a preset."""
    levels = PRESETS[_preset(preset)]
    for module in MODULES:
        gate = f" (only {module.ecosystem.value})" if module.ecosystem else ""
        typer.echo(f"{module.label}{gate}")
        for rule in module.rules:
            severity = levels.get(rule.name, Severity.OFF)
            marker = " [fixable]" if rule.fixable else ""
            typer.echo(f"  {severity.value:<6} {rule.name}{marker}")


@app.command("explain")
def explain_cmd(rule_name: str = typer.Argument(..., help="Rule name, e.g. files/readme")) -> None:
    """Describe a rule and its severity in each preset."""
    rule = get_rule(rule_name)
    if rule is None:
        _err(f"Unknown rule: {rule_name}\nList rules with: repodoctor rules")
    typer.echo(f"Rule: {rule.name}")
    typer.echo(f"Category: {rule.category}")
    typer.echo(f"Description: {rule.description}")
    typer.echo(f"Fixable: {'yes' if rule.fixable else 'no'}")
    if rule.hooks:
        typer.echo(f"Hooks: {', '.join(h.value for h in rule.hooks)}")
    for name, levels in PRESETS.items():
        typer.echo(f"  {name.value:<7} {levels.get(rule.name, Severity.OFF).value}")


def _main() -> None:
    app()


if __name__ == "__main__":
    _main()
