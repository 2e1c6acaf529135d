"""Formatting and lint via biome."""

from ..models import HookName, ProjectContext, RuleOutcome
from ..scanner.exec import run_command
from ..scanner.fs import any_exists
from .base import Rule, define_module, define_rule
from .builders import skipped

BIOME_CONFIGS = ("biome.json", "biome.jsonc")


def _biome_rule(name: str, subcommand: str, failure: str) -> Rule:
    async def check(ctx: ProjectContext) -> RuleOutcome:
        if ctx.manifest is None and any_exists(ctx.cwd, BIOME_CONFIGS) is None:
            return skipped("No biome configuration")
        result = await run_command("bunx", ["biome", subcommand, "."], cwd=ctx.cwd)
        if result.not_found:
            return RuleOutcome(passed=False, message="bunx not found", hint="Install Bun: https://bun.sh")
        if result.ok:
            return RuleOutcome(passed=True, message=f"biome {subcommand} passed")

        async def fix() -> None:
            await run_command("bunx", ["biome", subcommand, "--write", "."], cwd=ctx.cwd)

        return RuleOutcome(
            passed=False,
            message=failure,
            hint=f"Run: bunx biome {subcommand} --write . (or use --fix)",
            fix=fix,
        )

    return define_rule(
        name,
        f"Run biome {subcommand}",
        check,
        fixable=True,
        hooks=(HookName.PRECOMMIT, HookName.PREPUSH),
    )


MODULE = define_module(
    "format",
    "Format",
    "Code formatting and lint",
    [
        _biome_rule("format/biome-check", "check", "biome check failed"),
        _biome_rule("format/biome-format", "format", "biome format failed, files need formatting"),
    ],
    ecosystem="typescript",
)
