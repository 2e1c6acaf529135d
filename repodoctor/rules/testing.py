"""Test suite presence, health and coverage."""

import re

from ..context import is_monorepo_root, needs_build_scripts
from ..models import HookName, ProjectContext, RuleOutcome
from ..scanner.exec import run_command
from ..scanner.fs import find_files
from .base import define_module, define_rule
from .builders import skipped

TEST_FILE_RE = re.compile(r"(\.(test|spec)\.(ts|tsx|js|jsx|mjs)$)|(^test_.*\.py$)|(_test\.(go|py)$)")
COVERAGE_RE = re.compile(r"(\d+(?:\.\d+)?)\s*%")


def _test_command(ctx: ProjectContext, *extra: str) -> tuple[str, list[str]]:
    # turbo fans out to every workspace package
    if is_monorepo_root(ctx):
        return "turbo", ["test", *(["--", *extra] if extra else [])]
    return "bun", ["test", *extra]


def _check_has_tests(ctx: ProjectContext) -> RuleOutcome:
    if not needs_build_scripts(ctx) and ctx.manifest is not None:
        return skipped("Tests not needed for this project type")
    found = find_files(ctx.cwd, TEST_FILE_RE)
    if found:
        return RuleOutcome(passed=True, message=f"Found {len(found)} test file(s)")
    return RuleOutcome(
        passed=False,
        message="No test files found",
        hint="Create test files with a .test.ts or .spec.ts extension",
    )


async def _check_passes(ctx: ProjectContext) -> RuleOutcome:
    if not find_files(ctx.cwd, TEST_FILE_RE, limit=1):
        return RuleOutcome(passed=True, message="No tests to run")
    command, args = _test_command(ctx)
    result = await run_command(command, args, cwd=ctx.cwd)
    if result.ok:
        return RuleOutcome(passed=True, message="All tests passed")
    if result.not_found:
        return RuleOutcome(passed=False, message=f"{command} not found", hint=f"Install {command}")
    return RuleOutcome(passed=False, message="Tests failed", hint=f'Run "{command} {" ".join(args)}" to see failures')


def parse_coverage(output: str) -> float:
    """Last percentage printed by the test runner, 0 when none."""
    matches = COVERAGE_RE.findall(output or "")
    return float(matches[-1]) if matches else 0.0


async def _check_coverage(ctx: ProjectContext) -> RuleOutcome:
    threshold = ctx.options.min(80)
    if not find_files(ctx.cwd, TEST_FILE_RE, limit=1):
        return RuleOutcome(
            passed=False,
            message=f"No tests, coverage is 0% (threshold: {threshold:g}%)",
            hint="Create test files with a .test.ts or .spec.ts extension",
        )
    command, args = _test_command(ctx, "--coverage")
    result = await run_command(command, args, cwd=ctx.cwd)
    coverage = parse_coverage(result.stdout + "\n" + result.stderr)
    if coverage >= threshold:
        return RuleOutcome(passed=True, message=f"Coverage {coverage:g}% meets threshold ({threshold:g}%)")
    return RuleOutcome(
        passed=False,
        message=f"Coverage {coverage:g}% below threshold ({threshold:g}%)",
        hint="Add more tests to increase coverage",
    )


MODULE = define_module(
    "test",
    "Tests",
    "Test presence, health and coverage",
    [
        define_rule("test/has-tests", "Check that test files exist", _check_has_tests),
        define_rule("test/passes", "Check that tests pass", _check_passes, hooks=(HookName.PREPUSH,)),
        define_rule("test/coverage-threshold", "Check that coverage meets the threshold", _check_coverage),
    ],
)
