"""Package manager lockfiles: Bun only."""

from ..models import ProjectContext, RuleOutcome
from ..scanner.fs import file_exists
from .base import Rule, define_module, define_rule
from .builders import skipped

BUN_LOCKFILES = ("bun.lock", "bun.lockb")


def _check_bun_lock(ctx: ProjectContext) -> RuleOutcome:
    if ctx.manifest is None:
        return skipped("No package.json")
    for name in BUN_LOCKFILES:
        if file_exists(ctx.cwd / name):
            return RuleOutcome(passed=True, message=f"Using Bun ({name} exists)")
    return RuleOutcome(passed=False, message="Missing bun lockfile", hint='Run "bun install"')


def _foreign_lock_rule(name: str, lockfile: str) -> Rule:
    def check(ctx: ProjectContext) -> RuleOutcome:
        path = ctx.cwd / lockfile
        if not file_exists(path):
            return RuleOutcome(passed=True, message=f"No {lockfile}")

        def fix() -> None:
            path.unlink(missing_ok=True)

        return RuleOutcome(
            passed=False,
            message=f"Found {lockfile}, should use Bun instead",
            hint=f"Delete {lockfile} and run bun install",
            fix=fix,
        )

    return define_rule(name, f"Check that {lockfile} does not exist", check, fixable=True)


MODULE = define_module(
    "runtime",
    "Runtime",
    "Package manager and lockfiles",
    [
        define_rule("runtime/bun-lock", "Check that a Bun lockfile exists", _check_bun_lock),
        _foreign_lock_rule("runtime/no-npm-lock", "package-lock.json"),
        _foreign_lock_rule("runtime/no-yarn-lock", "yarn.lock"),
        _foreign_lock_rule("runtime/no-pnpm-lock", "pnpm-lock.yaml"),
    ],
    ecosystem="typescript",
)
