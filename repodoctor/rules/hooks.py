"""Git hook configuration (lefthook, husky, simple-git-hooks)."""

from ..models import ProjectContext, RuleOutcome
from ..scanner.fs import any_exists, file_exists
from ..scanner.parsers import read_yaml
from .base import define_module, define_rule

LEFTHOOK_FILES = ("lefthook.yml", "lefthook.yaml")

LEFTHOOK_CONFIG = """\
# Managed by repodoctor
# https://github.com/evilmartians/lefthook

pre-commit:
  parallel: true
  commands:
    format:
      glob: "*.{js,ts,jsx,tsx,json,md}"
      run: bunx biome format --write {staged_files}
      stage_fixed: true
    lint:
      glob: "*.{js,ts,jsx,tsx}"
      run: bunx biome check {staged_files}
    doctor:
      run: repodoctor hook precommit
"""


def _write_lefthook(ctx: ProjectContext):
    path = ctx.cwd / LEFTHOOK_FILES[0]

    def fix() -> None:
        path.write_text(LEFTHOOK_CONFIG, encoding="utf-8")

    return fix


def _hook_tool(ctx: ProjectContext) -> str | None:
    if any_exists(ctx.cwd, LEFTHOOK_FILES):
        return "lefthook"
    if file_exists(ctx.cwd / ".husky" / "pre-commit"):
        return "husky"
    if ctx.manifest and ctx.manifest.get("simple-git-hooks"):
        return "simple-git-hooks"
    if file_exists(ctx.cwd / ".pre-commit-config.yaml"):
        return "pre-commit"
    return None


def _check_pre_commit(ctx: ProjectContext) -> RuleOutcome:
    tool = _hook_tool(ctx)
    if tool:
        return RuleOutcome(passed=True, message=f"Pre-commit hook configured ({tool})")
    return RuleOutcome(
        passed=False,
        message="No pre-commit hook configured",
        hint="Run with --fix to add a lefthook.yml",
        fix=_write_lefthook(ctx),
    )


def _check_lefthook(ctx: ProjectContext) -> RuleOutcome:
    existing = any_exists(ctx.cwd, LEFTHOOK_FILES)
    if existing is None:
        if _hook_tool(ctx):
            return RuleOutcome(passed=True, message="Hooks managed by another tool", skipped=True)
        return RuleOutcome(passed=False, message="Missing lefthook.yml", fix=_write_lefthook(ctx))

    config = read_yaml(existing)
    if not isinstance(config, dict) or "pre-commit" not in config:
        return RuleOutcome(
            passed=False,
            message=f"{existing.name} missing pre-commit hook",
            fix=_write_lefthook(ctx) if existing.name == LEFTHOOK_FILES[0] else None,
        )
    if "repodoctor" in str(config.get("pre-commit")):
        return RuleOutcome(passed=True, message=f"{existing.name} runs repodoctor")
    return RuleOutcome(
        passed=True,
        message=f"{existing.name} configured",
        hint="Consider adding `repodoctor hook precommit` to the pre-commit commands",
    )


MODULE = define_module(
    "hooks",
    "Hooks",
    "Git hooks configuration",
    [
        define_rule("hooks/pre-commit", "Check that a pre-commit hook is configured", _check_pre_commit, fixable=True),
        define_rule(
            "hooks/lefthook-config", "Check that lefthook.yml has a pre-commit hook", _check_lefthook, fixable=True
        ),
    ],
)
