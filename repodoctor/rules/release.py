"""Releases are made by automation, never by hand."""

import re

from ..models import HookName, ProjectContext, RuleOutcome
from ..scanner.exec import is_ci, run_command
from ..scanner.fs import file_exists
from ..scanner.parsers import read_text
from .base import define_module, define_rule

RELEASE_COMMIT_PATTERNS = [
    re.compile(r"^chore\(release\)", re.I),
    re.compile(r"^chore:\s*release", re.I),
    re.compile(r"^release[:(]", re.I),
    re.compile(r"bump.*version", re.I),
    re.compile(r"^v?\d+\.\d+\.\d+$"),
]

VERSION_CHANGE_RE = re.compile(r'^\+\s*"version"\s*:\s*"', re.M)


def is_release_commit(message: str) -> bool:
    return any(p.search(message) for p in RELEASE_COMMIT_PATTERNS)


async def _check_manual_version(ctx: ProjectContext) -> RuleOutcome:
    result = await run_command("git", ["diff", "--cached", "package.json"], cwd=ctx.cwd)
    if not result.ok:
        return RuleOutcome(passed=True, message="No staged package.json changes")
    if not VERSION_CHANGE_RE.search(result.stdout):
        return RuleOutcome(passed=True, message="No manual version changes detected")
    if is_ci():
        return RuleOutcome(passed=True, message="Version change allowed (CI environment)")
    return RuleOutcome(
        passed=False,
        message="Manual version change detected in package.json",
        hint="Versions are bumped by the release workflow. Revert with: git checkout package.json",
    )


async def _commit_subject(ctx: ProjectContext) -> str | None:
    """Message being committed (COMMIT_EDITMSG), else the last commit's subject."""
    edit_msg = ctx.cwd / ".git" / "COMMIT_EDITMSG"
    if file_exists(edit_msg):
        return (read_text(edit_msg) or "").strip()
    result = await run_command("git", ["log", "-1", "--format=%s", "HEAD"], cwd=ctx.cwd)
    return result.stdout.strip() if result.ok else None


async def _check_release_commit(ctx: ProjectContext) -> RuleOutcome:
    subject = await _commit_subject(ctx)
    if subject is None:
        return RuleOutcome(passed=True, message="No commit to check")
    if not subject or not is_release_commit(subject):
        return RuleOutcome(passed=True, message="Commit message is not a release pattern")
    if is_ci():
        return RuleOutcome(passed=True, message="Release commit allowed (CI environment)")
    return RuleOutcome(
        passed=False,
        message=f'Manual release commit detected: "{subject}"',
        hint="Release commits are reserved for the release workflow",
    )


MODULE = define_module(
    "release",
    "Release",
    "Automated release workflow",
    [
        define_rule(
            "release/no-manual-version",
            "Block manual version changes in package.json",
            _check_manual_version,
            hooks=(HookName.PRECOMMIT,),
        ),
        define_rule(
            "release/no-release-commit",
            "Block hand-written release commits",
            _check_release_commit,
            hooks=(HookName.PRECOMMIT, HookName.PREPUSH),
        ),
    ],
)
