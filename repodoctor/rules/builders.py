"""Constructors for the recurring rule shapes: file present, JSON config valid, command succeeds, per-package."""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar, Union

from ..context import get_all_packages, is_monorepo_root, root_package
from ..models import HookName, ProjectContext, RuleOutcome, Severity, WorkspacePackage
from ..scanner.exec import run_command
from ..scanner.fs import file_exists
from ..scanner.parsers import read_json, write_json
from .base import Rule, define_rule

T = TypeVar("T")

Content = Union[str, Callable[[ProjectContext], str]]


def skipped(message: str) -> RuleOutcome:
    return RuleOutcome(passed=True, message=message, skipped=True)


def file_rule(
    name: str,
    file_name: str,
    fixable: bool = False,
    fix_content: Optional[Content] = None,
    hint: Optional[str] = None,
    condition: Optional[Callable[[ProjectContext], bool]] = None,
    exists_message: Optional[str] = None,
    missing_message: Optional[str] = None,
    severity: Optional[Severity] = None,
    hooks: Sequence[HookName | str] = (),
    alternatives: Sequence[str] = (),
    description: Optional[str] = None,
) -> Rule:
    """File `file_name` (or one of `alternatives`) must exist; optionally create it."""
    candidates = (file_name, *alternatives)

    def check(ctx: ProjectContext) -> RuleOutcome:
        if condition is not None and not condition(ctx):
            return skipped(f"{file_name} check skipped")
        for candidate in candidates:
            if file_exists(ctx.cwd / candidate):
                return RuleOutcome(passed=True, message=exists_message or f"{candidate} exists")

        content = fix_content(ctx) if callable(fix_content) else fix_content
        fix = None
        if fixable and content:
            path = ctx.cwd / file_name

            def fix() -> None:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content, encoding="utf-8")

        return RuleOutcome(
            passed=False,
            message=missing_message or f"Missing {file_name}",
            hint=hint or (f"Run with --fix to create {file_name}" if fix else f"Create {file_name}"),
            severity=severity,
            fix=fix,
        )

    return define_rule(
        name,
        description or f"Check that {file_name} exists",
        check,
        fixable=fixable,
        hooks=hooks,
    )


def json_config_rule(
    name: str,
    file_name: str,
    validate: Callable[[Any, ProjectContext], Optional[str]],
    fix: Optional[Callable[[Any, ProjectContext], Any]] = None,
    hint: Optional[str] = None,
    skip_if_missing: bool = False,
    hooks: Sequence[HookName | str] = (),
    description: Optional[str] = None,
) -> Rule:
    """JSON file must satisfy `validate` (which returns an error message or None).

    When `fix` is given it receives the current parsed document and returns
    the document to write back.
    """

    def check(ctx: ProjectContext) -> RuleOutcome:
        path = ctx.cwd / file_name
        if not file_exists(path):
            if skip_if_missing:
                return skipped(f"{file_name} not found (skipped)")
            return RuleOutcome(passed=False, message=f"{file_name} does not exist", hint=f"Create {file_name}")

        data = read_json(path)
        error = validate(data, ctx)
        if not error:
            return RuleOutcome(passed=True, message=f"{file_name} configuration valid")

        apply = None
        if fix is not None:

            def apply() -> None:
                write_json(path, fix(read_json(path), ctx))

        return RuleOutcome(passed=False, message=error, hint=hint, fix=apply)

    return define_rule(
        name,
        description or f"Check {file_name} configuration",
        check,
        fixable=fix is not None,
        hooks=hooks,
    )


def command_rule(
    name: str,
    command: str,
    args: Sequence[str] = (),
    expected_exit_code: int = 0,
    hint: Optional[str] = None,
    condition: Optional[Callable[[ProjectContext], bool]] = None,
    hooks: Sequence[HookName | str] = (),
    description: Optional[str] = None,
) -> Rule:
    """Running `command args...` in the project directory must exit with `expected_exit_code`."""

    async def check(ctx: ProjectContext) -> RuleOutcome:
        if condition is not None and not condition(ctx):
            return skipped(f"{command} check skipped")
        result = await run_command(command, args, cwd=ctx.cwd)
        if result.not_found:
            return RuleOutcome(passed=False, message=f"{command} not found", hint=hint or f"Install {command}")
        if result.exit_code == expected_exit_code:
            return RuleOutcome(passed=True, message=f"{command} check passed")
        return RuleOutcome(passed=False, message=f"{command} failed", hint=hint)

    return define_rule(name, description or f"Check that {command} succeeds", check, hooks=hooks)


PackageCheck = Callable[[WorkspacePackage, ProjectContext], Union[Optional[T], Awaitable[Optional[T]]]]
PackageFix = Callable[[WorkspacePackage, T, ProjectContext], Union[None, Awaitable[None]]]


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def per_package_rule(
    name: str,
    description: str,
    check_package: PackageCheck,
    format_issue: Callable[[T, WorkspacePackage], str],
    fix_package: Optional[PackageFix] = None,
    filter_packages: Optional[Callable[[list[WorkspacePackage], ProjectContext], list[WorkspacePackage]]] = None,
    success_message: Callable[[int], str] = lambda n: f"All {n} package(s) passed",
    hooks: Sequence[HookName | str] = (),
) -> Rule:
    """Run `check_package` over every package (root only for a single-package project).

    `check_package` returns an issue value, or None when the package passes.
    """

    async def check(ctx: ProjectContext) -> RuleOutcome:
        if is_monorepo_root(ctx):
            packages = get_all_packages(ctx)
        else:
            root = root_package(ctx)
            packages = [root] if root else []
        if filter_packages is not None:
            packages = filter_packages(packages, ctx)
        if not packages:
            return skipped("No packages to check")

        issues: list[tuple[WorkspacePackage, Any]] = []
        for pkg in packages:
            issue = await _maybe_await(check_package(pkg, ctx))
            if issue is not None:
                issues.append((pkg, issue))

        if not issues:
            return RuleOutcome(passed=True, message=success_message(len(packages)))

        fix = None
        if fix_package is not None:

            async def fix() -> None:
                for pkg, issue in issues:
                    await _maybe_await(fix_package(pkg, issue, ctx))

        if len(packages) == 1:
            message = format_issue(issues[0][1], issues[0][0])
        else:
            details = "; ".join(f"{pkg.relative_path}: {format_issue(issue, pkg)}" for pkg, issue in issues)
            message = f"{len(issues)}/{len(packages)} package(s) have issues: {details}"
        return RuleOutcome(passed=False, message=message, fix=fix)

    return define_rule(name, description, check, fixable=fix_package is not None, hooks=hooks)
