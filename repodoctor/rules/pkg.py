"""package.json metadata and scripts."""

from typing import Any, Callable, Mapping, Optional

from ..context import is_monorepo_root, needs_build_scripts
from ..models import ProjectContext, RuleOutcome
from ..scanner.parsers import MANIFEST, read_manifest, write_json
from .base import Rule, define_module, define_rule
from .builders import skipped


def _manifest(ctx: ProjectContext) -> Optional[Mapping[str, Any]]:
    # Re-read so a fix verification sees the rewritten file
    current = read_manifest(ctx.cwd)
    return current if current is not None else ctx.manifest


def _update_manifest(ctx: ProjectContext, update: Callable[[dict], None]) -> Callable[[], None]:
    def fix() -> None:
        data = read_manifest(ctx.cwd) or {}
        update(data)
        write_json(ctx.cwd / MANIFEST, data)

    return fix


def _field_rule(name: str, field: str, hint: str, skip_monorepo_root: bool = False) -> Rule:
    def check(ctx: ProjectContext) -> RuleOutcome:
        if ctx.manifest is None:
            return skipped("No package.json")
        if skip_monorepo_root and is_monorepo_root(ctx):
            return skipped("Skipped for monorepo root (checked per package)")
        value = (_manifest(ctx) or {}).get(field)
        if value:
            return RuleOutcome(passed=True, message=f'package.json has "{field}"')
        return RuleOutcome(passed=False, message=f'package.json missing "{field}"', hint=hint)

    return define_rule(name, f'Check that package.json has "{field}"', check)


def _check_keywords(ctx: ProjectContext) -> RuleOutcome:
    if ctx.manifest is None:
        return skipped("No package.json")
    if is_monorepo_root(ctx):
        return skipped("Skipped for monorepo root (checked per package)")
    minimum = ctx.options.get_int("min", 1)
    keywords = (_manifest(ctx) or {}).get("keywords") or ()
    if isinstance(keywords, (list, tuple)) and len(keywords) >= minimum:
        return RuleOutcome(passed=True, message=f"package.json has {len(keywords)} keywords")
    return RuleOutcome(
        passed=False,
        message=f'package.json needs at least {minimum} "keywords"',
        hint='Add "keywords": ["keyword1", "keyword2"] for registry discoverability',
    )


def _check_type_module(ctx: ProjectContext) -> RuleOutcome:
    if ctx.manifest is None:
        return skipped("No package.json")
    if (_manifest(ctx) or {}).get("type") == "module":
        return RuleOutcome(passed=True, message='package.json has "type": "module"')
    return RuleOutcome(
        passed=False,
        message='package.json missing "type": "module"',
        hint='Add "type": "module" to package.json for ESM support',
        fix=_update_manifest(ctx, lambda data: data.__setitem__("type", "module")),
    )


def _set_script(script: str, command: str) -> Callable[[dict], None]:
    def update(data: dict) -> None:
        scripts = data.get("scripts")
        if not isinstance(scripts, dict):
            scripts = data["scripts"] = {}
        scripts[script] = command

    return update


def _script_rule(name: str, script: str, default: str, build_only: bool = False) -> Rule:
    def check(ctx: ProjectContext) -> RuleOutcome:
        if ctx.manifest is None:
            return skipped("No package.json")
        if build_only and not needs_build_scripts(ctx):
            return skipped(f'"{script}" script not needed for this project type')
        scripts = (_manifest(ctx) or {}).get("scripts") or {}
        if scripts.get(script):
            return RuleOutcome(passed=True, message=f'Has "{script}" script')
        return RuleOutcome(
            passed=False,
            message=f'Missing "{script}" script in package.json',
            hint=f'Add to package.json scripts: "{script}": "{default}"',
            fix=_update_manifest(ctx, _set_script(script, default)),
        )

    return define_rule(name, f'Check that the "{script}" script exists', check, fixable=True)


MODULE = define_module(
    "pkg",
    "Package",
    "package.json metadata and scripts",
    [
        _field_rule("pkg/name", "name", 'Add "name" field to package.json'),
        _field_rule("pkg/description", "description", 'Add "description" field to package.json'),
        _field_rule(
            "pkg/repository",
            "repository",
            'Add "repository": {"type": "git", "url": "https://github.com/..."}',
        ),
        define_rule("pkg/keywords", "Check that package.json has keywords", _check_keywords),
        define_rule(
            "pkg/type-module", 'Check that package.json has "type": "module"', _check_type_module, fixable=True
        ),
        _field_rule("pkg/exports", "exports", 'Add "exports" field to package.json', skip_monorepo_root=True),
        _script_rule("pkg/scripts-lint", "lint", "biome check ."),
        _script_rule("pkg/scripts-format", "format", "biome format --write ."),
        _script_rule("pkg/scripts-build", "build", "bunup", build_only=True),
        _script_rule("pkg/scripts-test", "test", "bun run test", build_only=True),
        _script_rule("pkg/scripts-typecheck", "typecheck", "tsc --noEmit", build_only=True),
    ],
)
