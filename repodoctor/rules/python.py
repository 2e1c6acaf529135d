"""Python projects (pyproject.toml)."""

from ..models import ProjectContext, RuleOutcome
from ..scanner.fs import file_exists
from ..scanner.parsers import parse_pyproject
from .base import define_module, define_rule
from .builders import skipped


def _pyproject(ctx: ProjectContext):
    path = ctx.cwd / "pyproject.toml"
    return parse_pyproject(path) if file_exists(path) else None


def _check_name(ctx: ProjectContext) -> RuleOutcome:
    project = _pyproject(ctx)
    if project is None:
        if file_exists(ctx.cwd / "setup.py"):
            return RuleOutcome(
                passed=False, message="setup.py without pyproject.toml", hint="Declare [project] in pyproject.toml"
            )
        return skipped("No pyproject.toml")
    if project["name"]:
        return RuleOutcome(passed=True, message=f"Project name: {project['name']}")
    return RuleOutcome(passed=False, message="pyproject.toml missing [project] name", hint='Add name = "..." to [project]')


def _check_requires_python(ctx: ProjectContext) -> RuleOutcome:
    project = _pyproject(ctx)
    if project is None:
        return skipped("No pyproject.toml")
    if project["python_version"]:
        return RuleOutcome(passed=True, message=f"requires-python = {project['python_version']!r}")
    return RuleOutcome(
        passed=False,
        message="pyproject.toml does not declare requires-python",
        hint='Add requires-python = ">=3.10" to [project]',
    )


def _check_build_system(ctx: ProjectContext) -> RuleOutcome:
    project = _pyproject(ctx)
    if project is None:
        return skipped("No pyproject.toml")
    if project["build_backend"]:
        return RuleOutcome(passed=True, message=f"Build backend: {project['build_backend']}")
    return RuleOutcome(
        passed=False,
        message="pyproject.toml has no [build-system] build-backend",
        hint='Add [build-system] requires = ["setuptools>=68"], build-backend = "setuptools.build_meta"',
    )


MODULE = define_module(
    "python",
    "Python",
    "Python packaging metadata",
    [
        define_rule("python/project-name", "Check that pyproject.toml names the project", _check_name),
        define_rule("python/requires-python", "Check that requires-python is declared", _check_requires_python),
        define_rule("python/build-system", "Check that a build backend is declared", _check_build_system),
    ],
    ecosystem="python",
)
