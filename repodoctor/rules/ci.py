"""GitHub Actions workflows."""

from ..models import ProjectContext, RuleOutcome
from ..scanner.fs import any_exists
from ..scanner.parsers import parse_workflow
from .base import define_module, define_rule
from .builders import file_rule

WORKFLOW_DIR = ".github/workflows"
SHARED_RELEASE_WORKFLOW = "repodoctor/.github/.github/workflows/release.yml"

CI_WORKFLOW = """\
name: CI

on:
  push:
    branches: [main]
  pull_request:
    branches: [main]

jobs:
  ci:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4
      - uses: oven-sh/setup-bun@v2
      - run: bun install
      - run: bun run lint
      - run: bun run typecheck
      - run: bun test
      - run: bun run build
"""

RELEASE_WORKFLOW = f"""\
name: Release

on:
  push:
    branches: [main]

jobs:
  release:
    uses: {SHARED_RELEASE_WORKFLOW}@main
    secrets: inherit
"""


def _check_publish_workflow(ctx: ProjectContext) -> RuleOutcome:
    workflows = ctx.cwd / WORKFLOW_DIR
    target = workflows / "release.yml"

    def fix() -> None:
        workflows.mkdir(parents=True, exist_ok=True)
        target.write_text(RELEASE_WORKFLOW, encoding="utf-8")

    existing = any_exists(workflows, ("release.yml", "release.yaml"))
    if existing is None:
        return RuleOutcome(
            passed=False,
            message=f"Missing release workflow ({WORKFLOW_DIR}/release.yml)",
            hint="Run with --fix to create a release workflow using the shared workflow",
            fix=fix,
        )

    workflow = parse_workflow(existing)
    if not any(u.startswith(SHARED_RELEASE_WORKFLOW) for u in workflow["uses"]):
        return RuleOutcome(
            passed=False,
            message="Release workflow not using the shared reusable workflow",
            hint=f"Use: uses: {SHARED_RELEASE_WORKFLOW}@main",
            fix=fix if existing == target else None,
        )
    if not workflow["secrets_inherit"]:
        return RuleOutcome(
            passed=False,
            message="Release workflow missing secrets: inherit",
            hint="Add: secrets: inherit",
            fix=fix if existing == target else None,
        )
    return RuleOutcome(passed=True, message="Using shared release workflow with secrets: inherit")


MODULE = define_module(
    "ci",
    "CI/CD",
    "Continuous integration and release workflows",
    [
        file_rule(
            "ci/has-workflow",
            f"{WORKFLOW_DIR}/ci.yml",
            alternatives=(f"{WORKFLOW_DIR}/ci.yaml",),
            fixable=True,
            fix_content=CI_WORKFLOW,
            missing_message=f"Missing CI workflow ({WORKFLOW_DIR}/ci.yml)",
            exists_message="CI workflow exists",
        ),
        define_rule(
            "ci/publish-workflow",
            "Check that releases go through the shared workflow",
            _check_publish_workflow,
            fixable=True,
        ),
    ],
)
