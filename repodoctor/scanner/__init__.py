"""Project scanning — manifests, workspaces, file probes and subprocesses."""

from .exec import CommandResult, run_command
from .fs import directory_exists, file_exists, find_files
from .parsers import read_json, read_manifest, read_text
from .workspace import discover_workspace_packages, find_workspace_root, get_workspace_patterns, is_monorepo

__all__ = [
    "CommandResult",
    "run_command",
    "directory_exists",
    "file_exists",
    "find_files",
    "read_json",
    "read_manifest",
    "read_text",
    "discover_workspace_packages",
    "find_workspace_root",
    "get_workspace_patterns",
    "is_monorepo",
]
