"""Async subprocess helper used by command-shaped rules."""

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

NOT_FOUND = 127


@dataclass(frozen=True)
class CommandResult:
    stdout: str
    stderr: str
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def not_found(self) -> bool:
        return self.exit_code == NOT_FOUND


async def run_command(
    command: str,
    args: Sequence[str] = (),
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> CommandResult:
    """Run `command args...` without blocking the event loop. Never raises for a missing executable."""
    try:
        proc = await asyncio.create_subprocess_exec(
            command,
            *args,
            cwd=str(cwd) if cwd else None,
            env=dict(env) if env is not None else None,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, PermissionError, NotADirectoryError) as e:
        logger.debug("cannot run %s: %s", command, e)
        return CommandResult(stdout="", stderr=f"Failed to execute {command}", exit_code=NOT_FOUND)
    stdout, stderr = await proc.communicate()
    return CommandResult(
        stdout=stdout.decode(errors="replace").strip(),
        stderr=stderr.decode(errors="replace").strip(),
        exit_code=proc.returncode if proc.returncode is not None else 1,
    )


def is_ci(env: Optional[Mapping[str, str]] = None) -> bool:
    """CI=true or GITHUB_ACTIONS=true."""
    env = os.environ if env is None else env
    return env.get("CI") == "true" or env.get("GITHUB_ACTIONS") == "true"
