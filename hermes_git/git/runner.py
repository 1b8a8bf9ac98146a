"""
Subprocess helpers shared by the prober and the executor.

Every git query and every plan step goes through here so timeouts and
debug logging live in one place. Failures are reported through the
returned CommandResult; callers decide whether a non-zero exit is fatal.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

LOG = logging.getLogger(__name__)

GIT_TIMEOUT = 60


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout, or stderr when the command printed nothing else."""
        return self.stdout or self.stderr


async def _communicate(process, timeout: Optional[float]) -> CommandResult:
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return CommandResult(returncode=-1, stdout="", stderr=f"timed out after {timeout} seconds")

    return CommandResult(
        returncode=process.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )


async def run_exec(
    argv: List[str], cwd: Optional[str] = None, timeout: Optional[float] = GIT_TIMEOUT
) -> CommandResult:
    """
    Run a program from an argument vector.

    A missing executable is reported as exit code 127, the same status a
    shell would give, so callers only ever deal with CommandResult.
    """

    LOG.debug("Running: %s", " ".join(argv))
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, NotADirectoryError) as e:
        return CommandResult(returncode=127, stdout="", stderr=f"{argv[0]}: command not found ({e})")

    result = await _communicate(process, timeout)
    if not result.ok:
        LOG.debug("%s exited with %s: %s", argv[0], result.returncode, result.stderr.strip())
    return result


async def run_git(*args: str, cwd: Optional[str] = None) -> CommandResult:
    return await run_exec(["git", *args], cwd=cwd)


async def run_shell(
    command: str, cwd: Optional[str] = None, timeout: Optional[float] = None
) -> CommandResult:
    """Run a command line through the shell, as typed by the user or the advisor."""

    LOG.debug("Running shell command: %s", command)
    process = await asyncio.create_subprocess_shell(
        command,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    result = await _communicate(process, timeout)
    if not result.ok:
        LOG.debug("shell command exited with %s: %s", result.returncode, result.stderr.strip())
    return result
