"""
Sequential execution of a plan's commands.

Steps run one at a time in the order given, since later commands usually
depend on what earlier ones did to the working tree. The first failing
step ends the run. Nothing is rolled back: steps that already ran stay
applied and the user recovers by hand.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from ..errors import CommandFailedError
from ..plan import Plan
from .runner import CommandResult, run_shell

LOG = logging.getLogger(__name__)

StepCallback = Callable[[str], None]
CommandRunner = Callable[..., Awaitable[CommandResult]]


@dataclass
class ExecutionResult:
    commands_run: int
    all_succeeded: bool
    failed_command: Optional[str] = None
    error: Optional[CommandFailedError] = None
    last_output: str = ""


async def execute_plan(
    plan: Plan,
    on_step: Optional[StepCallback] = None,
    cwd: Optional[str] = None,
    runner: CommandRunner = run_shell,
) -> ExecutionResult:
    """
    Run every command of the plan, stopping at the first failure.

    on_step is called with each command right before it starts, so the
    caller can show progress as it happens.
    """

    commands_run = 0
    last_output = ""
    for command in plan.commands:
        if on_step is not None:
            on_step(command)

        result = await runner(command, cwd=cwd)
        if not result.ok:
            error = CommandFailedError(command, result.returncode, result.stderr or result.stdout)
            LOG.info("Stopping plan after %d command(s): %s failed", commands_run, command)
            return ExecutionResult(
                commands_run=commands_run,
                all_succeeded=False,
                failed_command=command,
                error=error,
                last_output=last_output,
            )

        commands_run += 1
        last_output = result.output

    return ExecutionResult(commands_run=commands_run, all_succeeded=True, last_output=last_output)
