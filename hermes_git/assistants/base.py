"""
Plumbing shared by the subcommands that ask the advisor for a plan and run it.
"""

import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from .. import display
from ..ai.advisor import Advisor, build_advisor, build_plan_prompt
from ..config import HermesConfig, load_config
from ..git.executor import ExecutionResult, execute_plan
from ..git.state import RepoState, probe
from ..plan import ParseFailure, Plan, parse_plan
from ..stats import Ledger


class Context:
    """
    Everything a subcommand needs, built once per invocation by the CLI.

    The advisor is built on first use, so commands that never ask it (init,
    stats) still run when its configuration is broken.
    """

    def __init__(
        self,
        config: Optional[HermesConfig] = None,
        advisor: Optional[Advisor] = None,
        ledger: Optional[Ledger] = None,
        assume_yes: bool = False,
        cwd: Optional[str] = None,
    ):
        self.config = config
        self._advisor = advisor
        self.ledger = ledger if ledger is not None else Ledger()
        self.assume_yes = assume_yes
        self.cwd = cwd

    @property
    def advisor(self) -> Advisor:
        if self._advisor is None:
            self._advisor = build_advisor(self.config.advisor if self.config else None)
        return self._advisor

    @classmethod
    def create(cls, assume_yes: bool = False, root: str = ".") -> "Context":
        return cls(config=load_config(root), ledger=Ledger(), assume_yes=assume_yes)


def get_user_confirmation(message: str) -> bool:
    try:
        confirm = input(f"{message} [y/N] ")
        return confirm.lower() == "y"
    except (KeyboardInterrupt, EOFError):
        return False


@dataclass
class PlanOutcome:
    plan: Optional[Plan] = None
    result: Optional[ExecutionResult] = None
    raw_text: Optional[str] = None

    @property
    def commands_run(self) -> int:
        return self.result.commands_run if self.result else 0


class Recorder:
    """Times one invocation and writes its ledger entry exactly once."""

    def __init__(self, ledger: Ledger, command: str, args: List[str]):
        self.ledger = ledger
        self.command = command
        self.args = args
        self.git_commands_run = 0
        self._start = time.monotonic()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        duration = time.monotonic() - self._start
        self.ledger.record(self.command, self.args, duration, exc_type is None, self.git_commands_run)
        return False


async def run_advised_plan(
    ctx: Context,
    intent: str,
    recorder: Recorder,
    describe: Optional[Callable[[Plan], None]] = None,
    state: Optional[RepoState] = None,
) -> PlanOutcome:
    """
    Probe the repository, ask the advisor for a JSON plan and run it.

    Responses that are not JSON are shown verbatim and nothing runs. A
    failing step raises its CommandFailedError after the earlier steps
    have been counted on the recorder.
    """

    if state is None:
        state = await probe(ctx.cwd)

    response = await ctx.advisor.ask(build_plan_prompt(state.to_dict(), intent))
    parsed = parse_plan(response)
    if isinstance(parsed, ParseFailure):
        display.display_raw_suggestion(parsed.raw_text)
        return PlanOutcome(raw_text=parsed.raw_text)

    plan = parsed
    for descriptor in plan.skipped:
        display.display_warning(f"Skipping invalid command: {descriptor!r}")

    if describe is not None:
        describe(plan)

    if plan.explanation:
        display.console.print(f"💭 {plan.explanation}\n", markup=False)

    if plan.is_empty:
        display.display_warning("No commands to execute.")
        return PlanOutcome(plan=plan)

    if not ctx.assume_yes:
        display.console.print("Planned commands:")
        for command in plan.commands:
            display.display_step(command)
        if not get_user_confirmation("Run these commands?"):
            display.console.print("Aborted. No changes have been made.")
            return PlanOutcome(plan=plan)

    result = await execute_plan(plan, on_step=display.display_step, cwd=ctx.cwd)
    recorder.git_commands_run = result.commands_run
    if not result.all_succeeded:
        if result.commands_run:
            display.display_warning(
                f"{result.commands_run} command(s) already ran and were not undone. "
                "Inspect the repository before retrying."
            )
        raise result.error

    return PlanOutcome(plan=plan, result=result)
