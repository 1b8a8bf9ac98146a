from typing import Optional

from .. import display
from ..config import is_protected_branch
from ..git.state import probe
from .base import Context, Recorder, run_advised_plan


async def wip(ctx: Context, message: Optional[str] = None):
    """Save work in progress, letting the advisor pick between a commit and a stash."""
    args = ["-m", message] if message else []
    with Recorder(ctx.ledger, "wip", args) as recorder:
        display.console.print("💾 Saving work in progress...\n")

        state = await probe(ctx.cwd)
        if state.is_clean:
            display.display_success("Nothing to save, the working tree is clean")
            return

        message_note = f' with message: "{message}"' if message else ""
        intent = f"Save work in progress{message_note}. Decide whether to commit or stash."
        if is_protected_branch(state.current_branch, ctx.config):
            intent += f" The current branch {state.current_branch} is protected: prefer a stash over a commit."
        intent += " Return JSON with: approach, commands[], explanation."

        outcome = await run_advised_plan(ctx, intent, recorder, state=state)
        if outcome.result is None:
            return

        approach = outcome.plan.approach or "selected method"
        display.display_success(f"Work saved using {approach}")
