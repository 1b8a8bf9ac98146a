from typing import Optional

from .. import display
from ..config import generate_branch_name, is_protected_branch
from ..git.state import probe
from ..plan import Plan
from .base import Context, Recorder, run_advised_plan


def _start_intent(task: str, suggested_branch: Optional[str]) -> str:
    intent = f"Start working on: {task}. "
    if suggested_branch:
        intent += f"Suggested branch name: {suggested_branch}. "
    return intent + (
        "Provide base branch, conventional branch name, and Git commands to create "
        "and switch to the branch. Return JSON with: baseBranch, branchName, commands[], explanation."
    )


def _describe(plan: Plan):
    if plan.base_branch and plan.branch_name:
        display.console.print(f"📍 Base branch: {plan.base_branch}", markup=False)
        display.console.print(f"🌿 New branch: {plan.branch_name}\n", markup=False)


async def start(ctx: Context, task: str):
    """Create and switch to a well-named branch for a new piece of work."""
    with Recorder(ctx.ledger, "start", [task]) as recorder:
        display.console.print("🚀 Starting new task...\n")

        state = await probe(ctx.cwd)

        suggested_branch = None
        if ctx.config is not None:
            suggested_branch = generate_branch_name(ctx.config.branches.feature_pattern, task)
            display.console.print(f"💡 Suggested branch: {suggested_branch}\n", markup=False)

        outcome = await run_advised_plan(
            ctx, _start_intent(task, suggested_branch), recorder, describe=_describe, state=state
        )
        if outcome.result is None:
            return

        branch_name = outcome.plan.branch_name or "new branch"
        display.display_success(f"Successfully created and switched to {branch_name}")

        if is_protected_branch(branch_name, ctx.config):
            display.display_warning(f"{branch_name} is a protected branch.")

        if ctx.config is not None and ctx.config.preferences.learning_mode:
            display.console.print(
                "\n💡 Learning tip: Branch created from clean state ensures no unexpected commits"
            )
