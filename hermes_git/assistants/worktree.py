from .. import display
from ..plan import Plan
from .base import Context, Recorder, run_advised_plan


def _describe(plan: Plan):
    if plan.branch_name and plan.worktree_path:
        display.console.print(f"🌿 Branch: {plan.branch_name}", markup=False)
        display.console.print(f"📁 Path: {plan.worktree_path}\n", markup=False)


async def worktree_new(ctx: Context, task: str):
    """Create a separate worktree, on its own branch, for a task."""
    with Recorder(ctx.ledger, "worktree", ["new", task]) as recorder:
        display.console.print("🌳 Creating worktree...\n")

        intent = (
            f"Create a worktree for: {task}. Provide safe branch name, worktree path "
            "(e.g., ../repo-branchname), and git worktree commands. "
            "Return JSON with: branchName, worktreePath, commands[], explanation."
        )
        outcome = await run_advised_plan(ctx, intent, recorder, describe=_describe)
        if outcome.result is None:
            return

        path = outcome.plan.worktree_path or "new worktree"
        display.display_success(f"Worktree created at {path}")
