from typing import Optional

from .. import display
from ..plan import Plan
from .base import Context, Recorder, run_advised_plan


def _describe(plan: Plan):
    if plan.is_risky and plan.risk_explanation:
        display.display_warning(plan.risk_explanation)
        display.console.print()


async def sync(ctx: Context, source: Optional[str] = None):
    """Bring the current branch up to date, choosing between rebase and merge."""
    args = [source] if source else []
    with Recorder(ctx.ledger, "sync", args) as recorder:
        display.console.print("🔄 Syncing branch...\n")

        from_note = f" from {source}" if source else " from main"
        intent = (
            f"Sync branch{from_note}. Evaluate if rebase or merge is safer. Check if branch is shared. "
            "Return JSON with: approach, isRisky, riskExplanation, commands[], explanation."
        )
        outcome = await run_advised_plan(ctx, intent, recorder, describe=_describe)
        if outcome.result is None:
            return

        approach = outcome.plan.approach or "selected method"
        display.display_success(f"Branch synced using {approach}")
