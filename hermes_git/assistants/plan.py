from .. import display
from ..ai.advisor import build_analysis_prompt
from ..git.state import probe
from .base import Context, Recorder


async def plan(ctx: Context, intent: str):
    """Analyze the repository and show a recommended plan. Nothing is executed."""
    with Recorder(ctx.ledger, "plan", [intent]):
        display.console.print("🔍 Analyzing repository state...\n")

        state = await probe(ctx.cwd)
        analysis = await ctx.advisor.ask(build_analysis_prompt(state.to_dict(), intent))

        display.display_plan(analysis, state)
        display.console.print("\n💡 No changes have been made. Review the plan above.")
