from .. import display
from ..errors import CommandFailedError
from ..git.executor import execute_plan
from ..git.runner import run_git
from ..git.state import probe
from ..plan import Plan
from .base import Context, Recorder, get_user_confirmation

BUILTIN_WORKFLOWS = {
    "pr-ready": "Sync, rebase, and push for PR",
    "daily-sync": "Fetch updates and show status",
    "quick-commit": "Stage and commit all changes",
}

DIFF_CHAR_LIMIT = 8000

COMMIT_MESSAGE_PROMPT = """
Write a single-line conventional commit message (type: summary, at most 72 characters)
for the following staged changes. Return ONLY the message.

{stat}

{diff}
"""


def _main_branch(ctx: Context) -> str:
    if ctx.config is not None:
        return ctx.config.project.main_branch
    return "main"


async def _run_steps(ctx: Context, recorder: Recorder, steps):
    for command, description in steps:
        display.console.print(f"\n{description}...")
        result = await execute_plan(Plan(commands=[command]), on_step=display.display_step, cwd=ctx.cwd)
        recorder.git_commands_run += result.commands_run
        if not result.all_succeeded:
            raise result.error


async def pr_ready(ctx: Context):
    """Fetch, rebase on the main branch and push, ready for a pull request."""
    with Recorder(ctx.ledger, "workflow", ["pr-ready"]) as recorder:
        display.console.print("📦 Preparing branch for PR...\n")
        main_branch = _main_branch(ctx)
        await _run_steps(
            ctx,
            recorder,
            [
                ("git fetch origin", "Fetching latest changes"),
                (f"git rebase origin/{main_branch}", f"Rebasing on {main_branch}"),
                ("git push --force-with-lease", "Pushing changes safely"),
            ],
        )
        display.display_success("Branch ready for PR!")
        display.console.print("\n💡 Next: Create PR with `gh pr create` or use your Git hosting UI")


async def daily_sync(ctx: Context):
    """Fetch every remote, then report where the current branch stands."""
    with Recorder(ctx.ledger, "workflow", ["daily-sync"]) as recorder:
        display.console.print("🌅 Running daily sync...\n")
        await _run_steps(ctx, recorder, [("git fetch --all --prune", "Fetching all remotes")])

        state = await probe(ctx.cwd)
        display.console.print("\n📊 Status:")
        display.console.print(f"  Current branch: {state.current_branch}", markup=False)
        display.console.print(f"  Status: {'✅ Clean' if state.is_clean else '⚠️  Uncommitted changes'}")

        if state.behind > 0:
            display.console.print(f"  Behind {state.remote_tracking}: {state.behind} commits", markup=False)
            display.console.print("\n💡 Suggestion: Run `hermes sync` to catch up")
        else:
            display.console.print("  ✅ Up to date with remote")

        display.display_success("Daily sync complete!")


async def quick_commit(ctx: Context):
    """Stage everything and commit it with an advisor-written message."""
    with Recorder(ctx.ledger, "workflow", ["quick-commit"]) as recorder:
        display.console.print("⚡ Quick commit...\n")

        state = await probe(ctx.cwd)
        if state.is_clean:
            display.console.print("✅ Nothing to commit")
            return

        await _run_steps(ctx, recorder, [("git add -A", "Staging all changes")])

        stat = await run_git("diff", "--cached", "--stat", cwd=ctx.cwd)
        diff = await run_git("diff", "--cached", cwd=ctx.cwd)
        display.console.print("\n📝 Staged changes:")
        display.console.print(stat.output, markup=False, highlight=False)

        prompt = COMMIT_MESSAGE_PROMPT.format(stat=stat.stdout, diff=diff.stdout[:DIFF_CHAR_LIMIT])
        lines = (await ctx.advisor.ask(prompt)).strip().strip("`").strip().splitlines()
        message = lines[0].strip() if lines else ""
        if not message:
            display.display_warning("The advisor did not suggest a commit message. Changes are staged.")
            return
        display.console.print(f"💬 {message}", markup=False)

        if not ctx.assume_yes and not get_user_confirmation("Commit with this message?"):
            display.console.print("\n💡 Changes are staged. Use `git commit` with a descriptive message")
            return

        display.display_step(f'git commit -m "{message}"')
        result = await run_git("commit", "-m", message, cwd=ctx.cwd)
        if not result.ok:
            raise CommandFailedError("git commit", result.returncode, result.stderr or result.stdout)
        recorder.git_commands_run += 1
        display.display_success("Changes committed")


def list_workflows(ctx: Context):
    """Print the built-in workflows and the project's own from .hermes/config.json."""
    display.console.print("🔄 Available Workflows:\n")

    display.console.print("Built-in:")
    for name, description in BUILTIN_WORKFLOWS.items():
        display.console.print(f"  • {name:<13} - {description}")

    if ctx.config is not None and ctx.config.workflows:
        display.console.print("\nProject-specific:")
        for name, steps in ctx.config.workflows.items():
            display.console.print(f"  • {name:<15} - {' → '.join(steps)}", markup=False)
    else:
        display.console.print("\n💡 Run `hermes init` to define custom workflows")
