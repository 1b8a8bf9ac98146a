import asyncio
import os
import shlex
import subprocess

from .. import display
from ..ai.advisor import build_analysis_prompt
from ..errors import CommandFailedError
from ..git.runner import run_git
from ..git.state import list_conflicted_files, probe
from .base import Context, Recorder

PREVIEW_LINES = 20

RESOLUTION_PROMPT = """
Here is a file with Git merge conflict markers:

{content}

Analyze the conflict and provide a resolved version of the file without conflict markers.
Ensure the resolution makes logical sense and preserves the intent of both sides where possible.
Return ONLY the resolved file content, no explanations.
"""


async def conflict_explain(ctx: Context):
    """Explain what each side of the current conflicts is trying to do."""
    with Recorder(ctx.ledger, "conflict", ["explain"]):
        display.console.print("🔍 Analyzing conflicts...\n")

        state, files = await asyncio.gather(probe(ctx.cwd), list_conflicted_files(ctx.cwd))
        if not files:
            display.console.print("✅ No conflicts detected")
            return

        repo_state = dict(state.to_dict(), conflictedFiles=files)
        intent = (
            f"Explain these merge conflicts: {', '.join(files)}. For each file, explain what each "
            "side is trying to do and recommend a resolution strategy."
        )
        explanation = await ctx.advisor.ask(build_analysis_prompt(repo_state, intent))
        display.display_conflict_explanation(explanation, files)


def _preview(resolution: str):
    lines = resolution.split("\n")
    display.console.print("\n💡 Proposed resolution preview:")
    display.console.print("─" * 50)
    display.console.print("\n".join(lines[:PREVIEW_LINES]), markup=False, highlight=False)
    if len(lines) > PREVIEW_LINES:
        display.console.print(f"... ({len(lines) - PREVIEW_LINES} more lines)")
    display.console.print("─" * 50)


def _ask_action(path: str) -> str:
    choices = {"a": "accept", "e": "edit", "s": "skip"}
    try:
        answer = input(f"How would you like to handle {path}? [a]ccept / [e]dit / [s]kip: ")
    except (KeyboardInterrupt, EOFError):
        return "skip"
    return choices.get(answer.strip().lower()[:1], "skip")


def _editor(ctx: Context) -> str:
    if ctx.config is not None:
        return ctx.config.preferences.default_editor
    return os.environ.get("EDITOR", "vim")


async def conflict_apply(ctx: Context):
    """Walk through conflicted files and resolve them with the advisor's help."""
    with Recorder(ctx.ledger, "conflict", ["apply"]) as recorder:
        display.console.print("🔧 Resolving conflicts...\n")

        files = await list_conflicted_files(ctx.cwd)
        if not files:
            display.console.print("✅ No conflicts to resolve")
            return

        for path in files:
            display.console.print(f"\n📄 {path}", markup=False)
            full_path = os.path.join(ctx.cwd or ".", path)
            try:
                with open(full_path, "r", encoding="utf-8") as f:
                    content = f.read()
            except (OSError, UnicodeDecodeError):
                display.display_warning(f"Could not read {path}, skipping...")
                continue

            resolution = await ctx.advisor.ask(RESOLUTION_PROMPT.format(content=content))
            _preview(resolution)

            action = _ask_action(path)
            if action == "accept":
                display.display_step(f"Applying resolution to {path}")
                with open(full_path, "w", encoding="utf-8") as f:
                    f.write(resolution)
                result = await run_git("add", "--", path, cwd=ctx.cwd)
                if not result.ok:
                    raise CommandFailedError(f"git add -- {path}", result.returncode, result.stderr)
                recorder.git_commands_run += 1
                display.console.print("✅ Resolved and staged")
            elif action == "edit":
                display.console.print("💡 Opening editor...")
                argv = shlex.split(_editor(ctx)) + [full_path]
                await asyncio.to_thread(subprocess.run, argv, check=False)
                display.console.print("📝 File opened for manual editing")
            else:
                display.console.print("⏭️  Skipped")

        display.console.print("\n💡 Remember to commit after resolving all conflicts")
