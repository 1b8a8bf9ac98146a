"""
Console output helpers. Everything the user reads goes through one rich
Console so tests can swap it out.
"""

from typing import List

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape

from .git.state import RepoState

console = Console()


def display_state(state: RepoState) -> None:
    console.print("[bold]📊 Current State:[/]")
    console.print(f"  Branch: [green]{escape(state.current_branch)}[/]")
    if state.is_clean:
        console.print("  Status: [green]Clean[/]")
    else:
        console.print("  Status: [yellow]Uncommitted changes[/]")

    if state.remote_tracking:
        console.print(f"  Remote: [blue]{escape(state.remote_tracking)}[/]")
        if state.ahead > 0:
            console.print(f"  [green]↑ {state.ahead} ahead[/]")
        if state.behind > 0:
            console.print(f"  [yellow]↓ {state.behind} behind[/]")

    if state.is_in_rebase:
        console.print("[red]  ⚠️  In rebase[/]")
    if state.is_in_merge:
        console.print("[red]  ⚠️  In merge[/]")
    if state.is_in_cherry_pick:
        console.print("[red]  ⚠️  In cherry-pick[/]")


def display_plan(analysis: str, state: RepoState) -> None:
    console.print("[bold cyan]📋 Recommended Plan:[/]\n")
    console.print(Markdown(analysis))
    console.print()
    display_state(state)


def display_step(command: str) -> None:
    console.print(f"[dim]  $ [/]{escape(command)}", style="grey50", highlight=False)


def display_success(message: str) -> None:
    console.print()
    console.print(f"[green]✅ {escape(message)}[/]")


def display_warning(message: str) -> None:
    console.print(f"[yellow]⚠️  {escape(message)}[/]")


def display_raw_suggestion(raw_text: str) -> None:
    console.print("💭 Advisor suggests:\n")
    console.print(raw_text, markup=False, highlight=False)
    console.print()
    display_warning("Could not auto-execute. Please review the plan above.")


def display_conflict_explanation(explanation: str, files: List[str]) -> None:
    console.print("[bold red]⚔️  Conflicts detected:[/]\n")
    for path in files:
        console.print(f"[yellow]  • {escape(path)}[/]")
    console.print()
    console.print("[bold]🔍 Analysis:[/]\n")
    console.print(Markdown(explanation))
