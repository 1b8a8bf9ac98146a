from rich.panel import Panel

from .. import display
from ..stats import Ledger, format_duration

ALL_TIME_DAYS = 9999


def _success_color(percent: int) -> str:
    if percent >= 95:
        return "green"
    if percent >= 80:
        return "yellow"
    return "red"


def stats(ledger: Ledger, days: int = 30, all_time: bool = False):
    """Print the efficiency report for the last `days` days."""
    if all_time:
        days = ALL_TIME_DAYS
    if days <= 0:
        raise ValueError("--days must be a positive number")

    console = display.console
    title = "All Time" if all_time else f"Last {days} Days"
    console.print(Panel(f"[bold cyan]Hermes Efficiency Report - {title}[/]", expand=False))

    summary = ledger.summarize(days)

    time_saved_hours = summary.time_saved_seconds / 3600
    all_time_hours = summary.all_time_time_saved_seconds / 3600

    console.print("[bold]⏱️  Time Saved[/]")
    console.print(f"   [green]{format_duration(summary.time_saved_seconds)}[/] ({time_saved_hours:.1f} hours)")
    if not all_time:
        console.print(
            f"[dim]   All-time: {format_duration(summary.all_time_time_saved_seconds)} "
            f"({all_time_hours:.1f} hours)[/]"
        )
    console.print()

    reduction = 0
    if summary.git_commands_run > 0:
        reduction = round((1 - summary.total_commands / summary.git_commands_run) * 100)

    console.print("[bold]🚀  Commands[/]")
    console.print(f"   Hermes: [cyan]{summary.total_commands}[/] commands")
    console.print(f"   Git equivalents: [dim]{summary.git_commands_run}[/] commands")
    if reduction > 0:
        console.print(f"   [green]{reduction}% reduction[/]")
    console.print()

    success_percent = round(summary.success_rate * 100)
    console.print("[bold]🎯  Success Rate[/]")
    console.print(
        f"   [{_success_color(success_percent)}]{success_percent}%[/] of commands completed successfully"
    )
    console.print()

    if summary.top_commands:
        console.print("[bold]📊  Most Used Commands[/]")
        top_count = summary.top_commands[0][1]
        for index, (command, count) in enumerate(summary.top_commands, start=1):
            bar = "█" * -(-count * 20 // top_count)
            console.print(f"   {index}. [cyan]{command:<12}[/] [dim]{bar}[/] {count}x")
        console.print()

    console.print("[bold]📈  Productivity[/]")
    console.print(f"   Active days: [cyan]{summary.days_active}[/]")
    console.print(f"   Avg commands/day: [cyan]{summary.commands_per_day:.1f}[/]")
    console.print()

    if time_saved_hours > 0:
        weekly = time_saved_hours / days * 7
        monthly = time_saved_hours / days * 30
        efficiency = min(50, round(time_saved_hours / (days / 30) * 10))

        console.print("[bold]💡  Efficiency Insights[/]")
        console.print(f"   Weekly time saved: [green]~{weekly:.1f}h[/]")
        console.print(f"   Monthly time saved: [green]~{monthly:.1f}h[/]")
        console.print(f"   Efficiency gain: [green]+{efficiency}%[/] compared to raw Git")
        console.print()

    if summary.days_active >= 7:
        console.print("[bold]🏆  Productivity Streak[/]")
        console.print(f"   [yellow]{summary.days_active} days[/] using Hermes")
        console.print()

    console.print("[dim]💭  Tip: Use `hermes init` to customize workflows and save even more time[/]")
    console.print()
