#!/usr/bin/env python3

import argparse
import argcomplete
import asyncio
import sys

from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import wraps
from typing import Callable, List, Optional

from . import __version__
from .assistants.base import Context
from .assistants.conflict import conflict_apply, conflict_explain
from .assistants.init import init
from .assistants.plan import plan
from .assistants.start import start
from .assistants.stats import stats
from .assistants.sync import sync
from .assistants.wip import wip
from .assistants.workflow import daily_sync, list_workflows, pr_ready, quick_commit
from .assistants.worktree import worktree_new
from .errors import HermesError
from .logging_utils import configure_logging


_available_commands: List["Command"] = []

GROUP_HELP = {
    "conflict": "Understand and resolve merge conflicts.",
    "workflow": "Run predefined workflow shortcuts.",
    "worktree": "Manage Git worktrees safely.",
}


@dataclass
class Argument(ABC):
    def __init__(self, help: str, kwargs: Optional[dict] = None):
        self.help = help
        self.kwargs = kwargs if kwargs is not None else {}

    @abstractmethod
    def add_to_parser(self, parser: argparse.ArgumentParser):
        pass


class OptionalArg(Argument):
    def __init__(
        self,
        short_option: Optional[str],
        long_option: str,
        help: str,
        kwargs: Optional[dict] = None,
    ):
        super().__init__(help=help, kwargs=kwargs)
        self.short_option = short_option
        self.long_option = long_option

    def add_to_parser(self, parser: argparse.ArgumentParser):
        options = [o for o in (self.short_option, self.long_option) if o]
        parser.add_argument(*options, help=self.help, **self.kwargs)


class PositionalArg(Argument):
    def __init__(self, name: str, help: str, kwargs: Optional[dict] = None):
        super().__init__(help=help, kwargs=kwargs)
        self.name = name

    def add_to_parser(self, parser: argparse.ArgumentParser):
        parser.add_argument(self.name, help=self.help, **self.kwargs)


ASSUME_YES = OptionalArg(
    short_option="-y",
    long_option="--yes",
    help="Run the planned commands without asking for confirmation.",
    kwargs={"action": "store_true"},
)


@dataclass
class Command:
    name: str
    func: Callable
    help: str
    description: str
    args: list[Argument]
    group: Optional[str] = None


def _load_context(args) -> Context:
    return Context.create(assume_yes=getattr(args, "yes", False))


def command(args: List[Argument], group: Optional[str] = None):
    def decorator(func):
        if not func.__name__.startswith("handle_"):
            raise ValueError("Command handler must start with 'handle_'.")

        if not func.__doc__:
            raise ValueError(
                f"Command handler '{func.__name__}' must have a docstring for its help text."
            )

        @wraps(func)
        def wrapper(parsed_args):
            return func(parsed_args, _load_context(parsed_args))

        # handle_workflow_pr_ready in group "workflow" becomes `workflow pr-ready`.
        command_name = func.__name__[len("handle_"):]
        if group:
            command_name = command_name[len(group) + 1:]
        command_name = command_name.replace("_", "-")

        # Use the first line of the docstring as the help text and
        # the full docstring for the detailed description.
        help_text = func.__doc__.strip().split("\n")[0]
        _available_commands.append(
            Command(command_name, wrapper, help_text, func.__doc__, args, group)
        )
        return wrapper

    return decorator


##############################################################################


@command(
    [
        OptionalArg(
            short_option=None,
            long_option="--quick",
            help="Skip interactive prompts, use defaults.",
            kwargs={"action": "store_true"},
        )
    ]
)
def handle_init(args, ctx):
    """Initialize Hermes configuration for this repository."""
    asyncio.run(init(quick=args.quick))


@command([PositionalArg(name="intent", help="What you want to achieve.")])
def handle_plan(args, ctx):
    """Analyze the repository state and propose a safe Git plan.
    Nothing is executed: the plan is only displayed for review.
    """
    asyncio.run(plan(ctx, args.intent))


@command([PositionalArg(name="task", help="Description of the task."), ASSUME_YES])
def handle_start(args, ctx):
    """Start a new piece of work safely on a well-named branch."""
    asyncio.run(start(ctx, args.task))


@command(
    [
        OptionalArg(
            short_option=None,
            long_option="--from",
            help="Source branch to sync from (default: main).",
            kwargs={"dest": "source"},
        ),
        ASSUME_YES,
    ]
)
def handle_sync(args, ctx):
    """Bring your branch up to date safely."""
    asyncio.run(sync(ctx, args.source))


@command(
    [
        OptionalArg(short_option="-m", long_option="--message", help="Custom WIP message."),
        ASSUME_YES,
    ]
)
def handle_wip(args, ctx):
    """Save work safely when things get messy."""
    asyncio.run(wip(ctx, args.message))


@command([], group="conflict")
def handle_conflict_explain(args, ctx):
    """Understand why a conflict exists."""
    asyncio.run(conflict_explain(ctx))


@command([], group="conflict")
def handle_conflict_apply(args, ctx):
    """Resolve conflicts with guidance, one file at a time."""
    asyncio.run(conflict_apply(ctx))


@command([PositionalArg(name="task", help="Description of the task."), ASSUME_YES], group="worktree")
def handle_worktree_new(args, ctx):
    """Create a new worktree for a task."""
    asyncio.run(worktree_new(ctx, args.task))


@command([], group="workflow")
def handle_workflow_pr_ready(args, ctx):
    """Prepare branch for pull request."""
    asyncio.run(pr_ready(ctx))


@command([], group="workflow")
def handle_workflow_daily_sync(args, ctx):
    """Daily workflow: fetch, show status, suggest actions."""
    asyncio.run(daily_sync(ctx))


@command([ASSUME_YES], group="workflow")
def handle_workflow_quick_commit(args, ctx):
    """Quick commit all changes with an AI-generated message."""
    asyncio.run(quick_commit(ctx))


@command([], group="workflow")
def handle_workflow_list(args, ctx):
    """List available workflow shortcuts."""
    list_workflows(ctx)


@command(
    [
        OptionalArg(
            short_option="-d",
            long_option="--days",
            help="Show stats for the last N days.",
            kwargs={"type": int, "default": 30},
        ),
        OptionalArg(
            short_option=None,
            long_option="--all-time",
            help="Show all-time statistics.",
            kwargs={"action": "store_true"},
        ),
    ]
)
def handle_stats(args, ctx):
    """Show your Hermes efficiency statistics."""
    stats(ctx.ledger, days=args.days, all_time=args.all_time)


##############################################################################


def _add_command(subparsers, command: Command):
    subparser = subparsers.add_parser(
        command.name, help=command.help, description=command.description
    )
    for arg in command.args:
        arg.add_to_parser(subparser)
    subparser.set_defaults(func=command.func)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hermes",
        description="Intent-driven Git, guided by AI.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (can be specified multiple times).",
    )
    subparsers = parser.add_subparsers(
        dest="command", help="Sub-commands", required=True
    )

    # Sort commands alphabetically for consistent --help output.
    commands = sorted(_available_commands, key=lambda cmd: (cmd.group or cmd.name, cmd.name))

    groups = {}
    for command in commands:
        if command.group is None:
            _add_command(subparsers, command)
            continue

        if command.group not in groups:
            group_help = GROUP_HELP.get(command.group)
            group_parser = subparsers.add_parser(
                command.group, help=group_help, description=group_help
            )
            groups[command.group] = group_parser.add_subparsers(
                dest="action", help="Actions", required=True
            )
        _add_command(groups[command.group], command)

    return parser


def run_cli(argv: Optional[List[str]] = None):
    """
    Parses command-line arguments and executes the corresponding command.

    Args:
        argv: A list of strings representing the command-line arguments.
              If None, `sys.argv[1:]` is used automatically by `parse_args`.
    """
    parser = build_parser()

    # Enable argument auto-completion.
    argcomplete.autocomplete(parser)

    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    try:
        args.func(args)
    except KeyboardInterrupt:
        sys.exit(130)
    except HermesError as e:
        print(f"Error: {e}", file=sys.stderr)
        if e.remediation:
            print(e.remediation, file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def main():
    """The entry point of the `hermes` script."""
    run_cli()


if __name__ == "__main__":
    main()
