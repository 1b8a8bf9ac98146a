"""
The `git` package wraps everything that touches the repository: the async
subprocess runner, the state prober and the plan executor.
"""

from .executor import ExecutionResult, execute_plan
from .runner import CommandResult, run_git, run_shell
from .state import RepoState, get_conflicted_files, get_repo_state, probe


__all__ = [
    "CommandResult",
    "ExecutionResult",
    "RepoState",
    "execute_plan",
    "get_conflicted_files",
    "get_repo_state",
    "probe",
    "run_git",
    "run_shell",
]
