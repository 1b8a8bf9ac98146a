"""
Repository state inference.

probe() fires a fixed set of read-only git queries at once and folds them
into a single RepoState. Only the branch query is allowed to fail the
whole probe; every other query falls back to a neutral default so that a
half-broken repository still yields a usable snapshot.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..errors import NotARepositoryError
from .runner import run_git

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepoState:
    """Point-in-time summary of the working repository."""

    current_branch: str
    is_clean: bool
    has_uncommitted_changes: bool
    has_untracked_files: bool
    is_in_rebase: bool = False
    is_in_merge: bool = False
    is_in_cherry_pick: bool = False
    remote_tracking: Optional[str] = None
    ahead: int = 0
    behind: int = 0

    def __post_init__(self):
        # Ahead/behind counts are meaningless without a tracking ref.
        if self.remote_tracking is None:
            object.__setattr__(self, "ahead", 0)
            object.__setattr__(self, "behind", 0)
        if self.ahead < 0 or self.behind < 0:
            raise ValueError("ahead/behind counts cannot be negative")

    def to_dict(self) -> Dict:
        """The shape embedded in advisory prompts."""
        data = {
            "currentBranch": self.current_branch,
            "isClean": self.is_clean,
            "hasUncommittedChanges": self.has_uncommitted_changes,
            "hasUntrackedFiles": self.has_untracked_files,
            "isInRebase": self.is_in_rebase,
            "isInMerge": self.is_in_merge,
            "isInCherryPick": self.is_in_cherry_pick,
            "ahead": self.ahead,
            "behind": self.behind,
        }
        if self.remote_tracking is not None:
            data["remoteTracking"] = self.remote_tracking
        return data


def classify_status(lines: List[str]) -> Tuple[bool, bool, bool]:
    """
    Classify `git status --porcelain` lines.

    Returns (is_clean, has_uncommitted_changes, has_untracked_files).
    """
    lines = [line for line in lines if line]
    has_uncommitted = any(line[:1] == "M" or line[1:2] == "M" for line in lines)
    has_untracked = any(line.startswith("??") for line in lines)
    return len(lines) == 0, has_uncommitted, has_untracked


def parse_ahead_behind(output: str) -> Tuple[int, int]:
    """
    Parse `git rev-list --left-right --count <upstream>...HEAD`.

    The left column counts commits only on the upstream (behind), the right
    column commits only on HEAD (ahead). Returns (ahead, behind).
    """
    parts = output.split()
    if len(parts) != 2:
        return 0, 0
    try:
        behind, ahead = int(parts[0]), int(parts[1])
    except ValueError:
        return 0, 0
    if ahead < 0 or behind < 0:
        return 0, 0
    return ahead, behind


async def _current_branch(cwd: Optional[str]) -> str:
    result = await run_git("rev-parse", "--abbrev-ref", "HEAD", cwd=cwd)
    if result.ok:
        return result.stdout.strip()

    # A repository without commits has no HEAD to resolve, only a symbolic ref.
    result = await run_git("symbolic-ref", "--short", "HEAD", cwd=cwd)
    if not result.ok:
        raise NotARepositoryError()
    return result.stdout.strip()


async def _status_lines(cwd: Optional[str]) -> List[str]:
    result = await run_git("status", "--porcelain", cwd=cwd)
    if not result.ok:
        return []
    return [line for line in result.stdout.splitlines() if line.strip()]


async def _tracking_ref(cwd: Optional[str]) -> Optional[str]:
    result = await run_git("rev-parse", "--abbrev-ref", "@{upstream}", cwd=cwd)
    if not result.ok:
        return None
    return result.stdout.strip() or None


async def _git_dir(cwd: Optional[str]) -> Optional[str]:
    result = await run_git("rev-parse", "--git-dir", cwd=cwd)
    if not result.ok:
        return None
    git_dir = result.stdout.strip()
    if not os.path.isabs(git_dir):
        git_dir = os.path.join(cwd or os.getcwd(), git_dir)
    return git_dir


async def _has_marker(cwd: Optional[str], *names: str) -> bool:
    try:
        git_dir = await _git_dir(cwd)
        if git_dir is None:
            return False
        return any(os.path.exists(os.path.join(git_dir, name)) for name in names)
    except OSError:
        return False


async def _ahead_behind(tracking: str, cwd: Optional[str]) -> Tuple[int, int]:
    result = await run_git("rev-list", "--left-right", "--count", f"{tracking}...HEAD", cwd=cwd)
    if not result.ok:
        return 0, 0
    return parse_ahead_behind(result.stdout)


async def probe(cwd: Optional[str] = None) -> RepoState:
    """
    Build a RepoState for the repository at cwd (default: current directory).

    Raises NotARepositoryError when the current branch cannot be determined.
    """

    branch, lines, tracking, in_rebase, in_merge, in_cherry_pick = await asyncio.gather(
        _current_branch(cwd),
        _status_lines(cwd),
        _tracking_ref(cwd),
        _has_marker(cwd, "rebase-merge", "rebase-apply"),
        _has_marker(cwd, "MERGE_HEAD"),
        _has_marker(cwd, "CHERRY_PICK_HEAD"),
    )

    ahead, behind = 0, 0
    if tracking:
        ahead, behind = await _ahead_behind(tracking, cwd)

    is_clean, has_uncommitted, has_untracked = classify_status(lines)
    state = RepoState(
        current_branch=branch,
        is_clean=is_clean,
        has_uncommitted_changes=has_uncommitted,
        has_untracked_files=has_untracked,
        is_in_rebase=in_rebase,
        is_in_merge=in_merge,
        is_in_cherry_pick=in_cherry_pick,
        remote_tracking=tracking,
        ahead=ahead,
        behind=behind,
    )
    LOG.debug("Probed repository state: %s", state)
    return state


def get_repo_state(cwd: Optional[str] = None) -> RepoState:
    return asyncio.run(probe(cwd))


async def list_conflicted_files(cwd: Optional[str] = None) -> List[str]:
    result = await run_git("diff", "--name-only", "--diff-filter=U", cwd=cwd)
    if not result.ok:
        return []
    return [line for line in result.stdout.splitlines() if line.strip()]


def get_conflicted_files(cwd: Optional[str] = None) -> List[str]:
    return asyncio.run(list_conflicted_files(cwd))
