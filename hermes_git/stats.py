"""
Efficiency ledger.

Each hermes invocation appends one StatsEntry to .hermes/stats.json and
bumps a handful of all-time counters. The history is capped; evicting old
entries never touches the counters, so all-time figures can be larger than
what a replay of the history would give.

Statistics are not critical: failing to persist them is logged and
otherwise ignored.
"""

import fcntl
import json
import logging
import math
import os
import tempfile
import time
from collections import Counter
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

LOG = logging.getLogger(__name__)

STATS_FILE = os.path.join(".hermes", "stats.json")
MAX_HISTORY = 1000
DAY_MS = 24 * 60 * 60 * 1000

# Conservative estimates, in seconds, of the manual git work each command replaces.
TIME_SAVED_ESTIMATES: Dict[str, int] = {
    "plan": 120,
    "start": 60,
    "sync": 90,
    "wip": 30,
    "conflict": 180,
    "worktree": 90,
}
# Every git command beyond the first saves looking up syntax and thinking it through.
SECONDS_PER_EXTRA_COMMAND = 15


def estimate_time_saved(command: str, git_commands_run: int) -> int:
    base = TIME_SAVED_ESTIMATES.get(command, 0)
    return base + max(0, git_commands_run - 1) * SECONDS_PER_EXTRA_COMMAND


@dataclass
class StatsEntry:
    timestamp: int
    command: str
    args: List[str]
    duration: float
    success: bool
    git_commands_run: int = 0
    time_saved: float = 0

    def to_dict(self) -> Dict:
        return {
            "timestamp": self.timestamp,
            "command": self.command,
            "args": self.args,
            "duration": self.duration,
            "success": self.success,
            "gitCommandsRun": self.git_commands_run,
            "timeSaved": self.time_saved,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "StatsEntry":
        if not isinstance(data, dict):
            raise TypeError(f"history entry must be an object, got {type(data).__name__}")
        return cls(
            timestamp=int(data.get("timestamp", 0)),
            command=str(data.get("command", "")),
            args=list(data.get("args") or []),
            duration=float(data.get("duration", 0)),
            success=bool(data.get("success", False)),
            git_commands_run=int(data.get("gitCommandsRun", 0)),
            time_saved=float(data.get("timeSaved") or 0),
        )


@dataclass
class Stats:
    start_date: int
    last_used: int
    total_commands: int = 0
    total_git_commands: int = 0
    total_time_saved: float = 0
    command_history: List[StatsEntry] = field(default_factory=list)

    @classmethod
    def empty(cls, now_ms: int) -> "Stats":
        return cls(start_date=now_ms, last_used=now_ms)

    def to_dict(self) -> Dict:
        return {
            "totalCommands": self.total_commands,
            "totalGitCommands": self.total_git_commands,
            "totalTimeSaved": self.total_time_saved,
            "commandHistory": [entry.to_dict() for entry in self.command_history],
            "startDate": self.start_date,
            "lastUsed": self.last_used,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Stats":
        history = data.get("commandHistory", [])
        if not isinstance(history, list):
            raise TypeError(f"commandHistory must be a list, got {type(history).__name__}")
        return cls(
            start_date=int(data["startDate"]),
            last_used=int(data.get("lastUsed", data["startDate"])),
            total_commands=int(data.get("totalCommands", 0)),
            total_git_commands=int(data.get("totalGitCommands", 0)),
            total_time_saved=float(data.get("totalTimeSaved", 0)),
            command_history=[StatsEntry.from_dict(e) for e in history],
        )


@dataclass
class StatsSummary:
    total_commands: int
    all_time_commands: int
    git_commands_run: int
    all_time_git_commands: int
    time_saved_seconds: float
    all_time_time_saved_seconds: float
    success_rate: float
    top_commands: List[Tuple[str, int]]
    days_active: int
    commands_per_day: float


class Ledger:
    """
    Handle on the statistics file.

    The load/mutate/store cycle of record() holds an exclusive lock on a
    sibling .lock file, so concurrent hermes processes do not lose updates.
    """

    def __init__(
        self,
        path: str = STATS_FILE,
        max_history: int = MAX_HISTORY,
        clock: Callable[[], float] = time.time,
    ):
        self.path = path
        self.max_history = max_history
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def load(self) -> Stats:
        """Read the stats file; a missing or unreadable file yields empty stats."""
        if not os.path.exists(self.path):
            return Stats.empty(self._now_ms())
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return Stats.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            LOG.debug("Ignoring unreadable stats file %s: %s", self.path, e)
            return Stats.empty(self._now_ms())

    def _save(self, stats: Stats) -> None:
        if len(stats.command_history) > self.max_history:
            stats.command_history = stats.command_history[-self.max_history:]

        directory = os.path.dirname(self.path) or "."
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".stats-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(stats.to_dict(), f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    @contextmanager
    def _locked(self):
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        with open(self.path + ".lock", "w") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def record(
        self,
        command: str,
        args: List[str],
        duration: float,
        success: bool,
        git_commands_run: int = 0,
    ) -> Optional[StatsEntry]:
        """
        Append one entry and update the all-time counters.

        Returns the stored entry, or None when the stats could not be written.
        """
        try:
            with self._locked():
                stats = self.load()
                now = self._now_ms()
                entry = StatsEntry(
                    timestamp=now,
                    command=command,
                    args=list(args),
                    duration=duration,
                    success=success,
                    git_commands_run=git_commands_run,
                    time_saved=estimate_time_saved(command, git_commands_run),
                )
                stats.total_commands += 1
                stats.total_git_commands += git_commands_run
                stats.total_time_saved += entry.time_saved
                stats.last_used = now
                stats.command_history.append(entry)
                self._save(stats)
                return entry
        except Exception as e:
            # Statistics must never break the command being recorded.
            LOG.debug("Could not record stats to %s: %s", self.path, e)
            return None

    def summarize(self, days: int = 30) -> StatsSummary:
        stats = self.load()
        now = self._now_ms()
        cutoff = now - days * DAY_MS

        recent = [entry for entry in stats.command_history if entry.timestamp >= cutoff]

        # Counter keeps first-seen order, and most_common() is stable for ties.
        counts = Counter(entry.command for entry in recent)
        successes = sum(1 for entry in recent if entry.success)

        days_active = max(1, math.ceil((now - stats.start_date) / DAY_MS))

        return StatsSummary(
            total_commands=len(recent),
            all_time_commands=stats.total_commands,
            git_commands_run=sum(entry.git_commands_run for entry in recent),
            all_time_git_commands=stats.total_git_commands,
            time_saved_seconds=sum(entry.time_saved or 0 for entry in recent),
            all_time_time_saved_seconds=stats.total_time_saved,
            success_rate=successes / len(recent) if recent else 0,
            top_commands=counts.most_common(5),
            days_active=days_active,
            commands_per_day=stats.total_commands / days_active,
        )


def format_duration(seconds: float) -> str:
    """Human readable duration: 45s, 12m, 2h 5m, 3d 4h."""
    if seconds < 60:
        return f"{round(seconds)}s"

    minutes = int(seconds // 60)
    if minutes < 60:
        return f"{minutes}m"

    hours = minutes // 60
    remaining_minutes = minutes % 60
    if hours < 24:
        return f"{hours}h {remaining_minutes}m" if remaining_minutes else f"{hours}h"

    days = hours // 24
    remaining_hours = hours % 24
    return f"{days}d {remaining_hours}h" if remaining_hours else f"{days}d"
