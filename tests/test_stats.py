import json
import multiprocessing
import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

from hermes_git.assistants.base import Recorder
from hermes_git.stats import (
    DAY_MS,
    Ledger,
    Stats,
    StatsEntry,
    estimate_time_saved,
    format_duration,
)


def _record_once(path):
    return Ledger(path).record("sync", [], 0.1, True, 2) is not None


class FakeClock:
    def __init__(self, now: float):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestEstimateTimeSaved(unittest.TestCase):
    def test_base_plus_extra_commands(self):
        self.assertEqual(estimate_time_saved("start", 4), 60 + 3 * 15)

    def test_no_commands_adds_nothing(self):
        self.assertEqual(estimate_time_saved("plan", 0), 120)
        self.assertEqual(estimate_time_saved("plan", 1), 120)

    def test_unknown_command_has_no_base(self):
        self.assertEqual(estimate_time_saved("workflow", 3), 30)
        self.assertEqual(estimate_time_saved("stats", 0), 0)


class TestFormatDuration(unittest.TestCase):
    def test_ranges(self):
        self.assertEqual(format_duration(45), "45s")
        self.assertEqual(format_duration(60 * 12), "12m")
        self.assertEqual(format_duration(3600), "1h")
        self.assertEqual(format_duration(3900), "1h 5m")
        self.assertEqual(format_duration(86400 * 3 + 3600 * 4), "3d 4h")
        self.assertEqual(format_duration(86400 * 2), "2d")


class LedgerTestCase(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.tmpdir)
        self.path = os.path.join(self.tmpdir, ".hermes", "stats.json")
        self.clock = FakeClock(1_700_000_000.0)
        self.ledger = Ledger(self.path, clock=self.clock)

    def read_file(self):
        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f)


class TestLedgerRecord(LedgerTestCase):
    """Tests for Ledger.record()."""

    def test_first_record_creates_file(self):
        entry = self.ledger.record("start", ["add login"], 2.5, True, 3)

        data = self.read_file()
        self.assertEqual(data["totalCommands"], 1)
        self.assertEqual(data["totalGitCommands"], 3)
        self.assertEqual(data["totalTimeSaved"], 90)
        self.assertEqual(data["startDate"], 1_700_000_000_000)
        self.assertEqual(data["commandHistory"][0]["gitCommandsRun"], 3)
        self.assertEqual(entry.time_saved, 90)

    def test_start_date_is_set_once_and_last_used_moves(self):
        self.ledger.record("plan", ["x"], 1.0, True)
        self.clock.now += 3600
        self.ledger.record("plan", ["y"], 1.0, True)

        data = self.read_file()
        self.assertEqual(data["startDate"], 1_700_000_000_000)
        self.assertEqual(data["lastUsed"], 1_700_003_600_000)

    def test_history_is_capped_but_counters_keep_counting(self):
        ledger = Ledger(self.path, max_history=3, clock=self.clock)
        for i in range(4):
            self.clock.now += 1
            ledger.record("wip", [str(i)], 0.1, True, 1)

        stats = ledger.load()
        self.assertEqual(len(stats.command_history), 3)
        self.assertEqual([e.args for e in stats.command_history], [["1"], ["2"], ["3"]])
        self.assertEqual(stats.total_commands, 4)
        self.assertEqual(stats.total_git_commands, 4)
        self.assertEqual(stats.total_time_saved, 4 * 30)

    def test_write_failure_is_swallowed(self):
        with patch("hermes_git.stats.json.dump", side_effect=OSError("disk full")):
            result = self.ledger.record("sync", [], 1.0, True, 2)

        self.assertIsNone(result)
        self.assertFalse(os.path.exists(self.path))

    def test_unwritable_location_is_swallowed(self):
        blocker = os.path.join(self.tmpdir, "blocker")
        open(blocker, "w").close()
        ledger = Ledger(os.path.join(blocker, "stats.json"), clock=self.clock)

        self.assertIsNone(ledger.record("sync", [], 1.0, True))

    def test_corrupt_file_starts_over(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w") as f:
            f.write("{not json")

        self.ledger.record("plan", [], 1.0, True)

        self.assertEqual(self.read_file()["totalCommands"], 1)

    def write_raw(self, data):
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f)

    def test_history_of_the_wrong_type_starts_over(self):
        self.write_raw({"startDate": 1, "totalCommands": 5, "commandHistory": {"a": 1}})

        entry = self.ledger.record("plan", [], 1.0, True)

        self.assertIsNotNone(entry)
        data = self.read_file()
        self.assertEqual(data["totalCommands"], 1)
        self.assertEqual(len(data["commandHistory"]), 1)

    def test_non_numeric_counter_starts_over(self):
        self.write_raw({"startDate": 1, "totalTimeSaved": "x", "commandHistory": []})

        with Recorder(self.ledger, "sync", []) as recorder:
            recorder.git_commands_run = 2

        data = self.read_file()
        self.assertEqual(data["totalCommands"], 1)
        self.assertEqual(data["totalTimeSaved"], 105)

    def test_wrong_shape_still_summarizes(self):
        self.write_raw(["not", "an", "object"])

        summary = self.ledger.summarize(30)

        self.assertEqual(summary.total_commands, 0)
        self.assertEqual(summary.all_time_commands, 0)

    def test_unexpected_errors_are_swallowed(self):
        with patch.object(self.ledger, "load", side_effect=RuntimeError("boom")):
            self.assertIsNone(self.ledger.record("sync", [], 1.0, True))

    def test_concurrent_writers_do_not_lose_entries(self):
        with multiprocessing.Pool(8) as pool:
            results = pool.map(_record_once, [self.path] * 80)

        self.assertTrue(all(results))
        stats = Ledger(self.path).load()
        self.assertEqual(stats.total_commands, 80)
        self.assertEqual(stats.total_git_commands, 160)
        self.assertEqual(len(stats.command_history), 80)


class TestLedgerSummarize(LedgerTestCase):
    """Tests for Ledger.summarize()."""

    def write_stats(self, entries, start_days_ago=60):
        now_ms = int(self.clock.now * 1000)
        stats = Stats(start_date=now_ms - start_days_ago * DAY_MS, last_used=now_ms)
        for days_ago, command, success, git_commands in entries:
            entry = StatsEntry(
                timestamp=now_ms - int(days_ago * DAY_MS),
                command=command,
                args=[],
                duration=1.0,
                success=success,
                git_commands_run=git_commands,
                time_saved=estimate_time_saved(command, git_commands),
            )
            stats.command_history.append(entry)
            stats.total_commands += 1
            stats.total_git_commands += git_commands
            stats.total_time_saved += entry.time_saved
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(stats.to_dict(), f)

    def test_window_filters_entries_but_not_all_time_totals(self):
        self.write_stats([(40, "sync", True, 2), (2, "start", True, 4)])

        summary = self.ledger.summarize(30)

        self.assertEqual(summary.total_commands, 1)
        self.assertEqual(summary.git_commands_run, 4)
        self.assertEqual(summary.time_saved_seconds, 105)
        self.assertEqual(summary.all_time_commands, 2)
        self.assertEqual(summary.all_time_git_commands, 6)
        self.assertEqual(summary.all_time_time_saved_seconds, 105 + 105)

    def test_success_rate(self):
        self.write_stats([(1, "plan", True, 0), (1, "sync", False, 1), (1, "wip", True, 1), (1, "wip", True, 2)])

        self.assertEqual(self.ledger.summarize(30).success_rate, 0.75)

    def test_empty_window_has_zero_success_rate(self):
        self.write_stats([(100, "plan", True, 0)])

        summary = self.ledger.summarize(7)

        self.assertEqual(summary.total_commands, 0)
        self.assertEqual(summary.success_rate, 0)
        self.assertEqual(summary.top_commands, [])

    def test_top_commands_limited_to_five_with_stable_ties(self):
        entries = [(1, name, True, 0) for name in ["wip", "sync", "start", "plan", "conflict", "worktree"]]
        entries += [(1, "plan", True, 0), (1, "plan", True, 0), (1, "worktree", True, 0)]
        self.write_stats(entries)

        top = self.ledger.summarize(30).top_commands

        self.assertEqual(top, [("plan", 3), ("worktree", 2), ("wip", 1), ("sync", 1), ("start", 1)])

    def test_days_active_from_start_date(self):
        self.write_stats([(1, "plan", True, 0)] * 10, start_days_ago=10)

        summary = self.ledger.summarize(30)

        self.assertEqual(summary.days_active, 10)
        self.assertEqual(summary.commands_per_day, 1.0)

    def test_days_active_is_at_least_one(self):
        summary = self.ledger.summarize(30)

        self.assertEqual(summary.days_active, 1)
        self.assertEqual(summary.commands_per_day, 0)


if __name__ == "__main__":
    unittest.main()
