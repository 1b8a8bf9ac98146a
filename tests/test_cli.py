import json
import os
import shutil
import tempfile
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from io import StringIO
# This import will trigger the command registration via decorators in cli.py
from hermes_git import cli
from hermes_git.errors import AdvisorError, NotARepositoryError


class TestCommandLineParser(unittest.TestCase):
    """Tests for the command-line argument parser in cli.py."""

    @patch("hermes_git.cli._load_context")
    @patch("hermes_git.cli.plan", new_callable=AsyncMock)
    @patch("argcomplete.autocomplete")
    def test_plan_command_parses_correctly(self, mock_autocomplete, mock_plan, mock_load_context):
        """Verify `hermes plan "intent"` calls the handler with the right args."""
        cli.run_cli(["plan", "sync with main"])

        mock_load_context.assert_called_once()
        mock_plan.assert_awaited_once()
        ctx, intent = mock_plan.call_args.args
        self.assertIs(ctx, mock_load_context.return_value)
        self.assertEqual(intent, "sync with main")

    @patch("hermes_git.cli._load_context")
    @patch("hermes_git.cli.sync", new_callable=AsyncMock)
    @patch("argcomplete.autocomplete")
    def test_sync_from_option(self, mock_autocomplete, mock_sync, mock_load_context):
        cli.run_cli(["sync", "--from", "develop", "-y"])

        _ctx, source = mock_sync.call_args.args
        self.assertEqual(source, "develop")
        parsed_args = mock_load_context.call_args.args[0]
        self.assertTrue(parsed_args.yes)

    @patch("hermes_git.cli._load_context")
    @patch("hermes_git.cli.wip", new_callable=AsyncMock)
    @patch("argcomplete.autocomplete")
    def test_wip_without_message(self, mock_autocomplete, mock_wip, mock_load_context):
        cli.run_cli(["wip"])

        _ctx, message = mock_wip.call_args.args
        self.assertIsNone(message)
        self.assertFalse(mock_load_context.call_args.args[0].yes)

    @patch("hermes_git.cli._load_context")
    @patch("hermes_git.cli.pr_ready", new_callable=AsyncMock)
    @patch("argcomplete.autocomplete")
    def test_nested_workflow_command(self, mock_autocomplete, mock_pr_ready, mock_load_context):
        cli.run_cli(["workflow", "pr-ready"])

        mock_pr_ready.assert_awaited_once_with(mock_load_context.return_value)

    @patch("hermes_git.cli._load_context")
    @patch("hermes_git.cli.conflict_explain", new_callable=AsyncMock)
    @patch("argcomplete.autocomplete")
    def test_nested_conflict_command(self, mock_autocomplete, mock_explain, mock_load_context):
        cli.run_cli(["conflict", "explain"])

        mock_explain.assert_awaited_once()

    @patch("hermes_git.cli._load_context")
    @patch("hermes_git.cli.worktree_new", new_callable=AsyncMock)
    @patch("argcomplete.autocomplete")
    def test_worktree_new(self, mock_autocomplete, mock_worktree_new, mock_load_context):
        cli.run_cli(["worktree", "new", "fix login"])

        _ctx, task = mock_worktree_new.call_args.args
        self.assertEqual(task, "fix login")

    @patch("hermes_git.cli._load_context")
    @patch("hermes_git.cli.stats")
    @patch("argcomplete.autocomplete")
    def test_stats_options(self, mock_autocomplete, mock_stats, mock_load_context):
        cli.run_cli(["stats", "-d", "7"])

        ctx = mock_load_context.return_value
        mock_stats.assert_called_once_with(ctx.ledger, days=7, all_time=False)

    @patch("hermes_git.cli.init", new_callable=AsyncMock)
    @patch("hermes_git.cli._load_context")
    @patch("argcomplete.autocomplete")
    def test_init_quick(self, mock_autocomplete, mock_load_context, mock_init):
        cli.run_cli(["init", "--quick"])

        mock_init.assert_awaited_once_with(quick=True)

    @patch("sys.stderr", new_callable=StringIO)
    @patch("argcomplete.autocomplete")
    def test_missing_required_argument_exits_with_error(self, mock_autocomplete, mock_stderr):
        """Verify a command with a missing argument exits with a clear error."""
        with self.assertRaises(SystemExit):
            cli.run_cli(["plan"])

        self.assertIn("the following arguments are required: intent", mock_stderr.getvalue())

    @patch("sys.stderr", new_callable=StringIO)
    @patch("argcomplete.autocomplete")
    def test_group_without_action_exits_with_error(self, mock_autocomplete, mock_stderr):
        with self.assertRaises(SystemExit):
            cli.run_cli(["workflow"])

        self.assertIn("the following arguments are required: action", mock_stderr.getvalue())

    @patch("sys.stderr", new_callable=StringIO)
    @patch("argcomplete.autocomplete")
    def test_invalid_command_exits_with_error(self, mock_autocomplete, mock_stderr):
        """Verify that an invalid command exits with a clear error."""
        with self.assertRaises(SystemExit):
            cli.run_cli(["fly"])

        self.assertIn("invalid choice", mock_stderr.getvalue())
        self.assertIn("fly", mock_stderr.getvalue())


class TestErrorReporting(unittest.TestCase):
    @patch("sys.stderr", new_callable=StringIO)
    @patch("hermes_git.cli._load_context", MagicMock())
    @patch("hermes_git.cli.plan", new_callable=AsyncMock)
    @patch("argcomplete.autocomplete")
    def test_hermes_error_prints_remediation(self, mock_autocomplete, mock_plan, mock_stderr):
        mock_plan.side_effect = NotARepositoryError()

        with self.assertRaises(SystemExit) as cm:
            cli.run_cli(["plan", "anything"])

        self.assertEqual(cm.exception.code, 1)
        output = mock_stderr.getvalue()
        self.assertIn("Error: Not a Git repository or Git is not installed", output)
        self.assertIn(NotARepositoryError.remediation, output)


class TestBrokenAdvisorConfig(unittest.TestCase):
    """Commands that never ask the advisor must survive a bad advisor setting."""

    def setUp(self):
        self.root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.root)
        os.makedirs(os.path.join(self.root, ".hermes"))
        with open(os.path.join(self.root, ".hermes", "config.json"), "w") as f:
            json.dump({"project": {"name": "demo"}, "advisor": {"backend": "llm"}}, f)
        self.addCleanup(os.chdir, os.getcwd())
        os.chdir(self.root)

    @patch("hermes_git.cli.stats")
    @patch("argcomplete.autocomplete")
    def test_stats_runs(self, mock_autocomplete, mock_stats):
        cli.run_cli(["stats"])

        mock_stats.assert_called_once()

    @patch("hermes_git.cli.init", new_callable=AsyncMock)
    @patch("argcomplete.autocomplete")
    def test_init_quick_runs(self, mock_autocomplete, mock_init):
        cli.run_cli(["init", "--quick"])

        mock_init.assert_awaited_once_with(quick=True)

    @patch("sys.stderr", new_callable=StringIO)
    @patch("argcomplete.autocomplete")
    def test_advised_command_reports_the_bad_setting(self, mock_autocomplete, mock_stderr):
        with patch("hermes_git.assistants.plan.probe", AsyncMock()):
            with self.assertRaises(SystemExit) as cm:
                cli.run_cli(["plan", "anything"])

        self.assertEqual(cm.exception.code, 1)
        self.assertIn("needs a provider", mock_stderr.getvalue())

    def test_advisor_is_built_on_first_use(self):
        ctx = cli._load_context(MagicMock(yes=False))

        self.assertEqual(ctx.config.advisor.backend, "llm")
        with self.assertRaises(AdvisorError):
            ctx.advisor


class TestCommandRegistration(unittest.TestCase):
    def test_handler_name_must_start_with_handle(self):
        with self.assertRaises(ValueError):

            @cli.command([])
            def do_something(args, ctx):
                """Docstring."""

    def test_handler_needs_docstring(self):
        with self.assertRaises(ValueError):

            @cli.command([])
            def handle_nothing(args, ctx):
                pass


if __name__ == "__main__":
    unittest.main()
