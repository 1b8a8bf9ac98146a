import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from hermes_git.ai.advisor import (
    CopilotAdvisor,
    LLMAdvisor,
    build_advisor,
    build_plan_prompt,
)
from hermes_git.ai.llm import LLMClient, LLMCompletionResponse
from hermes_git.config import AdvisorConfig
from hermes_git.errors import (
    AdvisorAuthError,
    AdvisorError,
    AdvisorNotInstalledError,
    AdvisorSubscriptionError,
    classify_advisor_error,
)
from hermes_git.git.runner import CommandResult


class TestClassifyAdvisorError(unittest.TestCase):
    def test_authentication(self):
        self.assertIs(classify_advisor_error("Error: Not authenticated. Run `copilot login`."), AdvisorAuthError)

    def test_subscription(self):
        self.assertIs(
            classify_advisor_error("You do not have an active Copilot subscription"), AdvisorSubscriptionError
        )

    def test_unknown_falls_back_to_generic(self):
        self.assertIs(classify_advisor_error("something odd happened"), AdvisorError)
        self.assertIs(classify_advisor_error(""), AdvisorError)

    def test_errors_carry_remediation(self):
        self.assertIn("copilot login", AdvisorAuthError("x").remediation)
        self.assertIsNone(AdvisorError("x").remediation)


class TestCopilotAdvisor(unittest.IsolatedAsyncioTestCase):
    """Tests for the Copilot CLI backend, with the subprocess faked."""

    async def test_returns_trimmed_stdout(self):
        run = AsyncMock(return_value=CommandResult(0, '  {"commands": []}\n', ""))
        advisor = CopilotAdvisor(model="gpt-5")

        with patch("hermes_git.ai.advisor.run_exec", run):
            response = await advisor.ask('say "hi"')

        self.assertEqual(response, '{"commands": []}')
        argv = run.call_args.args[0]
        self.assertEqual(argv[:3], ["copilot", "-p", 'say "hi"'])
        self.assertIn("gpt-5", argv)
        self.assertIn("-s", argv)
        self.assertEqual(run.call_args.kwargs["timeout"], 120)

    async def test_missing_executable(self):
        run = AsyncMock(return_value=CommandResult(127, "", "copilot: command not found"))

        with patch("hermes_git.ai.advisor.run_exec", run):
            with self.assertRaises(AdvisorNotInstalledError):
                await CopilotAdvisor().ask("plan")

    async def test_auth_failure(self):
        run = AsyncMock(return_value=CommandResult(1, "", "Error: not logged in. Please run copilot login"))

        with patch("hermes_git.ai.advisor.run_exec", run):
            with self.assertRaises(AdvisorAuthError):
                await CopilotAdvisor().ask("plan")

    async def test_subscription_failure(self):
        run = AsyncMock(return_value=CommandResult(1, "", "Copilot subscription required"))

        with patch("hermes_git.ai.advisor.run_exec", run):
            with self.assertRaises(AdvisorSubscriptionError):
                await CopilotAdvisor().ask("plan")

    async def test_stderr_only_output_is_an_error(self):
        run = AsyncMock(return_value=CommandResult(0, "", "rate limited"))

        with patch("hermes_git.ai.advisor.run_exec", run):
            with self.assertRaises(AdvisorError) as cm:
                await CopilotAdvisor().ask("plan")
        self.assertIs(type(cm.exception), AdvisorError)


class TestLLMAdvisor(unittest.IsolatedAsyncioTestCase):
    @patch("hermes_git.ai.advisor.LLMClient")
    async def test_uses_provider_and_model(self, MockLLMClient):
        MockLLMClient.format_user_message.side_effect = LLMClient.format_user_message
        mock_llm = MockLLMClient.return_value
        mock_llm.completion.return_value = LLMCompletionResponse({"role": "assistant", "content": " answer \n"})

        advisor = LLMAdvisor("openai", "gpt-4o", {"openai": {"api_key": "k"}})
        response = await advisor.ask("hello")

        self.assertEqual(response, "answer")
        MockLLMClient.assert_called_once_with({"openai": {"api_key": "k"}})
        kwargs = mock_llm.completion.call_args.kwargs
        self.assertEqual(kwargs["model"], "openai:gpt-4o")
        self.assertEqual(kwargs["messages"], [{"role": "user", "content": "hello"}])

    @patch("hermes_git.ai.advisor.LLMClient")
    async def test_provider_errors_are_classified(self, MockLLMClient):
        MockLLMClient.return_value.completion.side_effect = RuntimeError("401 Unauthorized")

        with self.assertRaises(AdvisorAuthError):
            await LLMAdvisor("openai", "gpt-4o").ask("hello")


class TestBuildAdvisor(unittest.TestCase):
    def test_default_is_copilot(self):
        self.assertIsInstance(build_advisor(None), CopilotAdvisor)

    @patch("hermes_git.ai.advisor.LLMClient", MagicMock())
    def test_llm_backend(self):
        advisor = build_advisor(AdvisorConfig(backend="llm", provider="anthropic", model="claude"))
        self.assertIsInstance(advisor, LLMAdvisor)

    def test_llm_backend_without_provider(self):
        with self.assertRaises(AdvisorError):
            build_advisor(AdvisorConfig(backend="llm"))

    def test_unknown_backend(self):
        with self.assertRaises(AdvisorError):
            build_advisor(AdvisorConfig(backend="carrier-pigeon"))


class TestPrompts(unittest.TestCase):
    def test_plan_prompt_embeds_state_and_intent(self):
        prompt = build_plan_prompt({"currentBranch": "main"}, "sync with main")
        self.assertIn('"currentBranch": "main"', prompt)
        self.assertIn('User wants to: "sync with main"', prompt)
        self.assertIn("RAW JSON ONLY", prompt)


if __name__ == "__main__":
    unittest.main()
