"""
Advisory service adapters.

An advisor takes a free-form prompt and returns free-form text. The default
backend shells out to the GitHub Copilot CLI; the "llm" backend talks to
any provider aisuite supports. Both raise AdvisorError subclasses that the
CLI turns into remediation hints.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..config import AdvisorConfig, DEFAULT_MODEL
from ..errors import AdvisorError, AdvisorNotInstalledError, classify_advisor_error
from ..git.runner import run_exec
from .llm import LLMClient

LOG = logging.getLogger(__name__)

ADVISOR_TIMEOUT = 120

ANALYSIS_PROMPT = """
You are a Git safety expert. Analyze this repository state and provide guidance.

Repository State:
{state}

User Intent: "{intent}"

Provide a clear, actionable analysis including:
1. Current state summary (clean/dirty, branch position, conflicts, etc.)
2. Recommended approach with reasoning
3. Potential risks and safety considerations
4. Step-by-step Git commands (if applicable)

Be specific about WHY each step is safe and necessary.
Format your response in clear sections.
"""

PLAN_PROMPT = """
You are a Git automation expert. Create a safe execution plan.

Repository State:
{state}

User wants to: "{intent}"

Return your response as RAW JSON ONLY (no markdown code blocks, no backticks, just pure JSON) with fields: explanation, commands[], risks[], safetyNotes[]

Ensure all Git commands are:
- Safe (non-destructive when possible)
- Ordered correctly
- Include necessary error handling
- Explain the purpose of each command
"""


def build_analysis_prompt(state: Dict, intent: str) -> str:
    return ANALYSIS_PROMPT.format(state=json.dumps(state, indent=2), intent=intent)


def build_plan_prompt(state: Dict, intent: str) -> str:
    return PLAN_PROMPT.format(state=json.dumps(state, indent=2), intent=intent)


class Advisor(ABC):
    """Opaque text-in, text-out planning backend."""

    @abstractmethod
    async def ask(self, prompt: str) -> str:
        """Send a prompt and return the trimmed response text."""


class CopilotAdvisor(Advisor):
    def __init__(self, model: str = DEFAULT_MODEL, executable: str = "copilot", timeout: float = ADVISOR_TIMEOUT):
        self.model = model
        self.executable = executable
        self.timeout = timeout

    def build_argv(self, prompt: str) -> list:
        # -s prints only the response, without banner or usage stats.
        return [self.executable, "-p", prompt, "--model", self.model, "--allow-all-tools", "-s"]

    async def ask(self, prompt: str) -> str:
        LOG.debug("Asking %s (model %s), prompt of %d chars", self.executable, self.model, len(prompt))
        result = await run_exec(self.build_argv(prompt), timeout=self.timeout)

        if result.returncode == 127:
            raise AdvisorNotInstalledError("GitHub Copilot CLI is not installed.")

        stdout = result.stdout.strip()
        if not result.ok or (result.stderr.strip() and not stdout):
            detail = result.stderr.strip() or stdout or f"exit code {result.returncode}"
            error_class = classify_advisor_error(detail)
            raise error_class(f"Copilot CLI error: {detail}")

        return stdout


class LLMAdvisor(Advisor):
    def __init__(self, provider: str, model: str, provider_configs: Optional[Dict] = None):
        self.provider = provider
        self.model = model
        self.llm = LLMClient(provider_configs or {})

    def _complete(self, prompt: str) -> str:
        response = self.llm.completion(
            model=f"{self.provider}:{self.model}",
            messages=[LLMClient.format_user_message(prompt)],
        )
        return (response.content or "").strip()

    async def ask(self, prompt: str) -> str:
        try:
            return await asyncio.to_thread(self._complete, prompt)
        except Exception as e:
            # Provider SDKs raise their own exception types; funnel them into ours.
            error_class = classify_advisor_error(str(e))
            raise error_class(f"{self.provider} error: {e}") from e


def build_advisor(config: Optional[AdvisorConfig] = None) -> Advisor:
    config = config or AdvisorConfig()
    if config.backend == "copilot":
        return CopilotAdvisor(model=config.model)
    if config.backend == "llm":
        if not config.provider:
            raise AdvisorError(
                "The llm advisor backend needs a provider.",
                remediation='Set "advisor": {"backend": "llm", "provider": "openai", ...} in .hermes/config.json',
            )
        return LLMAdvisor(config.provider, config.model, config.provider_configs)
    raise AdvisorError(f"Unknown advisor backend: {config.backend}")
