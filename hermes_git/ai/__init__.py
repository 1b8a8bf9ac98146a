"""
The `ai` package talks to the advisory service: the Copilot CLI by default,
or an aisuite-backed LLM when configured.
"""

from .advisor import (
    Advisor,
    CopilotAdvisor,
    LLMAdvisor,
    build_advisor,
    build_analysis_prompt,
    build_plan_prompt,
)


__all__ = [
    "Advisor",
    "CopilotAdvisor",
    "LLMAdvisor",
    "build_advisor",
    "build_analysis_prompt",
    "build_plan_prompt",
]
