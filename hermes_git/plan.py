"""
Interpretation of advisory responses.

The advisor is asked for raw JSON but frequently wraps it in a fenced code
block or answers in prose. parse_plan() accepts all of these: anything
that decodes to a JSON object becomes a Plan, anything else becomes a
ParseFailure that keeps the original text so it can be shown as-is.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

LOG = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


@dataclass
class Plan:
    """
    An ordered list of literal commands, plus whatever context the advisor
    attached to them. Commands are already normalized to plain strings.
    """

    commands: List[str] = field(default_factory=list)
    explanation: Optional[str] = None
    base_branch: Optional[str] = None
    branch_name: Optional[str] = None
    approach: Optional[str] = None
    is_risky: bool = False
    risk_explanation: Optional[str] = None
    worktree_path: Optional[str] = None
    risks: List[str] = field(default_factory=list)
    safety_notes: List[str] = field(default_factory=list)
    skipped: List[Any] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.commands


@dataclass
class ParseFailure:
    """The response could not be read as a plan; raw_text is the untouched response."""

    raw_text: str
    reason: str = ""


def strip_code_fence(text: str) -> str:
    """Return the interior of the first ``` block (optionally tagged json), or the trimmed text."""
    match = _CODE_FENCE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def normalize_command(descriptor: Any) -> Optional[str]:
    """
    Resolve one command descriptor to its literal command text.

    Accepted shapes are a bare string, {"command": "..."} and {"cmd": "..."}.
    Returns None for anything else, including blank command text.
    """
    if isinstance(descriptor, str):
        return descriptor if descriptor.strip() else None
    if isinstance(descriptor, dict):
        for key in ("command", "cmd"):
            value = descriptor.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return None


def normalize_commands(descriptors: Any) -> Tuple[List[str], List[Any]]:
    """Split raw descriptors into (commands, skipped)."""
    if not isinstance(descriptors, list):
        return [], []

    commands: List[str] = []
    skipped: List[Any] = []
    for descriptor in descriptors:
        command = normalize_command(descriptor)
        if command is None:
            LOG.warning("Skipping invalid command: %r", descriptor)
            skipped.append(descriptor)
            continue
        commands.append(command)
    return commands, skipped


def _optional_str(data: Dict, key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item if isinstance(item, str) else json.dumps(item) for item in value]


def plan_from_dict(data: Dict) -> Plan:
    commands, skipped = normalize_commands(data.get("commands"))
    return Plan(
        commands=commands,
        explanation=_optional_str(data, "explanation"),
        base_branch=_optional_str(data, "baseBranch"),
        branch_name=_optional_str(data, "branchName"),
        approach=_optional_str(data, "approach"),
        is_risky=_flag(data.get("isRisky")),
        risk_explanation=_optional_str(data, "riskExplanation"),
        worktree_path=_optional_str(data, "worktreePath"),
        risks=_str_list(data.get("risks")),
        safety_notes=_str_list(data.get("safetyNotes")),
        skipped=skipped,
    )


def parse_plan(raw_text: str) -> Union[Plan, ParseFailure]:
    """
    Read an advisory response as a Plan.

    Never raises on malformed input. A JSON object without commands is a
    valid, empty Plan; only undecodable text (or a JSON value that is not
    an object) is a ParseFailure.
    """

    candidate = strip_code_fence(raw_text or "")
    try:
        data = json.loads(candidate)
    except (json.JSONDecodeError, TypeError) as e:
        LOG.info("Advisor response is not JSON: %s", e)
        return ParseFailure(raw_text=raw_text, reason=str(e))

    if not isinstance(data, dict):
        return ParseFailure(raw_text=raw_text, reason=f"expected a JSON object, got {type(data).__name__}")

    return plan_from_dict(data)
