"""
Exception types used across hermes.

Environment errors (git missing, not a repository, advisory service not
installed or not authorized) carry a remediation hint so the CLI can tell
the user what to do next. Parse ambiguity and ledger failures are not
errors and never show up here.
"""

from typing import Optional, Type


class HermesError(Exception):
    """Base class for all hermes specific errors."""

    remediation: Optional[str] = None

    def __init__(self, message: str, remediation: Optional[str] = None):
        super().__init__(message)
        if remediation is not None:
            self.remediation = remediation


class ConfigError(HermesError):
    """Raised when .hermes/config.json cannot be written."""


class GitError(HermesError):
    """Raised when git operations fail."""


class NotARepositoryError(GitError):
    remediation = "Run hermes inside a git repository and make sure git is on your PATH."

    def __init__(self, message: str = "Not a Git repository or Git is not installed"):
        super().__init__(message)


class CommandFailedError(GitError):
    """A single command of a plan exited with a non-zero status."""

    def __init__(self, command: str, returncode: int, output: str):
        detail = output.strip() or f"exit code {returncode}"
        super().__init__(f"Git command failed: {command}\n{detail}")
        self.command = command
        self.returncode = returncode
        self.output = output


class AdvisorError(HermesError):
    """Generic advisory service failure, used when nothing more specific matches."""


class AdvisorNotInstalledError(AdvisorError):
    remediation = (
        "Install the GitHub Copilot CLI from https://github.com/github/copilot-cli\n"
        "Then authenticate with: copilot login"
    )


class AdvisorAuthError(AdvisorError):
    remediation = "Authenticate the Copilot CLI with: copilot login"


class AdvisorSubscriptionError(AdvisorError):
    remediation = (
        "Your account does not have access to GitHub Copilot. Check your "
        "subscription at https://github.com/settings/copilot"
    )


_AUTH_MARKERS = (
    "not authenticated",
    "not logged in",
    "authentication",
    "unauthorized",
    "401",
    "copilot login",
)

_SUBSCRIPTION_MARKERS = (
    "subscription",
    "not entitled",
    "entitlement",
    "access denied",
    "403",
    "no access to copilot",
)


def classify_advisor_error(text: str) -> Type[AdvisorError]:
    """
    Map the error text of a failed advisory call to an error class.

    Matching is done on lowercase substrings of human-readable output, so
    anything unrecognized falls back to the generic AdvisorError.
    """

    lowered = (text or "").lower()
    if any(marker in lowered for marker in _SUBSCRIPTION_MARKERS):
        return AdvisorSubscriptionError
    if any(marker in lowered for marker in _AUTH_MARKERS):
        return AdvisorAuthError
    if "command not found" in lowered or "enoent" in lowered:
        return AdvisorNotInstalledError
    return AdvisorError
