"""
Per-repository configuration stored in .hermes/config.json.

The file is written by `hermes init` and edited by hand afterwards; the
rest of hermes only reads it. Keys are camelCase on disk so the file stays
compatible with other hermes installations.
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .errors import ConfigError

LOG = logging.getLogger(__name__)

HERMES_DIR = ".hermes"
CONFIG_FILE = os.path.join(HERMES_DIR, "config.json")
CONFIG_VERSION = "0.1.0"
DEFAULT_PROTECTED_BRANCHES = ["main", "master", "production", "staging"]
DEFAULT_MODEL = "claude-sonnet-4.5"


@dataclass
class ProjectConfig:
    name: str
    main_branch: str = "main"
    develop_branch: Optional[str] = None
    protected_branches: List[str] = field(default_factory=lambda: list(DEFAULT_PROTECTED_BRANCHES))


@dataclass
class BranchConfig:
    feature_pattern: str = "feature/{description}"
    bugfix_pattern: str = "bugfix/{description}"
    hotfix_pattern: str = "hotfix/{description}"


@dataclass
class IntegrationConfig:
    tickets: str = "none"
    ci: str = "none"


@dataclass
class PreferenceConfig:
    auto_backup: bool = True
    learning_mode: bool = False
    default_editor: str = field(default_factory=lambda: os.environ.get("EDITOR", "vim"))


@dataclass
class AdvisorConfig:
    """
    Which advisory backend to use.

    backend is "copilot" (the Copilot CLI, default) or "llm" (any provider
    supported by aisuite, configured through provider/provider_configs).
    """

    backend: str = "copilot"
    model: str = DEFAULT_MODEL
    provider: Optional[str] = None
    provider_configs: Dict = field(default_factory=dict)


@dataclass
class HermesConfig:
    project: ProjectConfig
    branches: BranchConfig = field(default_factory=BranchConfig)
    workflows: Dict[str, List[str]] = field(default_factory=dict)
    integrations: IntegrationConfig = field(default_factory=IntegrationConfig)
    preferences: PreferenceConfig = field(default_factory=PreferenceConfig)
    advisor: AdvisorConfig = field(default_factory=AdvisorConfig)
    version: str = CONFIG_VERSION

    def to_dict(self) -> Dict:
        project = {
            "name": self.project.name,
            "mainBranch": self.project.main_branch,
            "protectedBranches": self.project.protected_branches,
        }
        if self.project.develop_branch:
            project["developBranch"] = self.project.develop_branch

        advisor = {"backend": self.advisor.backend, "model": self.advisor.model}
        if self.advisor.provider:
            advisor["provider"] = self.advisor.provider
            advisor["providerConfigs"] = self.advisor.provider_configs

        return {
            "version": self.version,
            "project": project,
            "branches": {
                "featurePattern": self.branches.feature_pattern,
                "bugfixPattern": self.branches.bugfix_pattern,
                "hotfixPattern": self.branches.hotfix_pattern,
            },
            "workflows": self.workflows,
            "integrations": {
                "tickets": self.integrations.tickets,
                "ci": self.integrations.ci,
            },
            "preferences": {
                "autoBackup": self.preferences.auto_backup,
                "learningMode": self.preferences.learning_mode,
                "defaultEditor": self.preferences.default_editor,
            },
            "advisor": advisor,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "HermesConfig":
        project = data.get("project") or {}
        branches = data.get("branches") or {}
        integrations = data.get("integrations") or {}
        preferences = data.get("preferences") or {}
        advisor = data.get("advisor") or {}

        defaults = BranchConfig()
        return cls(
            version=data.get("version", CONFIG_VERSION),
            project=ProjectConfig(
                name=project.get("name", os.path.basename(os.getcwd())),
                main_branch=project.get("mainBranch", "main"),
                develop_branch=project.get("developBranch") or None,
                protected_branches=list(project.get("protectedBranches", DEFAULT_PROTECTED_BRANCHES)),
            ),
            branches=BranchConfig(
                feature_pattern=branches.get("featurePattern", defaults.feature_pattern),
                bugfix_pattern=branches.get("bugfixPattern", defaults.bugfix_pattern),
                hotfix_pattern=branches.get("hotfixPattern", defaults.hotfix_pattern),
            ),
            workflows=dict(data.get("workflows") or {}),
            integrations=IntegrationConfig(
                tickets=integrations.get("tickets", "none"),
                ci=integrations.get("ci", "none"),
            ),
            preferences=PreferenceConfig(
                auto_backup=bool(preferences.get("autoBackup", True)),
                learning_mode=bool(preferences.get("learningMode", False)),
                default_editor=preferences.get("defaultEditor", os.environ.get("EDITOR", "vim")),
            ),
            advisor=AdvisorConfig(
                backend=advisor.get("backend", "copilot"),
                model=advisor.get("model", DEFAULT_MODEL),
                provider=advisor.get("provider"),
                provider_configs=dict(advisor.get("providerConfigs") or {}),
            ),
        )


def config_path(root: str = ".") -> str:
    return os.path.join(root, CONFIG_FILE)


def is_initialized(root: str = ".") -> bool:
    return os.path.exists(config_path(root))


def load_config(root: str = ".") -> Optional[HermesConfig]:
    """Load .hermes/config.json, or None when it is missing or unreadable."""
    path = config_path(root)
    if not os.path.exists(path):
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            return HermesConfig.from_dict(json.load(f))
    except (OSError, ValueError, AttributeError, TypeError) as e:
        LOG.warning("Could not load %s: %s", path, e)
        return None


def save_config(config: HermesConfig, root: str = ".") -> str:
    path = config_path(root)
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config.to_dict(), f, indent=2)
            f.write("\n")
    except OSError as e:
        raise ConfigError(f"Could not write {path}: {e}") from e
    return path


def default_config(current_branch: str = "main", project_name: Optional[str] = None) -> HermesConfig:
    return HermesConfig(
        project=ProjectConfig(
            name=project_name or os.path.basename(os.getcwd()),
            main_branch="master" if current_branch == "master" else "main",
        ),
        workflows={
            "feature": ["start", "sync", "test", "pr"],
            "hotfix": ["start", "sync", "test", "fast-track"],
        },
    )


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def generate_branch_name(pattern: str, description: str, ticket: Optional[str] = None) -> str:
    """
    Fill a branch pattern such as "feature/{ticket}/{description}".

    Empty placeholders are removed together with the doubled slash they leave.
    """
    name = pattern.replace("{description}", slugify(description))
    name = name.replace("{ticket}", ticket or "")
    name = re.sub(r"/{2,}", "/", name)
    return name.rstrip("/")


def is_protected_branch(branch: str, config: Optional[HermesConfig]) -> bool:
    if config is None:
        return branch in DEFAULT_PROTECTED_BRANCHES
    return branch in config.project.protected_branches
