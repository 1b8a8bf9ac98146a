import os
from typing import Dict

from .. import display
from ..config import (
    BranchConfig,
    HERMES_DIR,
    HermesConfig,
    IntegrationConfig,
    PreferenceConfig,
    ProjectConfig,
    default_config,
    is_initialized,
    save_config,
)
from ..git.state import RepoState, probe
from .base import get_user_confirmation

GITIGNORE_ENTRIES = ".hermes/backups/\n.hermes/stats.json\n"
TICKET_SYSTEMS = ["none", "linear", "jira", "github", "gitlab"]


def _ask(question: str, default: str = "") -> str:
    suffix = f" [{default}]" if default else ""
    answer = input(f"{question}{suffix}: ").strip()
    return answer or default


def _ask_choice(question: str, choices, default: str) -> str:
    answer = _ask(f"{question} ({'/'.join(choices)})", default).lower()
    return answer if answer in choices else default


def _ask_yes_no(question: str, default: bool) -> bool:
    answer = _ask(f"{question} (y/n)", "y" if default else "n").lower()
    return answer.startswith("y")


def interactive_config(state: RepoState, root: str = ".") -> HermesConfig:
    display.console.print("📝 Let's set up Hermes for your project.\n")

    default_main = "master" if state.current_branch == "master" else "main"
    project_name = _ask("Project name", os.path.basename(os.path.abspath(root)))
    main_branch = _ask("Main branch name", default_main)
    develop_branch = _ask("Development branch (optional)")
    feature_pattern = _ask("Feature branch pattern", "feature/{description}")
    tickets = _ask_choice("Issue tracking system", TICKET_SYSTEMS, "none")
    auto_backup = _ask_yes_no("Enable auto-backup before risky operations?", True)
    learning_mode = _ask_yes_no("Enable learning mode (show explanations)?", False)

    protected = [b for b in [main_branch, develop_branch, "production", "staging"] if b]
    config = default_config(state.current_branch, project_name)
    config.project = ProjectConfig(
        name=project_name,
        main_branch=main_branch,
        develop_branch=develop_branch or None,
        protected_branches=protected,
    )
    config.branches = BranchConfig(
        feature_pattern=feature_pattern,
        bugfix_pattern=feature_pattern.replace("feature", "bugfix"),
        hotfix_pattern=feature_pattern.replace("feature", "hotfix"),
    )
    config.integrations = IntegrationConfig(tickets=tickets)
    config.preferences = PreferenceConfig(auto_backup=auto_backup, learning_mode=learning_mode)
    return config


def append_to_gitignore(root: str = ".") -> bool:
    """Add the hermes entries to .gitignore unless they are already there."""
    path = os.path.join(root, ".gitignore")
    try:
        if os.path.exists(path):
            with open(path, "r", encoding="utf-8") as f:
                existing = f.read()
            if ".hermes/backups" in existing:
                return False
            with open(path, "a", encoding="utf-8") as f:
                f.write("\n# Hermes\n" + GITIGNORE_ENTRIES)
        else:
            with open(path, "w", encoding="utf-8") as f:
                f.write("# Hermes\n" + GITIGNORE_ENTRIES)
    except OSError:
        # The config is already saved; a missing .gitignore entry is cosmetic.
        return False
    return True


def _features(config: HermesConfig) -> Dict[str, bool]:
    return {
        "Auto-backup before risky operations": config.preferences.auto_backup,
        "Learning mode (explanations with commands)": config.preferences.learning_mode,
        f"{config.integrations.tickets} integration": config.integrations.tickets not in ("", "none"),
    }


async def init(quick: bool = False, root: str = "."):
    """Write .hermes/config.json for the repository at root."""
    display.console.print("🪽 Initializing Hermes for this repository...\n")

    if is_initialized(root):
        if not get_user_confirmation("Hermes is already initialized. Overwrite configuration?"):
            display.console.print("Cancelled.")
            return

    state = await probe(root)
    if quick:
        config = default_config(state.current_branch, os.path.basename(os.path.abspath(root)))
    else:
        config = interactive_config(state, root)

    save_config(config, root)
    os.makedirs(os.path.join(root, HERMES_DIR, "backups"), exist_ok=True)
    append_to_gitignore(root)

    display.display_success("Hermes initialized successfully!")
    display.console.print("\n📄 Configuration saved to .hermes/config.json")
    display.console.print("💡 Tip: Commit .hermes/config.json to share with your team\n")

    display.console.print("✨ Features enabled:")
    for feature, enabled in _features(config).items():
        if enabled:
            display.console.print(f"  • {feature}")
    display.console.print()
    display.console.print('🚀 Try: hermes start "your first feature"')
