"""Shared constants for worktree-manager."""

from typing import Dict, List, Tuple

from worktree_manager.models.worktree import PackageManagerInfo


# Terminal applications accepted by --terminal and the launcher script
TERMINAL_APPS: Tuple[str, ...] = ("Hyper", "iTerm2", "Warp", "Terminal")

# The platform-native terminal, always considered installed
NATIVE_TERMINAL = "Terminal"

# Application names used when probing with `open -Ra`
TERMINAL_APP_NAMES: Dict[str, str] = {
    "Hyper": "Hyper",
    "iTerm2": "iTerm",
    "Warp": "Warp",
}


# Lockfile precedence, most specific first. npm doubles as the fallback
# when only a manifest exists.
PACKAGE_MANAGERS: List[PackageManagerInfo] = [
    PackageManagerInfo("pnpm", "pnpm-lock.yaml", "pnpm install"),
    PackageManagerInfo("bun", "bun.lockb", "bun install"),
    PackageManagerInfo("yarn", "yarn.lock", "yarn install"),
    PackageManagerInfo("npm", "package-lock.json", "npm install"),
]

PACKAGE_MANIFEST = "package.json"

PACKAGE_MANAGER_CHOICES: Tuple[str, ...] = ("auto",) + tuple(pm.name for pm in PACKAGE_MANAGERS)


# Env file discovery
ENV_FILE_PATTERN = ".env*"
ENV_SEARCH_EXCLUDED_DIRS = frozenset({".git", ".hg", ".svn", "node_modules", ".venv", "venv"})


# Branch naming
BRANCH_SLUG_MAX_LENGTH = 50
ASSISTANT_BODY_MAX_LENGTH = 500
FALLBACK_DEFAULT_BRANCH = "main"


# Regex for .../<owner>/<repo>/issues/<number>
ISSUE_URL_PATTERN = r"github\.com/([^/\s]+)/([^/\s]+)/issues/(\d+)(?=$|[/?#])"

ISSUE_VIEW_FIELDS = "number,title,body,state,url,labels,assignees"


# Per-user state directory
APP_DIR_NAME = ".worktree-manager"
HISTORY_FILE_NAME = "worktrees.json"
LOG_FILE_NAME = "worktree-manager.log"
CONFIG_DIR_ENV = "WORKTREE_MANAGER_CONFIG_DIR"


# Worktree status display (rich markup)
STATUS_LOCKED = "[yellow]LOCKED[/yellow]"
STATUS_PRUNABLE = "[red]PRUNABLE[/red]"
STATUS_ACTIVE = "[green]ACTIVE[/green]"
