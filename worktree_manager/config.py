"""Configuration handling for worktree-manager"""

import json
import os
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from worktree_manager.constants import CONFIG_DIR_ENV, PACKAGE_MANAGER_CHOICES, TERMINAL_APPS
from worktree_manager.exceptions import ConfigError
from worktree_manager.logging_config import get_logger

logger = get_logger(__name__)

# Configuration shipped with the package
PACKAGED_CONFIG_DIR = Path(__file__).resolve().parent / "config"


def _camel_to_snake(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name)


def _snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _build(cls, data: Optional[Dict[str, Any]]):
    """Build a (possibly nested) config dataclass from a camelCase dict.

    Unknown keys are ignored and missing keys keep the dataclass defaults.
    """
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigError(f"Expected an object for {cls.__name__}, got {type(data).__name__}")

    by_name = {f.name: f for f in fields(cls)}
    kwargs = {}
    for key, value in data.items():
        name = _camel_to_snake(key)
        if name not in by_name:
            logger.debug(f"Ignoring unknown config key '{key}'")
            continue
        field_type = by_name[name].type
        if isinstance(field_type, type) and is_dataclass(field_type):
            kwargs[name] = _build(field_type, value)
        else:
            kwargs[name] = value
    return cls(**kwargs)


def _dump(obj) -> Dict[str, Any]:
    result = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        result[_snake_to_camel(f.name)] = _dump(value) if is_dataclass(value) else value
    return result


def deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Merge overlay into a copy of base, recursing into nested objects."""
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@dataclass
class GitHubIntegration:
    enabled: bool = True
    auto_fetch_issue: bool = True


@dataclass
class ClaudeIntegration:
    enabled: bool = True
    auto_generate_branch_name: bool = False
    auto_start_plan_mode: bool = False


@dataclass
class Integrations:
    github: GitHubIntegration = field(default_factory=GitHubIntegration)
    claude: ClaudeIntegration = field(default_factory=ClaudeIntegration)


@dataclass
class CleanupPolicy:
    """Which worktrees `clean` removes beyond prunable ones."""

    auto_clean_merged: bool = False
    max_age: int = 30  # days, 0 disables the age rule
    keep_recent: int = 5

    def __post_init__(self):
        if not isinstance(self.max_age, int) or self.max_age < 0:
            raise ConfigError(f"cleanup.maxAge must be a non-negative integer, got {self.max_age!r}")
        if not isinstance(self.keep_recent, int) or self.keep_recent < 0:
            raise ConfigError(
                f"cleanup.keepRecent must be a non-negative integer, got {self.keep_recent!r}"
            )


@dataclass
class Hooks:
    """Shell commands run around create and clean. None disables a hook."""

    pre_create: Optional[str] = None
    post_create: Optional[str] = None
    pre_cleanup: Optional[str] = None
    post_cleanup: Optional[str] = None


@dataclass
class Config:
    """Effective configuration for one invocation."""

    worktree_base_path: str = "~/Developer/worktrees"
    default_branch: str = "main"
    auto_install_deps: bool = True
    package_manager: str = "auto"
    copy_env_files: bool = True
    open_terminal: bool = True
    terminal_app: str = "Terminal"
    integrations: Integrations = field(default_factory=Integrations)
    cleanup: CleanupPolicy = field(default_factory=CleanupPolicy)
    hooks: Hooks = field(default_factory=Hooks)
    debug: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_default_branch()
        self._validate_package_manager()
        self._validate_terminal_app()

    def _validate_default_branch(self):
        if not self.default_branch or not str(self.default_branch).strip():
            raise ConfigError("defaultBranch cannot be empty")
        self.default_branch = str(self.default_branch).strip()

    def _validate_package_manager(self):
        if self.package_manager not in PACKAGE_MANAGER_CHOICES:
            raise ConfigError(
                f"packageManager must be one of {list(PACKAGE_MANAGER_CHOICES)}, "
                f"got '{self.package_manager}'"
            )

    def _validate_terminal_app(self):
        if self.terminal_app not in TERMINAL_APPS:
            raise ConfigError(
                f"terminalApp must be one of {list(TERMINAL_APPS)}, got '{self.terminal_app}'"
            )

    @property
    def base_path(self) -> Path:
        """Worktree base directory with ~ expanded."""
        return expand_path(self.worktree_base_path)

    def to_dict(self) -> dict:
        """Convert config to its camelCase file representation."""
        return _dump(self)

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from a camelCase dictionary, ignoring unknown keys."""
        return _build(cls, config_dict)


def expand_path(path: Union[str, Path]) -> Path:
    """Expand a leading ~ to the user's home directory."""
    return Path(os.path.expanduser(str(path)))


class ConfigManager:
    """Loads the base configuration, an optional profile and CLI overrides."""

    def __init__(self, config_dir: Optional[Union[str, Path]] = None, logger=None):
        if config_dir is None:
            config_dir = os.environ.get(CONFIG_DIR_ENV) or PACKAGED_CONFIG_DIR
        self.config_dir = Path(config_dir)
        self.logger = logger or get_logger(__name__)
        self._default_config: Optional[Dict[str, Any]] = None

    @property
    def default_config_path(self) -> Path:
        return self.config_dir / "default.json"

    def profile_path(self, profile_name: str) -> Path:
        return self.config_dir / "profiles" / f"{profile_name}.json"

    def _read_json(self, path: Path) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in config file: {e}", str(path))
        except OSError as e:
            raise ConfigError(f"Could not read config file: {e}", str(path))
        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a JSON object", str(path))
        return data

    def load_default_config(self) -> Dict[str, Any]:
        """Load the mandatory base configuration file.

        Raises:
            ConfigError: If the file is missing or unparsable
        """
        if self._default_config is not None:
            return self._default_config

        path = self.default_config_path
        if not path.exists():
            raise ConfigError("Default config not found", str(path))

        self._default_config = self._read_json(path)
        self.logger.debug(f"Loaded default configuration from {path}")
        return self._default_config

    def load_profile_config(self, profile_name: str) -> Optional[Dict[str, Any]]:
        """Load a named profile overlay, or None with a warning if it does not exist."""
        path = self.profile_path(profile_name)
        if not path.exists():
            self.logger.warning(f"Profile not found: {profile_name} (continuing with defaults)")
            return None

        profile = self._read_json(path)
        self.logger.debug(f"Loaded profile '{profile_name}' from {path}")
        return profile

    def build_config(
        self,
        profile: Optional[str] = None,
        output: Optional[str] = None,
        no_deps: bool = False,
        no_terminal: bool = False,
        terminal: Optional[str] = None,
        debug: bool = False,
    ) -> Config:
        """Resolve the effective configuration.

        Precedence, lowest first: base file, profile, then each CLI flag that
        was explicitly supplied.
        """
        data = self.load_default_config()

        if profile:
            profile_data = self.load_profile_config(profile)
            if profile_data:
                data = deep_merge(data, profile_data)

        config = Config.from_dict(data)

        if output:
            config.worktree_base_path = output

        if no_deps:
            config.auto_install_deps = False

        if no_terminal:
            config.open_terminal = False

        if terminal:
            if terminal in TERMINAL_APPS:
                config.terminal_app = terminal
            else:
                self.logger.warning(
                    f"Invalid terminal: {terminal}. Using {config.terminal_app} "
                    f"(supported: {', '.join(TERMINAL_APPS)})"
                )

        if debug:
            config.debug = True

        return config
