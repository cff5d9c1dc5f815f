"""Tests for configuration loading and merging"""
import json
import logging
from pathlib import Path

import pytest

from worktree_manager.config import PACKAGED_CONFIG_DIR, Config, ConfigManager, deep_merge
from worktree_manager.exceptions import ConfigError


class TestConfigDefaults:
    """Test the Config dataclass."""

    def test_every_field_has_a_default(self):
        config = Config()
        assert config.worktree_base_path == "~/Developer/worktrees"
        assert config.default_branch == "main"
        assert config.package_manager == "auto"
        assert config.terminal_app == "Terminal"
        assert config.integrations.github.auto_fetch_issue is True
        assert config.integrations.claude.auto_generate_branch_name is False
        assert config.cleanup.keep_recent == 5
        assert config.hooks.pre_create is None

    def test_from_dict_fills_missing_nested_fields(self):
        config = Config.from_dict({"integrations": {"claude": {"autoStartPlanMode": True}}})
        assert config.integrations.claude.auto_start_plan_mode is True
        assert config.integrations.claude.enabled is True
        assert config.integrations.github.enabled is True

    def test_from_dict_ignores_unknown_keys(self):
        config = Config.from_dict({"somethingElse": 1, "copyEnvFiles": False})
        assert config.copy_env_files is False

    def test_invalid_terminal_in_file_is_rejected(self):
        with pytest.raises(ConfigError):
            Config.from_dict({"terminalApp": "Konsole"})

    def test_invalid_package_manager_is_rejected(self):
        with pytest.raises(ConfigError):
            Config.from_dict({"packageManager": "pip"})

    def test_negative_max_age_is_rejected(self):
        with pytest.raises(ConfigError):
            Config.from_dict({"cleanup": {"maxAge": -1}})

    def test_base_path_expands_home(self):
        config = Config(worktree_base_path="~/trees")
        assert config.base_path == Path.home() / "trees"

    def test_to_dict_uses_file_keys(self):
        data = Config().to_dict()
        assert data["worktreeBasePath"] == "~/Developer/worktrees"
        assert data["integrations"]["claude"]["autoGenerateBranchName"] is False
        assert data["cleanup"]["keepRecent"] == 5


class TestDeepMerge:
    def test_nested_values_are_merged(self):
        base = {"a": 1, "nested": {"x": 1, "y": 2}}
        merged = deep_merge(base, {"nested": {"y": 3}})
        assert merged == {"a": 1, "nested": {"x": 1, "y": 3}}
        assert base["nested"]["y"] == 2


class TestConfigManager:
    """Test loading, profiles and CLI overrides."""

    def test_missing_default_config_is_fatal(self, temp_dir):
        manager = ConfigManager(temp_dir / "nowhere")
        with pytest.raises(ConfigError):
            manager.build_config()

    def test_unparsable_default_config_is_fatal(self, config_dir):
        (config_dir / "default.json").write_text("{not json")
        with pytest.raises(ConfigError):
            ConfigManager(config_dir).build_config()

    def test_defaults_only(self, config_dir):
        config = ConfigManager(config_dir).build_config()
        assert config.auto_install_deps is True
        assert config.open_terminal is True

    def test_profile_overlays_base(self, config_dir):
        profile = {"terminalApp": "iTerm2", "integrations": {"claude": {"autoGenerateBranchName": True}}}
        (config_dir / "profiles" / "ai.json").write_text(json.dumps(profile))

        config = ConfigManager(config_dir).build_config(profile="ai")

        assert config.terminal_app == "iTerm2"
        assert config.integrations.claude.auto_generate_branch_name is True
        # Siblings of the overridden key survive
        assert config.integrations.claude.enabled is True
        assert config.integrations.github.auto_fetch_issue is True

    def test_missing_profile_warns_and_continues(self, config_dir, caplog):
        with caplog.at_level(logging.WARNING):
            config = ConfigManager(config_dir).build_config(profile="does-not-exist")
        assert config.terminal_app == "Terminal"
        assert "Profile not found: does-not-exist" in caplog.text

    def test_cli_flags_override_profile(self, config_dir):
        (config_dir / "profiles" / "p.json").write_text(json.dumps({"worktreeBasePath": "/from/profile"}))

        config = ConfigManager(config_dir).build_config(
            profile="p", output="/from/cli", no_deps=True, no_terminal=True, terminal="Warp", debug=True
        )

        assert config.worktree_base_path == "/from/cli"
        assert config.auto_install_deps is False
        assert config.open_terminal is False
        assert config.terminal_app == "Warp"
        assert config.debug is True

    def test_unset_flags_keep_previous_values(self, config_dir):
        (config_dir / "profiles" / "p.json").write_text(json.dumps({"autoInstallDeps": False}))
        config = ConfigManager(config_dir).build_config(profile="p", no_deps=False)
        assert config.auto_install_deps is False

    def test_invalid_terminal_flag_is_ignored_with_warning(self, config_dir, caplog):
        with caplog.at_level(logging.WARNING):
            config = ConfigManager(config_dir).build_config(terminal="Konsole")
        assert config.terminal_app == "Terminal"
        assert "Invalid terminal: Konsole" in caplog.text

    def test_config_dir_from_environment(self, config_dir, monkeypatch):
        monkeypatch.setenv("WORKTREE_MANAGER_CONFIG_DIR", str(config_dir))
        assert ConfigManager().config_dir == config_dir

    def test_packaged_defaults_load(self, monkeypatch):
        monkeypatch.delenv("WORKTREE_MANAGER_CONFIG_DIR", raising=False)
        manager = ConfigManager()
        assert manager.config_dir == PACKAGED_CONFIG_DIR
        config = manager.build_config(profile="fast")
        assert config.auto_install_deps is False
        assert config.open_terminal is False
