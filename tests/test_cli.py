"""Tests for argument parsing and the CLI entry point"""
from unittest.mock import patch

import pytest

from worktree_manager.cli import main, parse_args
from worktree_manager.models.worktree import CleanupResult, WorktreeResult

ISSUE_URL = "https://github.com/acme/widgets/issues/7"


class TestParseArgs:
    """Test command-line parsing."""

    def test_create_with_options(self):
        args = parse_args(["create", ISSUE_URL, "-b", "custom", "-o", "/tmp/trees", "-p", "ai",
                           "-t", "iTerm2", "--no-deps", "--no-terminal"])
        assert args.command == "create"
        assert args.url == ISSUE_URL
        assert args.branch == "custom"
        assert args.output == "/tmp/trees"
        assert args.profile == "ai"
        assert args.terminal == "iTerm2"
        assert args.no_deps and args.no_terminal
        assert not args.debug and not args.quiet

    def test_bare_url_means_create(self):
        args = parse_args([ISSUE_URL, "--no-terminal"])
        assert args.command == "create"
        assert args.url == ISSUE_URL
        assert args.no_terminal

    def test_debug_before_or_after_command(self):
        assert parse_args(["--debug", "list"]).debug
        assert parse_args(["list", "--debug"]).debug
        assert parse_args(["--debug", ISSUE_URL]).debug

    def test_list(self):
        args = parse_args(["list"])
        assert args.command == "list"

    def test_clean_force(self):
        args = parse_args(["clean", "--force"])
        assert args.command == "clean"
        assert args.force
        assert args.profile is None

    def test_no_command_prints_help(self, capsys):
        assert parse_args([]) is None
        assert "usage: worktree" in capsys.readouterr().out

    def test_create_requires_url(self):
        with pytest.raises(SystemExit):
            parse_args(["create"])

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["--version"])
        assert exc_info.value.code == 0
        assert "worktree-manager" in capsys.readouterr().out


class TestMain:
    """Test the entry point end to end with the manager mocked where git is not needed."""

    @pytest.fixture(autouse=True)
    def packaged_config(self, config_dir, monkeypatch):
        monkeypatch.setenv("WORKTREE_MANAGER_CONFIG_DIR", str(config_dir))

    def test_no_command(self):
        assert main([]) == 0

    def test_invalid_url(self, capsys):
        assert main(["create", "https://github.com/acme/widgets/pull/7"]) == 1
        assert "Invalid GitHub issue URL" in capsys.readouterr().out

    def test_list_outside_repository(self, temp_dir, monkeypatch, capsys):
        monkeypatch.chdir(temp_dir)
        assert main(["list"]) == 1
        assert "Not a git repository" in capsys.readouterr().out

    def test_list_in_repository(self, git_repo, monkeypatch, capsys):
        monkeypatch.chdir(git_repo.working_dir)
        assert main(["list"]) == 0
        assert "main" in capsys.readouterr().out

    def test_create_passes_overrides(self, temp_dir, monkeypatch, capsys):
        monkeypatch.chdir(temp_dir)
        with patch("worktree_manager.cli.main.WorktreeManager") as mock_manager:
            mock_manager.return_value.create_worktree.return_value = WorktreeResult(
                success=True,
                worktree_path="/trees/widgets-worktree/custom",
                branch_name="custom",
                metadata={"issueUrl": ISSUE_URL, "repository": "widgets"},
            )
            code = main([ISSUE_URL, "-b", "custom", "-o", "/trees", "--no-deps", "--no-terminal"])

        assert code == 0
        url, config = mock_manager.return_value.create_worktree.call_args.args
        assert url == ISSUE_URL
        assert mock_manager.return_value.create_worktree.call_args.kwargs["branch_name"] == "custom"
        assert config.worktree_base_path == "/trees"
        assert config.auto_install_deps is False
        assert config.open_terminal is False
        assert "Worktree created successfully" in capsys.readouterr().out

    def test_create_failure_exit_code(self, temp_dir, monkeypatch, capsys):
        monkeypatch.chdir(temp_dir)
        with patch("worktree_manager.cli.main.WorktreeManager") as mock_manager:
            mock_manager.return_value.create_worktree.return_value = WorktreeResult.failure("boom")
            assert main([ISSUE_URL]) == 1
        assert "Error: boom" in capsys.readouterr().out

    def test_clean_reports_errors(self, temp_dir, monkeypatch):
        monkeypatch.chdir(temp_dir)
        with patch("worktree_manager.cli.main.WorktreeManager") as mock_manager:
            mock_manager.return_value.cleanup_worktrees.return_value = CleanupResult(errors=["x: failed"])
            assert main(["clean", "-f"]) == 1
            assert mock_manager.return_value.cleanup_worktrees.call_args.kwargs["force"] is True

    def test_missing_config_is_reported(self, temp_dir, monkeypatch, capsys):
        monkeypatch.chdir(temp_dir)
        monkeypatch.setenv("WORKTREE_MANAGER_CONFIG_DIR", str(temp_dir / "missing"))
        assert main([ISSUE_URL]) == 1
        assert "Default config not found" in capsys.readouterr().out

    def test_keyboard_interrupt(self, temp_dir, monkeypatch, capsys):
        monkeypatch.chdir(temp_dir)
        with patch("worktree_manager.cli.main.WorktreeManager") as mock_manager:
            mock_manager.return_value.create_worktree.side_effect = KeyboardInterrupt
            assert main([ISSUE_URL]) == 1
        assert "cancelled" in capsys.readouterr().out
