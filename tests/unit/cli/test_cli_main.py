"""Unit tests for main CLI entry point (main.py).

Tests the Typer CLI application using CliRunner.
"""

import logging

from unittest.mock import MagicMock, patch
from typer.testing import CliRunner

from notion_mirror import __version__
from notion_mirror.cli.main import _configure_logging, app
from notion_mirror.cli.models import ExitCode


runner = CliRunner()


class TestConfigureLogging:
    """Test cases for _configure_logging function."""

    def test_verbosity_0_sets_warning_level(self):
        with patch('logging.getLogger') as mock_get_logger:
            mock_logger = MagicMock()
            mock_get_logger.return_value = mock_logger

            _configure_logging(0)

            mock_get_logger.assert_called_with("notion_mirror")
            mock_logger.setLevel.assert_called_with(logging.WARNING)

    def test_verbosity_1_sets_info_level(self):
        with patch('logging.getLogger') as mock_get_logger:
            mock_logger = MagicMock()
            mock_get_logger.return_value = mock_logger

            _configure_logging(1)

            mock_logger.setLevel.assert_called_with(logging.INFO)

    def test_verbosity_2_sets_debug_level(self):
        with patch('logging.getLogger') as mock_get_logger:
            mock_logger = MagicMock()
            mock_get_logger.return_value = mock_logger

            _configure_logging(2)

            mock_logger.setLevel.assert_called_with(logging.DEBUG)

    def test_logdir_creates_timestamped_file(self, tmp_path):
        logdir = tmp_path / "logs"

        _configure_logging(1, str(logdir))

        files = list(logdir.glob("notion-mirror_*.log"))
        assert len(files) == 1

    def test_repeated_calls_do_not_stack_handlers(self):
        _configure_logging(0)
        _configure_logging(0)

        assert len(logging.getLogger("notion_mirror").handlers) == 1


class TestMainCommand:
    """Test cases for the notion-mirror command."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"notion-mirror version {__version__}" in result.stdout

    @patch('notion_mirror.cli.main.BackupCommand')
    def test_default_run_passes_no_overrides(self, mock_command_cls):
        mock_command_cls.return_value.run.return_value = ExitCode.SUCCESS

        result = runner.invoke(app, [])

        assert result.exit_code == 0
        assert mock_command_cls.call_args.kwargs["config_path"] is None
        mock_command_cls.return_value.run.assert_called_once_with(
            storage_root=None,
            workspaces=None,
            concurrency=None,
            tree_concurrency=None,
            cleanup=None,
            dry_run=False,
            prune=False,
        )

    @patch('notion_mirror.cli.main.BackupCommand')
    def test_options_are_forwarded(self, mock_command_cls):
        mock_command_cls.return_value.run.return_value = ExitCode.SUCCESS

        result = runner.invoke(app, [
            "--config", "mirror.yaml",
            "--storage", "backups",
            "--workspace", "pps",
            "--workspace", "team",
            "--concurrency", "8",
            "--tree-concurrency", "2",
            "--no-cleanup",
            "--dry-run",
            "--prune-workspaces",
        ])

        assert result.exit_code == 0
        assert mock_command_cls.call_args.kwargs["config_path"] == "mirror.yaml"
        mock_command_cls.return_value.run.assert_called_once_with(
            storage_root="backups",
            workspaces=["pps", "team"],
            concurrency=8,
            tree_concurrency=2,
            cleanup=False,
            dry_run=True,
            prune=True,
        )

    @patch('notion_mirror.cli.main.BackupCommand')
    def test_exit_code_from_command(self, mock_command_cls):
        mock_command_cls.return_value.run.return_value = ExitCode.AUTH_ERROR

        result = runner.invoke(app, [])

        assert result.exit_code == 3

    def test_concurrency_must_be_positive(self):
        result = runner.invoke(app, ["--concurrency", "0"])
        assert result.exit_code == 2

    def test_no_token_exits_with_auth_error(self, tmp_path):
        result = runner.invoke(app, ["--storage", str(tmp_path / "storage")])
        assert result.exit_code == ExitCode.AUTH_ERROR
