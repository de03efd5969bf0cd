"""Unit tests for main CLI entry point (main.py).

Tests the Typer CLI application using CliRunner.
"""

import logging
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from src.cli.main import GETTING_STARTED_MESSAGE, __version__, _configure_logging, app
from src.cli.models import ExitCode
from src.vault.config_loader import ConfigLoader


runner = CliRunner()


class TestConfigureLogging:
    """Test cases for _configure_logging function."""

    @pytest.mark.parametrize("verbosity, level", [
        (0, logging.WARNING),
        (1, logging.INFO),
        (2, logging.DEBUG),
        (5, logging.DEBUG),
    ])
    def test_verbosity_levels(self, verbosity, level):
        """Verbosity maps to WARNING, INFO and DEBUG."""
        with patch('logging.getLogger') as mock_get_logger:
            mock_logger = MagicMock()
            mock_get_logger.return_value = mock_logger

            _configure_logging(verbosity)

            mock_get_logger.assert_any_call("src")
            mock_logger.setLevel.assert_called_with(level)

    def test_logdir_creates_log_file(self, tmp_path):
        """A log directory receives a timestamped log file."""
        logdir = tmp_path / "logs"
        app_logger = logging.getLogger("src")
        handlers_before = list(app_logger.handlers)
        try:
            _configure_logging(1, str(logdir))
            files = list(logdir.glob("foundry-sync_*.log"))
            assert len(files) == 1
        finally:
            for handler in app_logger.handlers[len(handlers_before):]:
                handler.close()
                app_logger.removeHandler(handler)


class TestMainOptions:
    """Test cases for option handling."""

    def test_version(self):
        """--version prints the version and exits 0."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_getting_started_without_config(self, tmp_path):
        """Without config and options the getting started text is shown."""
        result = runner.invoke(app, ["--config", str(tmp_path / "none.yaml")])
        assert result.exit_code == 0
        assert GETTING_STARTED_MESSAGE.splitlines()[0] in result.stdout

    def test_init_requires_vault(self):
        """--init without --vault is an error."""
        result = runner.invoke(app, ["--init"])
        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "--init and --vault must be used together" in result.output

    def test_vault_requires_init(self, tmp_path):
        """--vault without --init is an error."""
        result = runner.invoke(app, ["--vault", str(tmp_path)])
        assert result.exit_code == ExitCode.GENERAL_ERROR


class TestInitFlow:
    """Test cases for --init."""

    @patch('src.cli.main._configure_logging')
    def test_init_writes_config(self, mock_logging, vault_dir, tmp_path):
        """--init --vault writes the configuration file."""
        config_path = tmp_path / ".foundry-sync" / "config.yaml"

        result = runner.invoke(app, [
            "--init", "--vault", str(vault_dir),
            "--folder", "Exports", "--journal", "Table1",
            "--config", str(config_path), "--no-color",
        ])

        assert result.exit_code == 0
        assert "Configuration initialized successfully" in result.stdout
        settings = ConfigLoader.load(str(config_path))
        assert settings.default_folder == "Exports"
        assert settings.default_collection == "Table1"

    @patch('src.cli.main._configure_logging')
    def test_init_failure(self, mock_logging, tmp_path):
        """A missing vault directory fails with GENERAL_ERROR."""
        result = runner.invoke(app, [
            "--init", "--vault", str(tmp_path / "missing"),
            "--config", str(tmp_path / "config.yaml"), "--no-color",
        ])

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "Initialization failed" in result.stdout


class TestExportFlow:
    """Test cases for the default export command."""

    @patch('src.cli.main._configure_logging')
    @patch('src.cli.main.ExportCommand')
    def test_export_passes_options(self, mock_export_cmd, mock_logging, tmp_path):
        """Options are forwarded to ExportCommand.run and its exit code returned."""
        mock_export_cmd.return_value.run.return_value = ExitCode.PARTIAL_FAILURE
        config_path = tmp_path / "config.yaml"

        result = runner.invoke(app, [
            "A.md", "B.md",
            "--config", str(config_path),
            "--refresh-metadata", "--skip-links", "--install-macro",
        ])

        assert result.exit_code == ExitCode.PARTIAL_FAILURE
        assert mock_export_cmd.call_args[1]["config_path"] == str(config_path)
        mock_export_cmd.return_value.run.assert_called_once_with(
            paths=["A.md", "B.md"],
            refresh_metadata=True,
            skip_links=True,
            install_macro=True,
        )

    @patch('src.cli.main._configure_logging')
    @patch('src.cli.main.ExportCommand')
    def test_export_with_existing_config(self, mock_export_cmd, mock_logging, tmp_path):
        """With a config present, a bare invocation exports every note."""
        mock_export_cmd.return_value.run.return_value = ExitCode.SUCCESS
        config_path = tmp_path / "config.yaml"
        config_path.write_text("vault_path: .\n", encoding="utf-8")

        result = runner.invoke(app, ["--config", str(config_path)])

        assert result.exit_code == 0
        mock_export_cmd.return_value.run.assert_called_once_with(
            paths=None,
            refresh_metadata=False,
            skip_links=False,
            install_macro=False,
        )
        mock_logging.assert_called_once_with(0, None)
