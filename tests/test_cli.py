"""Tests for the click command line interface."""

import logging
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner
from rich.logging import RichHandler

from gotestcraft.adapters.io.logging_setup import LoggerManager
from gotestcraft.cli.dependency_injection import DependencyError
from gotestcraft.cli.main import app
from gotestcraft.domain.models import FileOutcome, FileResult, GenerationError


@pytest.fixture(autouse=True)
def isolated_logging(monkeypatch):
    for key in ("OPENAI_API_KEY", "GOTESTCRAFT_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    LoggerManager.reset()
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)
    LoggerManager.reset()


@pytest.fixture
def runner():
    return CliRunner(env={"COLUMNS": "240"})


@pytest.fixture
def source_dir(tmp_path):
    (tmp_path / "a.go").write_text("package a\n")
    return tmp_path


def container_with(usecase):
    return {"generate_usecase": usecase}


class TestGenerateCommand:
    @patch("gotestcraft.cli.main.create_dependency_container")
    def test_generate_renders_results(self, mock_container, runner, source_dir):
        usecase = MagicMock()
        usecase.generate.return_value = [
            FileResult(
                source_path=str(source_dir / "a.go"),
                test_path=str(source_dir / "a_test.go"),
                outcome=FileOutcome.WRITTEN,
                generated_tests=["Test_A"],
            )
        ]
        mock_container.return_value = container_with(usecase)

        result = runner.invoke(
            app,
            ["generate", "-p", str(source_dir), "-m", "skip", "-g", "file", "-f", "^A", "-c"],
        )

        assert result.exit_code == 0, result.output
        assert "Test_A" in result.output
        config = mock_container.call_args.args[0]
        assert config.generation.mode == "skip"
        assert config.generation.granularity == "file"
        assert config.generation.function_filter == "^A"
        assert config.generation.ignore_errors is True
        usecase.generate.assert_called_once_with(source_dir)

    @patch("gotestcraft.cli.main.create_dependency_container")
    def test_dry_run_flag_reaches_config(self, mock_container, runner, source_dir):
        usecase = MagicMock()
        usecase.generate.return_value = []
        mock_container.return_value = container_with(usecase)

        result = runner.invoke(app, ["--dry-run", "generate", "-p", str(source_dir)])

        assert result.exit_code == 0, result.output
        assert mock_container.call_args.args[0].generation.dry_run is True
        assert "DRY RUN" in result.output

    @patch("gotestcraft.cli.main.create_dependency_container")
    def test_llm_adapter_is_closed_after_generation(self, mock_container, runner, source_dir):
        usecase = MagicMock()
        usecase.generate.return_value = []
        llm_adapter = MagicMock()
        mock_container.return_value = {"generate_usecase": usecase, "llm_adapter": llm_adapter}

        result = runner.invoke(app, ["generate", "-p", str(source_dir)])

        assert result.exit_code == 0, result.output
        llm_adapter.close.assert_called_once_with()

    @patch("gotestcraft.cli.main.create_dependency_container")
    def test_generation_error_exits_with_panel(self, mock_container, runner, source_dir):
        usecase = MagicMock()
        usecase.generate.side_effect = GenerationError("a.go", "model unavailable")
        mock_container.return_value = container_with(usecase)

        result = runner.invoke(app, ["generate", "-p", str(source_dir)])

        assert result.exit_code == 1
        assert "model unavailable" in result.output

    @patch("gotestcraft.cli.main.create_dependency_container")
    def test_dependency_error_exits(self, mock_container, runner, source_dir):
        mock_container.side_effect = DependencyError("no credentials")

        result = runner.invoke(app, ["generate", "-p", str(source_dir)])

        assert result.exit_code == 1
        assert "no credentials" in result.output

    def test_invalid_config_file_exits(self, runner, source_dir):
        config_file = source_dir / "bad.toml"
        config_file.write_text('[generation]\nmode = "overwrite"\n')

        result = runner.invoke(app, ["-c", str(config_file), "generate", "-p", str(source_dir)])

        assert result.exit_code == 1
        assert "Configuration" in result.output


class TestConfigShow:
    def test_shows_masked_configuration(self, runner, tmp_path):
        config_file = tmp_path / "gotestcraft.toml"
        config_file.write_text('[llm]\nopenai_api_key = "sk-secret"\n')

        result = runner.invoke(app, ["-c", str(config_file), "config", "show"])

        assert result.exit_code == 0, result.output
        assert "generation.mode" in result.output
        assert "sk-secret" not in result.output
