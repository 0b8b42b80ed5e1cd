"""Main CLI entry point for gotestcraft."""

import logging
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from ..adapters.io.file_discovery import FileDiscoveryError
from ..adapters.io.logging_setup import (
    GOTESTCRAFT_THEME,
    LoggerManager,
    resolve_log_level,
)
from ..config.loader import ConfigLoader, ConfigurationError
from ..config.models import GoTestCraftConfig
from ..domain.models import FileOutcome, FileResult, GenerationError
from .dependency_injection import DependencyError, create_dependency_container

logger = logging.getLogger(__name__)

_OUTCOME_STYLES = {
    FileOutcome.WRITTEN: "success",
    FileOutcome.DRY_RUN: "info",
    FileOutcome.SKIPPED: "muted",
    FileOutcome.NO_TARGETS: "muted",
    FileOutcome.NO_CHANGES: "muted",
    FileOutcome.FAILED: "error",
}


class ClickContext:
    """Context object for Click commands."""

    def __init__(self) -> None:
        self.loader: ConfigLoader | None = None
        self.config: GoTestCraftConfig | None = None
        self.console: Console = Console(theme=GOTESTCRAFT_THEME)
        self.verbose: bool = False
        self.quiet: bool = False
        self.dry_run: bool = False


def display_error_with_suggestions(
    console: Console, error_message: str, suggestions: list[str], title: str = "Error"
) -> None:
    """Display an error panel with helpful suggestions."""
    content = [f"[error]{error_message}[/]"]
    if suggestions:
        content.append("")
        content.append("[warning]Suggestions:[/]")
        content.extend(f"  {suggestion}" for suggestion in suggestions)
    console.print(
        Panel("\n".join(content), title=f"[error]{title}[/]", border_style="red")
    )


@click.group()
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option(
    "--quiet", "-q", is_flag=True, help="Reduce output: set log level to WARNING"
)
@click.option(
    "--dry-run", is_flag=True, help="Show what would be written without writing"
)
@click.pass_context
def app(
    ctx: click.Context,
    config_file: Path | None,
    verbose: bool,
    quiet: bool,
    dry_run: bool,
) -> None:
    """gotestcraft - AI-assisted unit test generation for Go code."""
    ctx.ensure_object(ClickContext)
    ctx.obj.verbose = verbose
    ctx.obj.quiet = quiet
    ctx.obj.dry_run = dry_run

    ctx.obj.loader = ConfigLoader(config_file)
    cli_overrides = {"generation": {"dry_run": True}} if dry_run else None
    try:
        ctx.obj.config = ctx.obj.loader.load_config(cli_overrides=cli_overrides)
    except ConfigurationError as e:
        display_error_with_suggestions(
            ctx.obj.console,
            f"Configuration error: {e}",
            [
                "Check if the configuration file exists and is readable",
                "Verify the configuration file format (TOML or YAML)",
                "Check GOTESTCRAFT_* environment variables",
            ],
            "Configuration Failed",
        )
        sys.exit(1)

    LoggerManager.setup_global_logging(
        level=resolve_log_level(verbose, quiet, ctx.obj.config.logging.level)
    )
    if not verbose:
        for module in ctx.obj.config.logging.suppress_modules:
            logging.getLogger(module).setLevel(logging.WARNING)


@app.command()
@click.option(
    "--path",
    "-p",
    "path",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="Path to the file or directory to generate tests for",
)
@click.option(
    "--mode",
    "-m",
    type=click.Choice(["append", "skip"], case_sensitive=False),
    help="Mode for test file generation: append, or skip",
)
@click.option(
    "--granularity",
    "-g",
    type=click.Choice(["file", "function"], case_sensitive=False),
    help="Granularity for test file generation: file, or function",
)
@click.option(
    "--filter",
    "-f",
    "function_filter",
    help="Regex filter for functions to generate tests for",
)
@click.option(
    "--ignore-error",
    "-c",
    "ignore_error",
    is_flag=True,
    default=None,
    help="Continue handling next file if error occurs",
)
@click.pass_context
def generate(
    ctx: click.Context,
    path: Path,
    mode: str | None,
    granularity: str | None,
    function_filter: str | None,
    ignore_error: bool | None,
) -> None:
    """Generate tests for Go source files."""
    console: Console = ctx.obj.console

    overrides: dict[str, Any] = {}
    if mode:
        overrides["mode"] = mode.lower()
    if granularity:
        overrides["granularity"] = granularity.lower()
    if function_filter:
        overrides["function_filter"] = function_filter
    if ignore_error:
        overrides["ignore_errors"] = True
    if ctx.obj.dry_run:
        overrides["dry_run"] = True

    try:
        config = ctx.obj.loader.load_config(
            cli_overrides={"generation": overrides}, reload=True
        )
        container = create_dependency_container(config)
    except ConfigurationError as e:
        display_error_with_suggestions(
            console,
            f"Configuration error: {e}",
            ["Check the --mode, --granularity and --filter values"],
            "Configuration Failed",
        )
        sys.exit(1)
    except DependencyError as e:
        display_error_with_suggestions(
            console,
            f"Dependency injection error: {e}",
            [
                "Set OPENAI_API_KEY or configure llm.completion_url",
                "Check the prompt.custom_prompt_file setting",
            ],
            "Initialization Failed",
        )
        sys.exit(1)

    if config.generation.dry_run:
        console.print("[info]DRY RUN: no test files will be written[/]")

    try:
        results = container["generate_usecase"].generate(path)
    except GenerationError as e:
        display_error_with_suggestions(
            console,
            str(e),
            [
                "Run with --verbose to see the prompt and the model response",
                "Use --ignore-error to continue with the remaining files",
            ],
            "Generation Failed",
        )
        sys.exit(1)
    except FileDiscoveryError as e:
        display_error_with_suggestions(console, str(e), [], "Generation Failed")
        sys.exit(1)
    finally:
        close = getattr(container.get("llm_adapter"), "close", None)
        if close is not None:
            close()

    if config.generation.dry_run:
        for result in results:
            if result.content:
                console.print(
                    Panel(
                        Syntax(result.content, "go", line_numbers=False),
                        title=result.test_path,
                    )
                )

    console.print(render_results(results))


def render_results(results: list[FileResult]) -> Table:
    """Render per-file results as a rich table."""
    table = Table(title="Test Generation Results")
    table.add_column("Source file", style="cyan", no_wrap=True)
    table.add_column("Outcome")
    table.add_column("Generated", justify="right")
    table.add_column("Skipped", justify="right")
    table.add_column("Details")

    for result in results:
        outcome = FileOutcome(result.outcome)
        style = _OUTCOME_STYLES.get(outcome, "")
        details = result.error_message or ", ".join(result.generated_tests)
        table.add_row(
            result.source_path,
            f"[{style}]{outcome.value}[/]" if style else outcome.value,
            str(len(result.generated_tests)),
            str(len(result.skipped_tests)),
            details,
        )
    return table


@app.group(name="config")
def config_group() -> None:
    """Configuration commands."""


@config_group.command(name="show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show the effective configuration (secrets masked)."""
    config: GoTestCraftConfig = ctx.obj.config
    data = config.model_dump(mode="json")
    if data["llm"].get("openai_api_key"):
        data["llm"]["openai_api_key"] = "********"

    table = Table(title="Effective Configuration")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for section, values in data.items():
        for key, value in values.items():
            table.add_row(f"{section}.{key}", repr(value))
    ctx.obj.console.print(table)


if __name__ == "__main__":
    app()
