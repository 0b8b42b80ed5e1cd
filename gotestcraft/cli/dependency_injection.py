"""Dependency injection container for CLI commands."""

from pathlib import Path
from typing import Any

from ..adapters.io.file_discovery import FileDiscoveryService
from ..adapters.io.go_formatters import GoFormatter
from ..adapters.io.writer_go import GoTestWriter
from ..adapters.llm.router import LLMRouter
from ..adapters.parsing.go_parser import GoParser
from ..application.generate_usecase import GenerateUseCase
from ..application.generation.services.import_resolver import ImportResolver
from ..application.generation.services.prompt_builder import PromptBuilder
from ..application.generation.services.reference_collector import ReferenceCollector
from ..application.generation.services.symbol_locator import SymbolLocator
from ..application.generation.services.test_reconciler import TestReconciler
from ..config.credentials import CredentialManager
from ..config.models import GoTestCraftConfig
from ..domain.models import GenerationPolicy
from ..ports.llm_error import LLMError
from ..ports.llm_port import LLMPort


class DependencyError(Exception):
    """Raised when dependency injection fails."""

    pass


def create_dependency_container(
    config: GoTestCraftConfig, llm_port: LLMPort | None = None
) -> dict[str, Any]:
    """
    Create a dependency injection container with all required services.

    Args:
        config: gotestcraft configuration
        llm_port: Replacement for the configured model (tests, offline runs)

    Returns:
        Dictionary containing all service instances

    Raises:
        DependencyError: If dependency creation fails
    """
    container: dict[str, Any] = {"config": config}

    try:
        container["parser_adapter"] = GoParser()
        container["import_resolver"] = ImportResolver(
            goroot=config.go.goroot,
            gopath=config.go.gopath,
            gomodcache=config.go.gomodcache,
        )
        container["symbol_locator"] = SymbolLocator(
            container["parser_adapter"], container["import_resolver"]
        )
        container["reference_collector"] = ReferenceCollector(
            container["import_resolver"], container["symbol_locator"]
        )
        container["test_reconciler"] = TestReconciler(
            container["parser_adapter"], extra_imports=config.generation.extra_imports
        )
        container["prompt_builder"] = PromptBuilder(_load_custom_prompt(config))

        container["formatter_adapter"] = GoFormatter(
            tools=config.formatting.tools,
            timeout=config.formatting.timeout,
            enabled=config.formatting.enabled,
        )
        container["writer_adapter"] = GoTestWriter(
            formatter=container["formatter_adapter"],
            dry_run=config.generation.dry_run,
        )
        container["file_discovery"] = FileDiscoveryService(
            exclude_dirs=config.generation.exclude_dirs
        )
        container["llm_adapter"] = llm_port or LLMRouter.from_config(
            config.llm,
            CredentialManager(
                {
                    "openai_api_key": config.llm.openai_api_key,
                    "openai_base_url": config.llm.openai_base_url,
                }
            ),
        )
    except (LLMError, OSError, ValueError) as e:
        raise DependencyError(f"Failed to create adapters: {e}") from e

    container["generate_usecase"] = GenerateUseCase(
        parser_port=container["parser_adapter"],
        llm_port=container["llm_adapter"],
        writer_port=container["writer_adapter"],
        reference_collector=container["reference_collector"],
        test_reconciler=container["test_reconciler"],
        prompt_builder=container["prompt_builder"],
        file_discovery_service=container["file_discovery"],
        policy=GenerationPolicy(
            mode=config.generation.mode,
            granularity=config.generation.granularity,
        ),
        function_filter=config.generation.function_filter,
        ignore_errors=config.generation.ignore_errors,
    )

    return container


def _load_custom_prompt(config: GoTestCraftConfig) -> str | None:
    if config.prompt.custom_prompt:
        return config.prompt.custom_prompt
    if config.prompt.custom_prompt_file:
        path = Path(config.prompt.custom_prompt_file).expanduser()
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise DependencyError(f"Cannot read custom prompt file {path}: {e}") from e
    return None
