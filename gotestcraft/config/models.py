"""Configuration models for gotestcraft."""

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..domain.models import Granularity, Mode


class GenerationConfig(BaseModel):
    """Configuration for test generation behavior."""

    mode: Mode = Field(
        default=Mode.APPEND,
        description="skip: leave existing tests alone; append: add tests next to them",
    )
    granularity: Granularity = Field(
        default=Granularity.FUNCTION,
        description="Whether skip/append decisions apply per file or per function",
    )
    function_filter: str | None = Field(
        default=None,
        description="Regular expression selecting the functions to generate tests for",
    )
    ignore_errors: bool = Field(
        default=False, description="Continue with the next file when one fails"
    )
    dry_run: bool = Field(
        default=False, description="Report what would be written without writing"
    )
    extra_imports: list[str] = Field(
        default_factory=list,
        description="Import paths added to new test files besides testing",
    )
    exclude_dirs: list[str] = Field(
        default_factory=lambda: ["vendor", "testdata"],
        description="Directory names never entered when walking a source tree",
    )

    @field_validator("function_filter")
    @classmethod
    def validate_function_filter(cls, v: str | None) -> str | None:
        """Ensure the function filter compiles."""
        if v is None or v == "":
            return None
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid function filter {v!r}: {e}") from e
        return v


class GoEnvironmentConfig(BaseModel):
    """Locations of the Go toolchain; discovered from the environment when unset."""

    goroot: str | None = Field(default=None, description="Go installation root")
    gopath: str | None = Field(default=None, description="GOPATH root")
    gomodcache: str | None = Field(default=None, description="Go module cache")


class LLMProviderConfig(BaseModel):
    """Configuration for LLM provider settings."""

    default_provider: Literal["openai", "completion"] = Field(
        default="openai", description="Provider used for test generation"
    )

    # OpenAI compatible chat completions
    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key (or set OPENAI_API_KEY environment variable)",
    )
    openai_model: str = Field(
        default="gpt-4.1", description="OpenAI model to use for test generation"
    )
    openai_base_url: str | None = Field(
        default=None, description="Custom OpenAI API base URL (optional)"
    )
    openai_max_tokens: int = Field(
        default=4096, ge=100, le=32768, description="Maximum tokens for OpenAI requests"
    )
    openai_timeout: float = Field(
        default=60.0, ge=5.0, le=600.0, description="Timeout for OpenAI requests (seconds)"
    )
    max_retries: int = Field(
        default=3, ge=0, le=10, description="Retries performed by the OpenAI client"
    )
    temperature: float = Field(
        default=0.1, ge=0.0, le=2.0, description="Sampling temperature"
    )

    # Plain JSON completion endpoint: POST {"prompt"} -> {"completion"}
    completion_url: str | None = Field(
        default=None, description="URL of a JSON completion endpoint"
    )
    completion_timeout: float = Field(
        default=120.0,
        ge=5.0,
        le=600.0,
        description="Timeout for completion endpoint requests (seconds)",
    )


class PromptConfig(BaseModel):
    """Configuration for the guidance appended to every prompt."""

    custom_prompt: str | None = Field(
        default=None, description="Guidance text replacing the default instructions"
    )
    custom_prompt_file: str | None = Field(
        default=None, description="File holding the custom guidance text"
    )


class LoggingConfig(BaseModel):
    """Configuration for logging behavior."""

    level: str = Field(default="INFO", description="Default root log level")
    suppress_modules: list[str] = Field(
        default_factory=lambda: ["httpx", "openai", "urllib3"],
        description="Library loggers kept at WARNING unless running verbose",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class FormattingConfig(BaseModel):
    """Configuration for post-write formatting of test files."""

    enabled: bool = Field(default=True, description="Format written test files")
    tools: list[str] = Field(
        default_factory=lambda: ["goimports", "gofmt"],
        description="Formatters tried in order; the first that succeeds wins",
    )
    timeout: int = Field(default=30, ge=1, le=300, description="Formatter timeout")


class GoTestCraftConfig(BaseModel):
    """Main configuration model for gotestcraft."""

    generation: GenerationConfig = Field(
        default_factory=GenerationConfig,
        description="Test generation behavior configuration",
    )
    go: GoEnvironmentConfig = Field(
        default_factory=GoEnvironmentConfig, description="Go toolchain locations"
    )
    llm: LLMProviderConfig = Field(
        default_factory=LLMProviderConfig,
        description="Large Language Model provider configuration",
    )
    prompt: PromptConfig = Field(
        default_factory=PromptConfig, description="Prompt guidance configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging behavior configuration"
    )
    formatting: FormattingConfig = Field(
        default_factory=FormattingConfig,
        description="Formatting of written test files",
    )

    def get_nested_value(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'generation.mode')."""
        value: Any = self.model_dump()
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    model_config = ConfigDict(
        validate_assignment=True, extra="forbid", use_enum_values=True
    )
