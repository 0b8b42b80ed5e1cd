"""
Domain models for the gotestcraft system.

This module contains the core domain models using Pydantic for validation
and serialization. These models represent the references, policies and
reconciliation decisions that flow between the resolver and the test
reconciler.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class GoTestCraftError(Exception):
    """Base exception for gotestcraft domain errors."""

    pass


class SourceParseError(GoTestCraftError):
    """Raised when a Go source file cannot be parsed."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"failed to parse {path}: {message}")
        self.path = path


class QualifierNotFoundError(GoTestCraftError):
    """Raised when a package qualifier has no matching import."""

    def __init__(self, qualifier: str, file_path: str) -> None:
        super().__init__(f"package {qualifier} not found in imports of {file_path}")
        self.qualifier = qualifier
        self.file_path = file_path


class CodeExtractionError(GoTestCraftError):
    """Raised when no fenced code block is found in an AI response."""

    pass


class GenerationError(GoTestCraftError):
    """Raised when test generation for a source file fails."""

    def __init__(self, file_path: str, message: str) -> None:
        super().__init__(f"{file_path}: {message}")
        self.file_path = file_path


class Mode(str, Enum):
    """How existing tests are treated."""

    SKIP = "skip"
    APPEND = "append"


class Granularity(str, Enum):
    """Whether skip/append decisions apply per file or per function."""

    FILE = "file"
    FUNCTION = "function"


class Decision(str, Enum):
    """Reconciliation decision for a single target function."""

    GENERATE = "generate"
    SKIP = "skip"
    APPEND = "append"


class PackageKind(str, Enum):
    """Classification of a resolved package directory."""

    STDLIB = "stdlib"
    PROJECT = "project"


class FileOutcome(str, Enum):
    """Final state of a processed source file."""

    WRITTEN = "written"
    DRY_RUN = "dry_run"
    SKIPPED = "skipped"
    NO_TARGETS = "no_targets"
    NO_CHANGES = "no_changes"
    FAILED = "failed"


class ImportBinding(BaseModel):
    """
    A single import of a Go file.

    ``local_alias`` is the name the file uses to refer to the package: the
    explicit alias when present, otherwise the last path segment with any
    trailing ``/vN`` major-version suffix removed.
    """

    local_alias: str | None = Field(None, description="Name used in the file")
    qualified_path: str = Field(..., description="Full import path")

    model_config = ConfigDict(frozen=True)


class TypeReference(BaseModel):
    """A reference to a named type, optionally qualified by a package alias."""

    package_qualifier: str = Field("", description="Import alias, empty for local")
    type_name: str = Field(..., description="Name of the referenced type")

    model_config = ConfigDict(frozen=True)

    @property
    def key(self) -> tuple[str, str]:
        return (self.package_qualifier, self.type_name)

    @property
    def is_local(self) -> bool:
        return not self.package_qualifier


class CallReference(BaseModel):
    """A reference to a function, or to a method when ``type_name`` is set."""

    package_qualifier: str = Field("", description="Import alias, empty for local")
    type_name: str = Field("", description="Receiver base type, empty for functions")
    func_name: str = Field(..., description="Name of the called function")

    model_config = ConfigDict(frozen=True)

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.package_qualifier, self.type_name, self.func_name)

    @property
    def is_local(self) -> bool:
        return not self.package_qualifier


class GenerationPolicy(BaseModel):
    """Mode and granularity supplied by the caller; never mutated."""

    mode: Mode = Field(default=Mode.APPEND, description="skip or append")
    granularity: Granularity = Field(
        default=Granularity.FUNCTION, description="file or function"
    )

    model_config = ConfigDict(frozen=True)


class TestRecord(BaseModel):
    """An existing test declaration keyed by its canonical name."""

    __test__ = False

    name: str = Field(..., description="Test function name")
    declaration: Any = Field(..., description="Parsed function declaration")

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class TargetDecision(BaseModel):
    """Decision taken for one target function."""

    func_name: str = Field(..., description="Name of the target function")
    test_name: str = Field(..., description="Canonical test name for the target")
    decision: Decision = Field(..., description="generate, skip or append")

    model_config = ConfigDict(frozen=True)

    @property
    def needs_generation(self) -> bool:
        return self.decision in (Decision.GENERATE, Decision.APPEND)


class ReconciliationPlan(BaseModel):
    """
    Outcome of applying a GenerationPolicy to the targets of one source file.

    When ``skip_file`` is set no target is processed at all.
    """

    policy: GenerationPolicy = Field(..., description="Policy used for the plan")
    test_file_exists: bool = Field(..., description="Whether the test file exists")
    skip_file: bool = Field(default=False, description="Skip the whole file")
    decisions: list[TargetDecision] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def pending(self) -> list[TargetDecision]:
        """Decisions that require new test code, in target order."""
        if self.skip_file:
            return []
        return [d for d in self.decisions if d.needs_generation]


class FileResult(BaseModel):
    """
    Result of processing one Go source file.

    Captures the test file produced, the per-target decisions and any error
    message when processing failed.
    """

    source_path: str = Field(..., description="Path of the processed source file")
    test_path: str = Field(..., description="Path of the corresponding test file")
    outcome: FileOutcome = Field(..., description="Final state of the file")
    generated_tests: list[str] = Field(
        default_factory=list, description="Test names generated for this file"
    )
    skipped_tests: list[str] = Field(
        default_factory=list, description="Test names skipped for this file"
    )
    content: str | None = Field(None, description="Final test file content")
    error_message: str | None = Field(None, description="Error when outcome is failed")

    @model_validator(mode="after")
    def validate_error_message(self) -> "FileResult":
        """Validate that an error message accompanies a failed outcome."""
        if self.outcome == FileOutcome.FAILED and not self.error_message:
            raise ValueError("Error message must be provided when outcome is failed")
        return self

    model_config = ConfigDict(frozen=True)
