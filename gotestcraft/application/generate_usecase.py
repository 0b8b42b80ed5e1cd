"""
Generate use case.

Walks a Go file or directory and, file at a time, resolves the context of
each target function, asks the model for tests, reconciles them with the
existing test file and hands the result to the writer.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from ..adapters.io.file_discovery import FileDiscoveryService, companion_test_path
from ..domain.models import (
    FileOutcome,
    FileResult,
    GenerationError,
    GenerationPolicy,
    GoTestCraftError,
)
from ..domain.syntax import FuncDecl, SourceFile
from ..ports.llm_error import LLMError
from ..ports.llm_port import LLMPort
from ..ports.parser_port import ParserPort
from ..ports.writer_port import WriterPort
from .generation.services.code_extraction import extract_code
from .generation.services.prompt_builder import PromptBuilder
from .generation.services.reference_collector import ReferenceCollector
from .generation.services.test_reconciler import TestReconciler

logger = logging.getLogger(__name__)


class GenerateUseCase:
    """
    Core use case for test generation.

    Files are processed sequentially in walk order. A failing file aborts the
    batch unless ``ignore_errors`` is set, in which case it is logged and
    reported as failed.
    """

    def __init__(
        self,
        parser_port: ParserPort,
        llm_port: LLMPort,
        writer_port: WriterPort,
        reference_collector: ReferenceCollector,
        test_reconciler: TestReconciler,
        prompt_builder: PromptBuilder,
        file_discovery_service: FileDiscoveryService | None = None,
        policy: GenerationPolicy | None = None,
        function_filter: str | None = None,
        ignore_errors: bool = False,
    ) -> None:
        """
        Initialize the use case with its collaborators.

        Args:
            parser_port: Parser for source and test files
            llm_port: Model used to write tests
            writer_port: Reads existing and writes merged test files
            reference_collector: Builds the context blob of a target
            test_reconciler: Applies the policy and merges generated code
            prompt_builder: Assembles prompts
            file_discovery_service: Source file walker (default if None)
            policy: Mode and granularity (append/function if None)
            function_filter: Regular expression selecting target functions
            ignore_errors: Continue with the next file when one fails
        """
        self._parser = parser_port
        self._llm = llm_port
        self._writer = writer_port
        self._collector = reference_collector
        self._reconciler = test_reconciler
        self._prompt_builder = prompt_builder
        self._file_discovery = file_discovery_service or FileDiscoveryService()
        self._policy = policy or GenerationPolicy()
        self._filter = re.compile(function_filter) if function_filter else None
        self._ignore_errors = ignore_errors

    def generate(self, path: str | Path) -> list[FileResult]:
        """
        Generate tests for a Go file or every Go file under a directory.

        Raises:
            GenerationError: If a file fails and ``ignore_errors`` is not set
        """
        logger.info(
            "Generating tests for %s (mode=%s, granularity=%s)",
            path,
            self._policy.mode.value,
            self._policy.granularity.value,
        )
        results = []
        for source_path in self._file_discovery.discover_source_files(path):
            try:
                results.append(self.process_file(source_path))
            except GenerationError as e:
                logger.error("Failed to process file: %s", e)
                if not self._ignore_errors:
                    raise
                results.append(
                    FileResult(
                        source_path=str(source_path),
                        test_path=str(companion_test_path(source_path)),
                        outcome=FileOutcome.FAILED,
                        error_message=str(e),
                    )
                )
        return results

    def process_file(self, source_path: str | Path) -> FileResult:
        """
        Run the full pipeline for one source file.

        Raises:
            GenerationError: Wrapping any parse, resolution, model or write failure
        """
        source_path = Path(source_path)
        logger.info("Starting to process file: %s", source_path)
        try:
            return self._process(source_path)
        except (GoTestCraftError, LLMError) as e:
            if isinstance(e, GenerationError):
                raise
            raise GenerationError(str(source_path), str(e)) from e
        finally:
            logger.info("Finished processing file: %s", source_path)

    def _process(self, source_path: Path) -> FileResult:
        test_path = companion_test_path(source_path)
        source = self._parser.parse_file(source_path)

        targets = self.select_targets(source)
        if not targets:
            logger.info("No functions found in file %s, skipping it", source_path)
            return FileResult(
                source_path=str(source_path),
                test_path=str(test_path),
                outcome=FileOutcome.NO_TARGETS,
            )

        existing_text = self._writer.read_file(test_path)
        existing_index = None
        if existing_text is not None:
            test_file = self._parser.parse_source(existing_text, test_path, strict=True)
            existing_index = self._reconciler.index_tests(test_file)

        plan = self._reconciler.plan(targets, existing_index, self._policy)
        skipped = [d.test_name for d in plan.decisions if not d.needs_generation]
        if plan.skip_file:
            logger.info("Test file exists for %s, skipping it", source_path)
            return FileResult(
                source_path=str(source_path),
                test_path=str(test_path),
                outcome=FileOutcome.SKIPPED,
                skipped_tests=skipped,
            )

        generated_code: list[str] = []
        generated_names: list[str] = []
        for target, decision in zip(targets, plan.decisions):
            if not decision.needs_generation:
                logger.info("[%s] Skipping test generation", decision.test_name)
                continue
            logger.info(
                "[%s] Generating test cases (%s)",
                decision.test_name,
                decision.decision.value,
            )
            generated_code.append(self._generate_test(target, source))
            generated_names.append(decision.test_name)

        content = self._reconciler.merge(
            plan, generated_code, existing_text, source.package
        )
        if content is None:
            logger.info("No test cases generated for file %s", source_path)
            return FileResult(
                source_path=str(source_path),
                test_path=str(test_path),
                outcome=FileOutcome.NO_CHANGES,
                skipped_tests=skipped,
            )

        write_result = self._writer.write_file(test_path, content)
        outcome = FileOutcome.DRY_RUN if write_result.get("dry_run") else FileOutcome.WRITTEN
        return FileResult(
            source_path=str(source_path),
            test_path=str(test_path),
            outcome=outcome,
            generated_tests=generated_names,
            skipped_tests=skipped,
            content=content,
        )

    def select_targets(self, source: SourceFile) -> list[FuncDecl]:
        """Top-level functions and methods matching the function filter, in source order."""
        if self._filter is None:
            return list(source.funcs)
        return [f for f in source.funcs if self._filter.search(f.name)]

    def _generate_test(self, func: FuncDecl, source: SourceFile) -> str:
        context = self._collector.build_context(func, source)
        prompt = self._prompt_builder.build(func, source, context)
        response = self._llm.generate(prompt)
        return extract_code(response)
