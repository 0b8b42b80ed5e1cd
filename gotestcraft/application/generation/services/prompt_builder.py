"""
Prompt assembly for test generation.

Builds the single user prompt sent to the model for one target function:
the file's imports, the function source, the related declarations found by
the reference collector and the generation guidance.
"""

from __future__ import annotations

import re

from ....domain.syntax import FuncDecl, SourceFile

DEFAULT_GUIDANCE = """\
Write table-driven tests using the standard "testing" package.
Name the test function after the function under test as Test_<Func>, or
Test_<Receiver>_<Method> for methods, and use t.Run for each case.
Cover the normal path, boundary values and every error return.
Only use identifiers that exist in the code shown above."""

_TEMPLATE = """\
Generate unit tests for below function:
{imports}
{function}

The related types and functions definition code is:
{context}

You should only output the test function, nothing else. Don't output the package declaration, imports, or any other code.

{guidance}
"""


def sanitize_code(code: str) -> str:
    """
    Remove control characters and collapse long backtick runs.

    Keeps embedded source from breaking the fenced-code protocol of the
    response.
    """
    code = re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F]", "", code)
    return re.sub(r"`{4,}", "```", code)


def import_section(source: SourceFile) -> str:
    lines = ["import ("]
    for spec in source.imports:
        if spec.alias:
            lines.append(f'\t{spec.alias} "{spec.path}"')
        else:
            lines.append(f'\t"{spec.path}"')
    lines.append(")")
    return "\n".join(lines) + "\n"


class PromptBuilder:
    """Assembles generation prompts; an empty custom prompt uses the default guidance."""

    def __init__(self, custom_prompt: str | None = None) -> None:
        self._guidance = (custom_prompt or "").strip() or DEFAULT_GUIDANCE

    def build(self, func: FuncDecl, source: SourceFile, context: str) -> str:
        return _TEMPLATE.format(
            imports=import_section(source),
            function=sanitize_code(func.text) + "\n",
            context=sanitize_code(context),
            guidance=self._guidance,
        )
