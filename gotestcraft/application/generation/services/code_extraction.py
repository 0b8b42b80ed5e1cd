"""Extraction of Go code from fenced blocks in model responses."""

from __future__ import annotations

from ....domain.models import CodeExtractionError

_GO_FENCE = "```go"
_FENCE = "```"


def extract_code(response_text: str) -> str:
    """
    Extract the code between the first opening fence and the last fence.

    A ```` ```go ```` fence is preferred over a bare one. Leading and trailing
    newlines are trimmed.

    Raises:
        CodeExtractionError: If the response has no usable fenced block
    """
    start = response_text.find(_GO_FENCE)
    if start != -1:
        start += len(_GO_FENCE)
    else:
        start = response_text.find(_FENCE)
        if start == -1:
            raise CodeExtractionError("code not found: missing starting backticks")
        start += len(_FENCE)

    end = response_text.rfind(_FENCE)
    if end == -1 or end < start:
        raise CodeExtractionError("code not found: missing ending backticks")

    return response_text[start:end].strip("\n")
