"""Tests for extracting Go code from model responses."""

import pytest

from gotestcraft.application.generation.services.code_extraction import extract_code
from gotestcraft.domain.models import CodeExtractionError


class TestExtractCode:
    def test_go_fence(self):
        response = "Here you go:\n```go\nfunc Test_A(t *testing.T) {}\n```\nEnjoy."

        assert extract_code(response) == "func Test_A(t *testing.T) {}"

    def test_go_fence_preferred_over_plain_fence(self):
        response = "```\nplain\n```\n\n```go\nfunc Test_B(t *testing.T) {}\n```"

        assert extract_code(response) == "func Test_B(t *testing.T) {}"

    def test_plain_fence(self):
        response = "```\nfunc Test_C(t *testing.T) {}\n```"

        assert extract_code(response) == "func Test_C(t *testing.T) {}"

    def test_code_runs_to_last_fence(self):
        response = "```go\nfunc Test_D(t *testing.T) {}\n```\ntext\n```"

        assert extract_code(response) == "func Test_D(t *testing.T) {}\n```\ntext"

    def test_surrounding_newlines_are_trimmed(self):
        response = "```go\n\n\nfunc Test_E(t *testing.T) {}\n\n```"

        assert extract_code(response) == "func Test_E(t *testing.T) {}"

    def test_missing_opening_fence(self):
        with pytest.raises(CodeExtractionError, match="starting backticks"):
            extract_code("func Test_F(t *testing.T) {}")

    def test_missing_closing_fence(self):
        with pytest.raises(CodeExtractionError, match="ending backticks"):
            extract_code("```go\nfunc Test_G(t *testing.T) {}")
