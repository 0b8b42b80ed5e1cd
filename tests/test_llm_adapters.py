"""
Tests for the LLM adapters and the provider router.

Network clients are replaced with mocks; no request leaves the process.
"""

import json
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from gotestcraft.adapters.llm.completion_adapter import CompletionAdapter
from gotestcraft.adapters.llm.openai_adapter import OpenAIAdapter
from gotestcraft.adapters.llm.router import LLMRouter
from gotestcraft.config.credentials import CredentialManager
from gotestcraft.config.models import LLMProviderConfig
from gotestcraft.ports.llm_error import LLMError


def chat_response(content, finish_reason="stop"):
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    choice.finish_reason = finish_reason
    response = MagicMock()
    response.choices = [choice]
    return response


@pytest.fixture(autouse=True)
def no_provider_env(monkeypatch):
    for key in ("OPENAI_API_KEY", "OPENAI_BASE_URL", "GOTESTCRAFT_COMPLETION_TOKEN"):
        monkeypatch.delenv(key, raising=False)


class TestOpenAIAdapter:
    def test_generate_sends_prompt(self):
        client = MagicMock()
        client.chat.completions.create.return_value = chat_response("```go\nx\n```")
        adapter = OpenAIAdapter(model="gpt-4.1", max_tokens=1000, client=client)

        assert adapter.generate("write tests") == "```go\nx\n```"

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4.1"
        assert kwargs["max_tokens"] == 1000
        assert kwargs["messages"][-1] == {"role": "user", "content": "write tests"}

    def test_api_error_is_wrapped(self):
        client = MagicMock()
        client.chat.completions.create.side_effect = openai.APIError(
            "server exploded", request=MagicMock(), body=None
        )
        adapter = OpenAIAdapter(client=client)

        with pytest.raises(LLMError) as exc_info:
            adapter.generate("prompt")

        assert exc_info.value.provider == "openai"
        assert isinstance(exc_info.value.__cause__, openai.APIError)

    def test_empty_message_is_an_error(self):
        client = MagicMock()
        client.chat.completions.create.return_value = chat_response(None, "length")
        adapter = OpenAIAdapter(client=client)

        with pytest.raises(LLMError) as exc_info:
            adapter.generate("prompt")

        assert exc_info.value.metadata == {"finish_reason": "length"}

    def test_close_leaves_injected_client_open(self):
        client = MagicMock()

        OpenAIAdapter(client=client).close()

        client.close.assert_not_called()

    def test_missing_api_key(self):
        with pytest.raises(LLMError, match="OPENAI_API_KEY"):
            OpenAIAdapter(credential_manager=CredentialManager())


class TestCompletionAdapter:
    URL = "https://llm.internal/complete"

    def adapter(self, handler, token=None):
        client = httpx.Client(transport=httpx.MockTransport(handler))
        return CompletionAdapter(self.URL, token=token, client=client)

    def test_generate_posts_prompt(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"completion": "```go\ny\n```"})

        assert self.adapter(handler, token="tok").generate("prompt") == "```go\ny\n```"

        request = seen[0]
        assert str(request.url) == self.URL
        assert request.method == "POST"
        assert json.loads(request.content) == {"prompt": "prompt"}
        assert request.headers["Authorization"] == "Bearer tok"

    def test_http_error(self):
        adapter = self.adapter(lambda request: httpx.Response(503, text="busy"))

        with pytest.raises(LLMError) as exc_info:
            adapter.generate("prompt")

        assert exc_info.value.status_code == 503

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(LLMError, match="request failed"):
            self.adapter(handler).generate("prompt")

    def test_invalid_json(self):
        adapter = self.adapter(lambda request: httpx.Response(200, text="not json"))

        with pytest.raises(LLMError, match="invalid JSON"):
            adapter.generate("prompt")

    def test_response_without_completion(self):
        adapter = self.adapter(lambda request: httpx.Response(200, json={"text": "nope"}))

        with pytest.raises(LLMError, match="no completion text"):
            adapter.generate("prompt")

    def test_close_releases_own_client(self):
        adapter = CompletionAdapter(self.URL)

        with adapter:
            pass

        assert adapter._client.is_closed

    def test_close_leaves_injected_client_open(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))

        CompletionAdapter(self.URL, client=client).close()

        assert not client.is_closed


class TestLLMRouter:
    def test_adapter_is_built_lazily_once(self):
        adapter = MagicMock()
        adapter.generate.return_value = "reply"
        factory = MagicMock(return_value=adapter)
        router = LLMRouter({"fake": factory}, "fake")

        factory.assert_not_called()
        assert router.generate("a") == "reply"
        assert router.generate("b") == "reply"
        factory.assert_called_once_with()

    def test_close_closes_built_adapter(self):
        adapter = MagicMock()
        router = LLMRouter({"fake": MagicMock(return_value=adapter)}, "fake")

        router.close()
        router.generate("a")
        router.close()

        adapter.close.assert_called_once_with()

    def test_unknown_provider(self):
        with pytest.raises(LLMError):
            LLMRouter({"openai": MagicMock()}, "bedrock")

    def test_completion_provider_requires_url(self):
        router = LLMRouter.from_config(LLMProviderConfig(default_provider="completion"))

        with pytest.raises(LLMError, match="completion_url"):
            router.generate("prompt")

    def test_from_config_without_credentials_does_not_fail(self):
        router = LLMRouter.from_config(LLMProviderConfig())

        assert router.default_provider == "openai"
