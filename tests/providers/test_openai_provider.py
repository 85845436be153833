import asyncio
import unittest
from types import SimpleNamespace

import httpx
import openai

from credit_gate.errors import UpstreamProviderError
from credit_gate.providers.openai_provider import OpenAIProvider


class _FakeCompletions:
    def __init__(self, response=None, error: Exception | None = None):
        self._response = response
        self._error = error
        self.last_kwargs: dict = {}

    async def create(self, **kwargs):
        self.last_kwargs = kwargs
        if self._error is not None:
            raise self._error
        return self._response


class _FakeClient:
    def __init__(self, completions: _FakeCompletions):
        self.chat = SimpleNamespace(completions=completions)


def _response(content: str | None, finish_reason: str = "stop"):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason=finish_reason)])


class OpenAIProviderCompleteTests(unittest.TestCase):
    def _provider(self, completions: _FakeCompletions) -> OpenAIProvider:
        provider = OpenAIProvider.__new__(OpenAIProvider)
        provider._client = _FakeClient(completions)
        provider._model = "gpt-test"
        return provider

    def test_returns_stripped_text_and_sends_sampling_parameters(self) -> None:
        completions = _FakeCompletions(_response('  {"action": "forward"}\n'))
        provider = self._provider(completions)

        text = asyncio.run(provider.complete("system", "user text", 512, 0.2))

        self.assertEqual('{"action": "forward"}', text)
        self.assertEqual("gpt-test", completions.last_kwargs["model"])
        self.assertEqual(512, completions.last_kwargs["max_tokens"])
        self.assertEqual(0.2, completions.last_kwargs["temperature"])
        self.assertEqual(
            [{"role": "system", "content": "system"}, {"role": "user", "content": "user text"}],
            completions.last_kwargs["messages"],
        )

    def test_empty_system_prompt_is_omitted(self) -> None:
        completions = _FakeCompletions(_response("hi"))
        provider = self._provider(completions)

        asyncio.run(provider.complete("", "hello", 16, 0.7))

        self.assertEqual([{"role": "user", "content": "hello"}], completions.last_kwargs["messages"])

    def test_missing_content_returns_empty_string(self) -> None:
        provider = self._provider(_FakeCompletions(_response(None)))
        self.assertEqual("", asyncio.run(provider.complete("s", "u", 64, 0.3)))

    def test_sdk_error_becomes_upstream_provider_error(self) -> None:
        error = openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
        provider = self._provider(_FakeCompletions(error=error))

        with self.assertRaises(UpstreamProviderError) as ctx:
            asyncio.run(provider.complete("s", "u", 64, 0.3))
        self.assertEqual("openai", ctx.exception.source)
        self.assertIs(error, ctx.exception.__cause__)


if __name__ == "__main__":
    unittest.main()
