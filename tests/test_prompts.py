import asyncio
import os
import tempfile
import unittest
from pathlib import Path

from credit_gate.models import ConversationMessage, ToolCatalogEntry
from credit_gate.prompts import (
    AGENT_PROMPT_FILE,
    ROUTER_PROMPT_FILE,
    PromptLoader,
    build_intent_prompt,
    build_router_prompt,
    format_transcript,
)
from credit_gate.title import TitleSummarizer
from tests.fakes import FakeProvider


class PromptLoaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_loads_and_caches(self) -> None:
        (self.dir / AGENT_PROMPT_FILE).write_text("weather agent", encoding="utf-8")
        loader = PromptLoader(self.dir)

        self.assertEqual("weather agent", loader.agent_prompt())
        self.assertEqual("weather agent", loader.cached(AGENT_PROMPT_FILE))

    def test_changed_file_is_reloaded(self) -> None:
        path = self.dir / ROUTER_PROMPT_FILE
        path.write_text("v1", encoding="utf-8")
        loader = PromptLoader(self.dir)
        self.assertEqual("v1", loader.router_prompt())

        path.write_text("v2", encoding="utf-8")
        stat = path.stat()
        os.utime(path, (stat.st_atime, stat.st_mtime + 10))

        self.assertEqual("v2", loader.router_prompt())

    def test_unchanged_file_is_served_from_cache(self) -> None:
        path = self.dir / ROUTER_PROMPT_FILE
        path.write_text("v1", encoding="utf-8")
        loader = PromptLoader(self.dir)
        loader.router_prompt()
        mtime = path.stat().st_mtime

        path.write_text("v2", encoding="utf-8")
        os.utime(path, (mtime, mtime))

        self.assertEqual("v1", loader.router_prompt())
        self.assertEqual("v2", loader.reload(ROUTER_PROMPT_FILE))

    def test_missing_file_uses_fallback(self) -> None:
        loader = PromptLoader(self.dir)
        self.assertIn("no_action", loader.router_prompt())
        self.assertIsNone(loader.cached(ROUTER_PROMPT_FILE))
        self.assertIn("Default prompt for other.prompt", loader.load("other.prompt"))


class PromptBuilderTests(unittest.TestCase):
    def test_transcript_labels_roles(self) -> None:
        history = [ConversationMessage("user", "hi"), ConversationMessage("assistant", "hello")]
        self.assertEqual("User: hi\nAssistant: hello", format_transcript(history))

    def test_router_prompt_contains_inputs(self) -> None:
        prompt = build_router_prompt("BASE", "buy credits", [ConversationMessage("user", "hi")], 0)
        self.assertTrue(prompt.startswith("BASE"))
        self.assertIn('[{"role": "user", "content": "hi"}]', prompt)
        self.assertIn('"buy credits"', prompt)
        self.assertIn("User credits: 0", prompt)

    def test_intent_prompt_includes_catalog_only_when_given(self) -> None:
        tool = ToolCatalogEntry("weather.today", {"type": "object"}, "forecast")
        with_catalog = build_intent_prompt("ctx", [], [tool])
        without_catalog = build_intent_prompt("ctx", [])

        self.assertIn('"name": "weather.today"', with_catalog)
        self.assertNotIn("Available MCP tools", without_catalog)
        self.assertIn("ONE clear English sentence", without_catalog)


class TitleSummarizerTests(unittest.TestCase):
    def test_strips_quotes_and_period(self) -> None:
        provider = FakeProvider('"Lima Weather Forecast Today."')
        history = [ConversationMessage("user", "Weather in Lima?")]

        title = asyncio.run(TitleSummarizer(provider).summarize(history))

        self.assertEqual("Lima Weather Forecast Today", title)
        self.assertEqual(16, provider.calls[0]["max_tokens"])
        self.assertEqual(0.7, provider.calls[0]["temperature"])

    def test_empty_completion_gives_untitled(self) -> None:
        title = asyncio.run(TitleSummarizer(FakeProvider("")).summarize([]))
        self.assertEqual("Untitled", title)


if __name__ == "__main__":
    unittest.main()
