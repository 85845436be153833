from __future__ import annotations

from typing import Sequence

from credit_gate.models import ConversationMessage
from credit_gate.prompts import TITLE_SYSTEM_PROMPT, build_title_prompt
from credit_gate.provider import CompletionProvider

_DEFAULT_TITLE = "Untitled"


class TitleSummarizer:
    def __init__(self, provider: CompletionProvider, *, max_tokens: int = 16, temperature: float = 0.7):
        self._provider = provider
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def summarize(self, history: Sequence[ConversationMessage]) -> str:
        text = await self._provider.complete(
            TITLE_SYSTEM_PROMPT,
            build_title_prompt(history),
            self._max_tokens,
            self._temperature,
        )
        return text.strip().strip('"').rstrip(".") or _DEFAULT_TITLE
