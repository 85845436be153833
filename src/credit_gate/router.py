from __future__ import annotations

from typing import Sequence

from loguru import logger

from credit_gate.errors import MalformedResponse
from credit_gate.json_extract import parse_json_object
from credit_gate.models import ConversationMessage, RouterDecision
from credit_gate.prompts import ROUTER_SYSTEM_PROMPT, PromptLoader, build_router_prompt
from credit_gate.provider import CompletionProvider


def parse_router_response(text: str) -> RouterDecision:
    """Parse a completion into a RouterDecision.

    The ``action`` value is not checked against the known actions here;
    ``RouterDecision.resolved_action`` handles unknown values.
    """
    obj = parse_json_object(text)
    if obj is None:
        raise MalformedResponse("Router did not return valid JSON", raw_text=text)

    action = obj.get("action")
    if not isinstance(action, str) or not action.strip():
        raise MalformedResponse("Router response has no 'action' field", raw_text=text)

    message = obj.get("message")
    if message is not None and not isinstance(message, str):
        message = str(message)
    return RouterDecision(action=action.strip(), message=message)


class MessageRouter:
    """Decides what to do with a chat message given the user's credit balance."""

    def __init__(
        self,
        provider: CompletionProvider,
        prompts: PromptLoader,
        *,
        max_tokens: int = 512,
        temperature: float = 0.2,
    ):
        self._provider = provider
        self._prompts = prompts
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def decide(
        self,
        message: str,
        history: Sequence[ConversationMessage],
        credits: int,
    ) -> RouterDecision:
        if not message or not message.strip():
            raise ValueError("message must be non-empty")
        if credits < 0:
            raise ValueError(f"credits must be >= 0, got {credits}")

        prompt = build_router_prompt(self._prompts.router_prompt(), message, history, credits)
        text = await self._provider.complete(
            ROUTER_SYSTEM_PROMPT,
            prompt,
            self._max_tokens,
            self._temperature,
        )
        decision = parse_router_response(text)
        logger.info(f"Router decision: action={decision.action}, credits={credits}")
        return decision
