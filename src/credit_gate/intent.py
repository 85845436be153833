from __future__ import annotations

from typing import Any, Sequence

import jsonschema
from loguru import logger

from credit_gate.errors import InvalidToolSelection, MalformedResponse
from credit_gate.json_extract import parse_json_object
from credit_gate.models import (
    ConversationMessage,
    NaturalLanguageInstruction,
    SynthesizedIntent,
    ToolCatalogEntry,
    ToolInvocation,
)
from credit_gate.prompts import INTENT_SYSTEM_PROMPT, TOOL_SELECTION_SYSTEM_PROMPT, build_intent_prompt
from credit_gate.provider import CompletionProvider


def validate_tool_invocation(
    obj: dict[str, Any] | None,
    tools_catalog: Sequence[ToolCatalogEntry],
    raw_text: str = "",
) -> ToolInvocation:
    """Check a parsed ``{tool, args}`` object against the catalog.

    The tool must exist, args may only use keys the schema declares, and args
    must satisfy the schema itself.
    """
    if obj is None:
        raise InvalidToolSelection("Tool selection is not a JSON object", raw_text=raw_text)

    tool = obj.get("tool")
    args = obj.get("args")
    if not isinstance(tool, str) or not tool:
        raise InvalidToolSelection("Tool selection has no 'tool' name", raw_text=raw_text)
    if "args" not in obj:
        raise InvalidToolSelection(f"Tool selection for '{tool}' has no 'args'", raw_text=raw_text)
    if not isinstance(args, dict):
        raise InvalidToolSelection(f"Arguments for '{tool}' are not an object", raw_text=raw_text)

    entry = next((e for e in tools_catalog if e.name == tool), None)
    if entry is None:
        raise InvalidToolSelection(f"Unknown tool '{tool}'", raw_text=raw_text)

    schema = entry.input_schema or {}
    properties = schema.get("properties")
    if isinstance(properties, dict):
        extra = sorted(set(args) - set(properties))
        if extra:
            raise InvalidToolSelection(
                f"Arguments for '{tool}' contain undeclared keys: {', '.join(extra)}",
                raw_text=raw_text,
            )

    try:
        jsonschema.validate(instance=args, schema=schema)
    except jsonschema.ValidationError as ex:
        raise InvalidToolSelection(f"Arguments for '{tool}' violate its schema: {ex.message}", raw_text=raw_text) from ex
    except jsonschema.SchemaError as ex:
        raise InvalidToolSelection(f"Tool '{tool}' has an invalid input schema: {ex.message}", raw_text=raw_text) from ex

    return ToolInvocation(tool=tool, args=dict(args))


class IntentSynthesizer:
    """Turns conversation history into an instruction or a tool call."""

    def __init__(
        self,
        provider: CompletionProvider,
        *,
        max_tokens: int = 64,
        temperature: float = 0.3,
    ):
        self._provider = provider
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def synthesize(
        self,
        history: Sequence[ConversationMessage],
        agent_context: str,
        tools_catalog: Sequence[ToolCatalogEntry] | None = None,
    ) -> SynthesizedIntent:
        prompt = build_intent_prompt(agent_context, history, tools_catalog)
        system_prompt = TOOL_SELECTION_SYSTEM_PROMPT if tools_catalog else INTENT_SYSTEM_PROMPT
        text = await self._provider.complete(system_prompt, prompt, self._max_tokens, self._temperature)

        if tools_catalog:
            invocation = validate_tool_invocation(parse_json_object(text), tools_catalog, raw_text=text)
            logger.info(f"Synthesized tool call: {invocation.tool} args={sorted(invocation.args)}")
            return invocation

        if not text:
            raise MalformedResponse("Intent synthesis returned no text")
        logger.info(f"Synthesized instruction: {text[:200]}")
        return NaturalLanguageInstruction(text=text)
