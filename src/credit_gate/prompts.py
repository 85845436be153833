"""Prompt files and the prompt templates built around them.

The router and agent prompts are deployment configuration: they live as plain
text files (``llm-router.prompt`` and ``agent.prompt``) in the prompt directory
and are re-read whenever their modification time changes.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from loguru import logger

from credit_gate.models import ConversationMessage, ToolCatalogEntry

AGENT_PROMPT_FILE = "agent.prompt"
ROUTER_PROMPT_FILE = "llm-router.prompt"

_FALLBACK_PROMPTS = {
    AGENT_PROMPT_FILE: """\
You are a helpful AI assistant. Please provide accurate and helpful responses to user queries.

If you cannot access the specific prompt file, please respond with general helpful information \
while noting that the specialized prompt could not be loaded.""",
    ROUTER_PROMPT_FILE: """\
You are an assistant that routes user messages. If you cannot access the specific prompt file, \
respond with 'no_action' and ask the user to clarify their request.""",
}

ROUTER_SYSTEM_PROMPT = (
    "You are an assistant that decides how to process messages in a chat with a paid agent. "
    "Only respond with a valid JSON with the action and a reason if applicable."
)

INTENT_SYSTEM_PROMPT = (
    "You synthesize the user's intent from a conversation into a single, clear English sentence "
    "suitable as an instruction for the given agent context. Be concise and specific."
)

TOOL_SELECTION_SYSTEM_PROMPT = (
    "You convert conversation intent into a strict JSON tool call that adheres to the provided "
    "MCP tools' input schemas. Return ONLY valid JSON with tool and args."
)

TITLE_SYSTEM_PROMPT = (
    "You create short, professional titles for chats with a paid agent. Favor concrete subjects, "
    "places, timeframes, or actions. Use Title Case, avoid emojis and terminal punctuation."
)


@dataclass
class _CachedPrompt:
    content: str
    mtime: float


class PromptLoader:
    """Loads prompt files from a directory, caching each by modification time."""

    def __init__(self, directory: str | Path | None = None):
        self._directory = Path(directory) if directory else Path.cwd()
        self._cache: dict[str, _CachedPrompt] = {}

    def load(self, filename: str) -> str:
        path = self._directory / filename
        try:
            mtime = path.stat().st_mtime
            cached = self._cache.get(filename)
            if cached is not None and mtime <= cached.mtime:
                return cached.content
            content = path.read_text(encoding="utf-8")
        except OSError as ex:
            logger.warning(f"Prompt {filename} unavailable ({ex}); using fallback")
            return _FALLBACK_PROMPTS.get(
                filename, f"Default prompt for {filename}. Please provide helpful responses."
            )

        self._cache[filename] = _CachedPrompt(content=content, mtime=mtime)
        logger.info(f"Prompt {filename} loaded")
        return content

    def reload(self, filename: str) -> str:
        self._cache.pop(filename, None)
        return self.load(filename)

    def cached(self, filename: str) -> str | None:
        entry = self._cache.get(filename)
        return entry.content if entry else None

    def agent_prompt(self) -> str:
        return self.load(AGENT_PROMPT_FILE)

    def router_prompt(self) -> str:
        return self.load(ROUTER_PROMPT_FILE)


def format_transcript(history: Sequence[ConversationMessage]) -> str:
    return "\n".join(
        f"{'User' if msg.role == 'user' else 'Assistant'}: {msg.content}" for msg in history
    )


def build_router_prompt(
    base_prompt: str,
    message: str,
    history: Sequence[ConversationMessage],
    credits: int,
) -> str:
    history_json = json.dumps([msg.to_dict() for msg in history])
    return f"""{base_prompt}

Conversation history (for context):
{history_json}

User message:
"{message}"

User credits: {credits}

Response:"""


def build_intent_prompt(
    agent_context: str,
    history: Sequence[ConversationMessage],
    tools_catalog: Sequence[ToolCatalogEntry] | None = None,
) -> str:
    if tools_catalog:
        catalog_json = json.dumps([entry.to_dict() for entry in tools_catalog])
        task = f"""

Available MCP tools (with input schemas):
{catalog_json}

Task: Choose the most appropriate tool and produce ONLY a JSON object with this shape:
{{ "tool": "<tool_name>", "args": {{ /* keys and values matching the tool's inputSchema */ }} }}
- Ensure args strictly follow the inputSchema types and required fields.
- Do NOT add fields that are not in the schema.
- If multiple tools apply, pick the most specific.
- Do not include any explanations, only the JSON."""
    else:
        task = """

Task: Synthesize ONE clear English sentence that captures the user's intent suitable as an \
instruction for the agent above. Do not include system text, disclaimers, or extra commentary. \
Return only the sentence."""

    return f"""Agent Context (domain and behavior):
{agent_context}

Conversation history:
{format_transcript(history)}{task}

Response:"""


def build_title_prompt(history: Sequence[ConversationMessage]) -> str:
    return (
        "You are generating a concise title for a conversation with a paid agent. Produce a short, "
        "clear title (6-10 words) that captures the user's goal or topic. Use Title Case, no emojis, "
        "and no trailing period.\n\n"
        f"Conversation history:\n{format_transcript(history)}\n\nTitle:"
    )
