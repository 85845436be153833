import anthropic
from loguru import logger

from credit_gate.providers.common import upstream_errors


class AnthropicProvider:
    def __init__(self, api_key: str, model: str):
        self._client = anthropic.AsyncAnthropic(api_key=api_key)
        self._model = model

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        logger.debug(
            f"API request: model={self._model}, max_tokens={max_tokens}, "
            f"temperature={temperature}, prompt_chars={len(user_prompt)}"
        )
        kwargs: dict = dict(
            model=self._model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": user_prompt}],
        )
        if system_prompt:
            kwargs["system"] = system_prompt

        with upstream_errors("anthropic", anthropic.AnthropicError):
            response = await self._client.messages.create(**kwargs)

        usage = response.usage
        logger.debug(
            f"API response: stop_reason={response.stop_reason}, "
            f"input_tokens={usage.input_tokens}, output_tokens={usage.output_tokens}"
        )
        text_parts = [block.text for block in response.content if block.type == "text"]
        return "".join(text_parts).strip()
