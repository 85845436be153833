import openai
from loguru import logger

from credit_gate.providers.common import upstream_errors


class OpenAIProvider:
    def __init__(self, api_key: str, model: str):
        self._client = openai.AsyncOpenAI(api_key=api_key)
        self._model = model

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        messages: list[dict] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        logger.debug(
            f"API request: model={self._model}, max_tokens={max_tokens}, "
            f"temperature={temperature}, prompt_chars={len(user_prompt)}"
        )
        with upstream_errors("openai", openai.OpenAIError):
            response = await self._client.chat.completions.create(
                model=self._model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=messages,
            )

        choice = response.choices[0] if response.choices else None
        text = ((choice.message.content if choice else None) or "").strip()
        logger.debug(
            f"API response: finish_reason={choice.finish_reason if choice else None}, len={len(text)}"
        )
        return text
