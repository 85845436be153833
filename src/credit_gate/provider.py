from typing import Protocol, runtime_checkable

from credit_gate.errors import ConfigurationError


@runtime_checkable
class CompletionProvider(Protocol):
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Single non-streaming completion. Returns the stripped response text.

        Transport and API failures surface as UpstreamProviderError; nothing is retried.
        """
        ...


def create_provider(provider_name: str, api_key: str, model: str) -> CompletionProvider:
    """Factory: create a CompletionProvider by name."""
    name = provider_name.strip().lower()
    if name == "anthropic":
        from credit_gate.providers.anthropic_provider import AnthropicProvider
        return AnthropicProvider(api_key, model)
    if name == "openai":
        from credit_gate.providers.openai_provider import OpenAIProvider
        return OpenAIProvider(api_key, model)
    raise ConfigurationError(f"Unknown provider: {provider_name!r}. Supported: 'anthropic', 'openai'")
