# =============================================================================
# LLM Providers — Anthropic and OpenAI-Compatible Backends
# =============================================================================
#
# A single `complete()` interface over two SDKs:
#
#   LLMProvider (Protocol)
#   ├── OpenAICompatibleProvider — OpenAI, DeepSeek, Qwen, ... (default)
#   │   └── system prompt sent as the first message
#   ├── AnthropicProvider        — Claude via the native SDK
#   │   └── system prompt sent as the top-level `system=` kwarg
#   └── get_llm_provider()       — cached instance built from settings
#
# SDK imports are deferred to construction so the web app starts without
# an LLM key configured; only the fact endpoint needs one.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from funnel.config import Settings, settings

logger = logging.getLogger(__name__)


class LLMConfigurationError(ValueError):
    """No usable API key or provider for the configured LLM."""


@dataclass
class LLMResponse:
    """Provider-independent completion result."""

    content: str           # Generated text
    model: str             # Model that produced it
    input_tokens: int
    output_tokens: int


class LLMProvider(Protocol):
    """Anything with an async `complete()` of this shape."""

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """
        Generate a completion.

        Args:
            messages: `{"role": "user" | "assistant", "content": ...}` dicts.
            system: System prompt, placed however the provider expects it.
            temperature: Overrides `llm_temperature`.
            max_tokens: Overrides `llm_max_tokens`.
        """
        ...


class OpenAICompatibleProvider:
    """
    Provider for the OpenAI API or any endpoint speaking the same protocol.

    Point LLM_BASE_URL at another vendor to switch models without code
    changes.
    """

    def __init__(self, config: Settings | None = None) -> None:
        from openai import AsyncOpenAI

        config = config or settings
        api_key = config.llm_api_key or config.openai_api_key
        if not api_key:
            raise LLMConfigurationError(
                "No API key configured for the OpenAI-compatible provider. "
                "Set LLM_API_KEY or OPENAI_API_KEY."
            )

        client_kwargs: dict = {"api_key": api_key}
        if config.llm_base_url:
            client_kwargs["base_url"] = config.llm_base_url

        self._client = AsyncOpenAI(**client_kwargs)
        self._model = config.llm_model
        self._temperature = config.llm_temperature
        self._max_tokens = config.llm_max_tokens

        logger.info(
            "Initialized OpenAICompatibleProvider (model=%s, base_url=%s)",
            self._model,
            config.llm_base_url or "https://api.openai.com/v1",
        )

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        all_messages: list[dict[str, str]] = []
        if system:
            all_messages.append({"role": "system", "content": system})
        all_messages.extend(messages)

        response = await self._client.chat.completions.create(
            model=self._model,
            messages=all_messages,
            max_tokens=max_tokens or self._max_tokens,
            temperature=self._temperature if temperature is None else temperature,
        )

        usage = response.usage
        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=response.model or self._model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )


class AnthropicProvider:
    """Claude via `anthropic.AsyncAnthropic`."""

    def __init__(self, config: Settings | None = None) -> None:
        from anthropic import AsyncAnthropic

        config = config or settings
        api_key = config.llm_api_key or config.anthropic_api_key
        if not api_key:
            raise LLMConfigurationError(
                "No Anthropic API key configured. Set LLM_API_KEY or "
                "ANTHROPIC_API_KEY."
            )

        self._client = AsyncAnthropic(api_key=api_key)
        self._model = config.llm_model
        self._temperature = config.llm_temperature
        self._max_tokens = config.llm_max_tokens

        logger.info("Initialized AnthropicProvider (model=%s)", self._model)

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        kwargs: dict = {
            "model": self._model,
            "messages": messages,
            "max_tokens": max_tokens or self._max_tokens,
            "temperature": self._temperature if temperature is None else temperature,
        }
        if system:
            kwargs["system"] = system

        response = await self._client.messages.create(**kwargs)

        content = next(
            (block.text for block in response.content if block.type == "text"),
            "",
        )
        return LLMResponse(
            content=content,
            model=response.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )


_PROVIDERS: dict[str, type[OpenAICompatibleProvider] | type[AnthropicProvider]] = {
    "openai_compatible": OpenAICompatibleProvider,
    "anthropic": AnthropicProvider,
}

_provider: OpenAICompatibleProvider | AnthropicProvider | None = None


def build_llm_provider(
    config: Settings,
) -> OpenAICompatibleProvider | AnthropicProvider:
    """
    Construct the provider named by `config.llm_provider`.

    Raises:
        LLMConfigurationError: Unknown provider name or missing API key.
    """
    provider_cls = _PROVIDERS.get(config.llm_provider)
    if provider_cls is None:
        raise LLMConfigurationError(
            f"Unknown LLM provider '{config.llm_provider}'. "
            f"Supported: {sorted(_PROVIDERS)}"
        )
    return provider_cls(config)


def get_llm_provider() -> OpenAICompatibleProvider | AnthropicProvider:
    """FastAPI dependency returning the process-wide provider, built lazily."""
    global _provider
    if _provider is None:
        _provider = build_llm_provider(settings)
    return _provider
