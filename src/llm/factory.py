"""Build the triage LLM provider from config, env vars or an explicit key."""

import os
from typing import NamedTuple

import structlog

from .base import LLMError, LLMProvider

logger = structlog.get_logger()


class _ProviderSpec(NamedTuple):
    env_var: str
    key_prefix: str
    triage_model: str


# Detection order matters: "sk-ant-" must be tried before the bare "sk-" prefix.
_PROVIDERS: dict[str, _ProviderSpec] = {
    "claude": _ProviderSpec("ANTHROPIC_API_KEY", "sk-ant-", "claude-haiku-4-5"),
    "openai": _ProviderSpec("OPENAI_API_KEY", "sk-", "gpt-4o-mini"),
    "gemini": _ProviderSpec("GOOGLE_API_KEY", "AIza", "gemini-2.0-flash"),
}


def _provider_class(name: str) -> type[LLMProvider]:
    # Provider SDKs are optional extras, imported on demand
    if name == "claude":
        from .providers.claude import ClaudeProvider

        return ClaudeProvider
    if name == "openai":
        from .providers.openai import OpenAIProvider

        return OpenAIProvider
    if name == "gemini":
        from .providers.gemini import GeminiProvider

        return GeminiProvider
    raise LLMError(f"Unknown provider: {name}. Use: {', '.join(_PROVIDERS)}")


def _auto_detect_provider(api_key: str | None = None) -> str:
    """Pick a provider from the key prefix, then from whichever env var is set."""
    if api_key:
        for name, spec in _PROVIDERS.items():
            if api_key.startswith(spec.key_prefix):
                return name

    for name, spec in _PROVIDERS.items():
        if os.getenv(spec.env_var):
            return name
    env_vars = ", ".join(spec.env_var for spec in _PROVIDERS.values())
    raise LLMError(f"No LLM API key found. Set one of: {env_vars}")


def create_llm_provider(
    provider: str | None = None,
    api_key: str | None = None,
    model: str | None = None,
    client=None,
) -> LLMProvider:
    """Create an LLM provider instance.

    Args:
        provider: "claude", "openai", "gemini", "auto", or None (auto-detect)
        api_key: Explicit API key (overrides env var)
        model: Model name (None = provider default)
        client: Pre-built SDK client for testing/DI
    """
    name = provider or "auto"
    if name == "auto":
        name = _auto_detect_provider(api_key)

    cls = _provider_class(name)
    if not api_key and not client:
        api_key = os.getenv(_PROVIDERS[name].env_var)
    return cls(api_key=api_key, model=model, client=client)


def create_cheap_provider(
    provider: str | None = None,
    api_key: str | None = None,
    model: str | None = None,
    client=None,
) -> LLMProvider:
    """Like create_llm_provider, defaulting to the provider's small triage model."""
    name = provider or "auto"
    if name == "auto":
        name = _auto_detect_provider(api_key)
    if name not in _PROVIDERS:
        raise LLMError(f"Unknown provider: {name}. Use: {', '.join(_PROVIDERS)}")
    return create_llm_provider(
        provider=name,
        api_key=api_key,
        model=model or _PROVIDERS[name].triage_model,
        client=client,
    )


def provider_from_config(llm_config) -> LLMProvider | None:
    """Build the triage provider from an LLMConfig. provider="none" disables AI."""
    if llm_config.provider == "none":
        return None
    provider = create_cheap_provider(
        provider=llm_config.provider,
        api_key=llm_config.api_key or None,
        model=llm_config.model,
    )
    logger.debug("llm.provider_ready", provider=provider.provider_name, model=provider.model)
    return provider
