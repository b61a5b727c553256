# src/llm/client_factory.py — v3
"""Factory: instantiate an AI client from a provider name.

Called by the composition root to create per-component clients based on
config resolution (see llm/config.py cascade).
"""

from __future__ import annotations

import importlib
import logging

from careerlens.config.settings import Settings
from careerlens.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)

# Registry of provider name → adapter class path (lazy import).
_PROVIDER_REGISTRY: dict[str, str] = {
    "openrouter": "careerlens.llm.adapters.openai_compat_adapter.OpenAICompatibleAdapter",
    "openai": "careerlens.llm.adapters.openai_compat_adapter.OpenAICompatibleAdapter",
}


class UnsupportedProviderError(ValueError):
    """Raised when a provider is not registered."""


def create_llm_client(
    provider: str,
    model: str,
    settings: Settings | None = None,
    **kwargs: object,
) -> BaseLLMClient:
    """Instantiate the correct adapter from provider name.

    Args:
        provider: Provider identifier (openrouter, openai).
        model: Model name (e.g. google/gemini-flash-1.5-8b).
        settings: Application settings (for API keys and base URLs).
        **kwargs: Additional adapter arguments (``http``, ``timeout_s``...).

    Returns:
        Configured BaseLLMClient instance.

    Raises:
        UnsupportedProviderError: If provider is not registered.
    """
    if provider not in _PROVIDER_REGISTRY:
        raise UnsupportedProviderError(
            f"Unsupported LLM provider: {provider!r}. "
            f"Available: {', '.join(sorted(_PROVIDER_REGISTRY))}"
        )

    adapter_cls = _import_class(_PROVIDER_REGISTRY[provider])

    init_kwargs = dict(kwargs)
    init_kwargs["model"] = model
    init_kwargs.setdefault("provider", provider)

    if settings is not None:
        init_kwargs.setdefault("api_key", settings.api_key_for(provider))
        base_url = settings.base_url_for(provider)
        if base_url:
            init_kwargs.setdefault("base_url", base_url)
        if provider == "openrouter":
            init_kwargs.setdefault("extra_headers", {
                "HTTP-Referer": settings.ai_http_referer,
                "X-Title": settings.ai_app_title,
            })

    logger.debug("Creating LLM client: provider=%s, model=%s", provider, model)
    return adapter_cls(**init_kwargs)


def register_provider(name: str, class_path: str) -> None:
    """Register a custom provider adapter.

    Args:
        name: Provider identifier.
        class_path: Fully qualified class path implementing BaseLLMClient.
    """
    _PROVIDER_REGISTRY[name] = class_path
    logger.info("Registered LLM provider: %s → %s", name, class_path)


def _import_class(class_path: str) -> type:
    """Dynamically import a class from its fully qualified path."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
