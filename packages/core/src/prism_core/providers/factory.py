from __future__ import annotations

import os
from typing import Callable, Optional

from prism_core.config import PrismConfig
from prism_core.errors import ConfigurationError
from prism_core.providers.anthropic import AnthropicProvider
from prism_core.providers.base import BaseProvider
from prism_core.providers.ollama import DEFAULT_OLLAMA_HOST, OllamaProvider
from prism_core.providers.openai import OPENAI_API, OpenAIProvider
from prism_core.providers.openai_compat import OpenAICompatProvider
from prism_core.providers.retry import DEFAULT_RETRY_OPTIONS, RetryOptions

EnvLookup = Callable[[str], Optional[str]]

# Providers that work without a credential.
_KEY_OPTIONAL = {"openai-compat", "ollama"}


def resolve_api_key(config: PrismConfig, env: EnvLookup = os.environ.get) -> str:
    value = env(config.api_key_env)
    if not value and config.provider not in _KEY_OPTIONAL:
        raise ConfigurationError(f'Missing API key: environment variable "{config.api_key_env}" is not set.')
    return value or ""


def create_provider(
    config: PrismConfig,
    env: EnvLookup = os.environ.get,
    retry_options: RetryOptions = DEFAULT_RETRY_OPTIONS,
) -> BaseProvider:
    """Build the provider named by ``config.provider``.

    ``env`` is the only way credentials are read, so tests can pass a dict's
    ``get`` instead of touching the process environment.
    """
    provider = config.provider

    if provider == "openai":
        return OpenAIProvider(
            api_key=resolve_api_key(config, env),
            model=config.model,
            base_url=config.base_url or OPENAI_API,
            retry_options=retry_options,
        )

    if provider == "anthropic":
        return AnthropicProvider(
            api_key=resolve_api_key(config, env),
            model=config.model,
            retry_options=retry_options,
        )

    if provider == "openai-compat":
        if not config.base_url:
            raise ConfigurationError("base_url is required for the openai-compat provider")
        return OpenAICompatProvider(
            model=config.model,
            base_url=config.base_url,
            api_key=resolve_api_key(config, env),
            retry_options=retry_options,
        )

    if provider == "ollama":
        return OllamaProvider(
            model=config.model,
            host=config.base_url or DEFAULT_OLLAMA_HOST,
            retry_options=retry_options,
        )

    raise ConfigurationError(
        f"Unknown provider: {provider!r}. Choose 'openai', 'anthropic', 'openai-compat' or 'ollama'."
    )
