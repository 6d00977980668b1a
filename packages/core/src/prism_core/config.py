from __future__ import annotations

import json
from pathlib import Path
from typing import Literal, Optional
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel, to_snake

from prism_core.errors import ConfigurationError

ProviderType = Literal["openai", "anthropic", "openai-compat", "ollama"]
ReviewProfile = Literal["balanced", "security", "performance", "strict"]
CommentMode = Literal["summary-only", "inline+summary"]

DEFAULT_CONFIG: dict = {
    "provider": "openai",
    "profile": "balanced",
    "comment_mode": "summary-only",
    "max_files": 30,
    "max_diff_bytes": 100_000,
    "max_patch_bytes": 20_000,
    "exclude": [],  # extra noise patterns on top of diff.NOISE_PATTERNS
}

# Filled in when the config leaves them out, keyed on provider.
DEFAULT_API_KEY_ENVS: dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "openai-compat": "LLM_API_KEY",
    "ollama": "OLLAMA_HOST",
}
DEFAULT_MODELS: dict[str, str] = {
    "openai": "gpt-4o",
    "anthropic": "claude-sonnet-4-20250514",
    "ollama": "llama3.1:8b",
}

CONFIG_FILENAMES = (".prism.yml", ".prism.yaml", ".prismrc.json")


class PrismConfig(BaseModel):
    """Resolved, validated configuration for a single review run."""

    model_config = ConfigDict(frozen=True, extra="forbid", alias_generator=to_camel, populate_by_name=True)

    provider: ProviderType
    model: str = Field(min_length=1)
    api_key_env: str = Field(min_length=1)
    base_url: Optional[str] = None
    profile: ReviewProfile = "balanced"
    comment_mode: CommentMode = "summary-only"
    max_files: int = Field(default=30, gt=0)
    max_diff_bytes: int = Field(default=100_000, gt=0)
    max_patch_bytes: int = Field(default=20_000, gt=0)
    exclude: tuple[str, ...] = ()
    config_path: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _fill_provider_defaults(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        provider = data.get("provider")
        if not (data.get("api_key_env") or data.get("apiKeyEnv")) and provider in DEFAULT_API_KEY_ENVS:
            data["api_key_env"] = DEFAULT_API_KEY_ENVS[provider]
        if not data.get("model") and provider in DEFAULT_MODELS:
            data["model"] = DEFAULT_MODELS[provider]
        return data

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"base_url must be an http(s) URL, got {value!r}")
        return value

    @model_validator(mode="after")
    def _require_base_url(self) -> PrismConfig:
        if self.provider == "openai-compat" and not self.base_url:
            raise ValueError("base_url is required for the openai-compat provider")
        return self


def _snake_keys(data: dict) -> dict:
    # Config files may use the camelCase spelling (apiKeyEnv, maxDiffBytes).
    return {to_snake(k): v for k, v in data.items()}


def resolve_config(overrides: dict, base: Optional[dict] = None) -> PrismConfig:
    """Merge built-in defaults, *base* and *overrides* (later wins) and validate."""
    merged = {**DEFAULT_CONFIG, **_snake_keys(base or {}), **_snake_keys(overrides)}
    try:
        return PrismConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid PRism configuration:\n{e}") from e


def find_config_file(cwd: Optional[str] = None) -> Optional[Path]:
    root = Path(cwd) if cwd else Path.cwd()
    for name in CONFIG_FILENAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def load_config(
    config_path: Optional[str] = None,
    cli_overrides: Optional[dict] = None,
    cwd: Optional[str] = None,
) -> PrismConfig:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. The config file (``config_path``, or the first of CONFIG_FILENAMES in cwd)
      3. CLI argument overrides (None values are ignored)
    """
    if config_path:
        path: Optional[Path] = Path(config_path)
        if not path.is_file():
            raise ConfigurationError(f"Config file not found: {config_path}")
    else:
        path = find_config_file(cwd)

    file_config: dict = {}
    if path is not None:
        try:
            with open(path) as f:
                if path.suffix == ".json":
                    file_config = json.load(f)
                else:
                    file_config = yaml.safe_load(f) or {}
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Could not parse {path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"{path} must contain a mapping at the top level.")
        file_config["config_path"] = str(path)

    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return resolve_config(overrides, base=file_config)
