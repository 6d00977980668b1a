from __future__ import annotations

from prism_core.errors import EmptyResponseError, HttpError, NetworkError
from prism_core.models import ChatMessage, ModelInfo
from prism_core.providers.base import BaseProvider
from prism_core.providers.retry import DEFAULT_RETRY_OPTIONS, RetryOptions

ANTHROPIC_API = "https://api.anthropic.com"

# Returned by list_models() when the models endpoint is unreachable.
FALLBACK_MODELS = (
    ModelInfo(id="claude-sonnet-4-20250514", name="Claude Sonnet 4"),
    ModelInfo(id="claude-haiku-4-20250514", name="Claude Haiku 4"),
    ModelInfo(id="claude-3-5-sonnet-20241022", name="Claude 3.5 Sonnet"),
    ModelInfo(id="claude-3-5-haiku-20241022", name="Claude 3.5 Haiku"),
    ModelInfo(id="claude-3-opus-20240229", name="Claude 3 Opus"),
)


class AnthropicProvider(BaseProvider):
    NAME = "Anthropic"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = ANTHROPIC_API,
        retry_options: RetryOptions = DEFAULT_RETRY_OPTIONS,
        client=None,
    ):
        super().__init__(model, retry_options)
        self.base_url = base_url.rstrip("/")
        if client is None:
            try:
                from anthropic import AsyncAnthropic
            except ImportError:
                raise ImportError(
                    "The 'anthropic' package is required for this provider. "
                    "Install it with: pip install 'prism-review[anthropic]'"
                )
            # The SDK sends x-api-key and anthropic-version itself.
            client = AsyncAnthropic(api_key=api_key, base_url=self.base_url, max_retries=0, timeout=None)
        self.client = client

    async def _send(self, messages: list[ChatMessage]) -> str:
        import anthropic

        # The Messages API takes the system prompt as its own field.
        system = next((m.content for m in messages if m.role == "system"), "")
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.MAX_TOKENS,
                system=system,
                messages=[m.to_dict() for m in messages if m.role != "system"],
            )
        except anthropic.APIStatusError as e:
            raise HttpError(self.NAME, e.status_code, e.response.text or "unknown") from e
        except anthropic.APIConnectionError as e:
            raise NetworkError(f"{self.NAME} request failed: {e}") from e

        text = next((block.text for block in response.content if block.type == "text"), "")
        if not text:
            raise EmptyResponseError(self.NAME)
        return text

    async def _fetch_models(self) -> list[ModelInfo]:
        return [
            ModelInfo(
                id=m.id,
                name=m.display_name or m.id,
                created=m.created_at.timestamp() if m.created_at else None,
            )
            async for m in self.client.models.list()
        ]

    def _fallback_models(self) -> list[ModelInfo]:
        return list(FALLBACK_MODELS)

    def _rank_models(self, models: list[ModelInfo]) -> list[ModelInfo]:
        return sorted(models, key=lambda m: -(m.created or 0))
