from __future__ import annotations

try:
    import openai as _openai
except ImportError:
    _openai = None  # type: ignore[assignment]

from prism_core.errors import EmptyResponseError, HttpError, NetworkError
from prism_core.models import ChatMessage, ModelInfo
from prism_core.providers.base import BaseProvider
from prism_core.providers.retry import DEFAULT_RETRY_OPTIONS, RetryOptions

OPENAI_API = "https://api.openai.com"

# Listed first by list_models(), ahead of the many snapshot/audio/embedding ids.
FEATURED_MODELS = frozenset(
    {
        "gpt-4.1",
        "gpt-4.1-mini",
        "gpt-4.1-nano",
        "gpt-4o",
        "gpt-4o-mini",
        "o3",
        "o3-mini",
        "o4-mini",
    }
)


class OpenAIProvider(BaseProvider):
    NAME = "OpenAI"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = OPENAI_API,
        retry_options: RetryOptions = DEFAULT_RETRY_OPTIONS,
        client=None,
    ):
        super().__init__(model, retry_options)
        self.base_url = base_url.rstrip("/")
        if client is None:
            if _openai is None:
                raise ImportError(
                    "The 'openai' package is required for this provider. Install it with: pip install 'prism-review[openai]'"
                )
            # Retries and timeouts belong to with_retry, so the SDK's own are disabled.
            client = _openai.AsyncOpenAI(
                api_key=api_key,
                base_url=f"{self.base_url}/v1",
                max_retries=0,
                timeout=None,
            )
        self.client = client

    async def _send(self, messages: list[ChatMessage]) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[m.to_dict() for m in messages],
                temperature=self.TEMPERATURE,
                response_format={"type": "json_object"},
            )
        except _openai.APIStatusError as e:
            raise HttpError(self.NAME, e.status_code, e.response.text or "unknown") from e
        except _openai.APIConnectionError as e:
            raise NetworkError(f"{self.NAME} request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise EmptyResponseError(self.NAME)
        return content

    async def _fetch_models(self) -> list[ModelInfo]:
        return [
            ModelInfo(
                id=m.id,
                name=m.id,
                created=m.created,
                owned_by=m.owned_by,
                featured=m.id in FEATURED_MODELS,
            )
            async for m in self.client.models.list()
        ]

    def _rank_models(self, models: list[ModelInfo]) -> list[ModelInfo]:
        # Featured first, then newest first.
        return sorted(models, key=lambda m: (not m.featured, -(m.created or 0)))
