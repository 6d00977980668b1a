from __future__ import annotations

import re
from datetime import datetime

import httpx

from prism_core.errors import EmptyResponseError
from prism_core.models import ChatMessage, ModelInfo
from prism_core.providers.base import HTTPProvider
from prism_core.providers.retry import DEFAULT_RETRY_OPTIONS, RetryOptions

DEFAULT_OLLAMA_HOST = "http://localhost:11434"

_EXTRA_FRACTION_RE = re.compile(r"(\.\d{6})\d+")

# Suggested when the daemon has nothing pulled yet.
OLLAMA_RECOMMENDED_MODELS = (
    "llama3.1:8b",
    "llama3.1:70b",
    "deepseek-coder-v2:16b",
    "codellama:13b",
    "qwen2.5-coder:7b",
    "mistral:7b",
)


def _parse_timestamp(value: str | None) -> float | None:
    if not value:
        return None
    # Ollama emits nanosecond precision; datetime stops at microseconds.
    value = _EXTRA_FRACTION_RE.sub(r"\1", value.replace("Z", "+00:00"))
    try:
        return datetime.fromisoformat(value).timestamp()
    except ValueError:
        return None


class OllamaProvider(HTTPProvider):
    """Local Ollama daemon. No auth, single-shot (non-streaming) responses."""

    NAME = "Ollama"

    def __init__(
        self,
        model: str,
        host: str = DEFAULT_OLLAMA_HOST,
        retry_options: RetryOptions = DEFAULT_RETRY_OPTIONS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(model, host, retry_options, transport)

    async def _send(self, messages: list[ChatMessage]) -> str:
        response = await self._request(
            "POST",
            "/api/chat",
            {
                "model": self.model,
                "messages": [m.to_dict() for m in messages],
                "stream": False,
                "options": {"temperature": self.TEMPERATURE},
            },
        )
        message = self._json(response).get("message")
        content = message.get("content") if isinstance(message, dict) else None
        if not content:
            raise EmptyResponseError(self.NAME)
        return content

    async def _fetch_models(self) -> list[ModelInfo]:
        data = self._json(await self._request("GET", "/api/tags"))
        return [
            ModelInfo(
                id=m["name"],
                name=m["name"],
                created=_parse_timestamp(m.get("modified_at")),
                owned_by=(m.get("details") or {}).get("family"),
            )
            for m in data.get("models", [])
        ]
