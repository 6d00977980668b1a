from __future__ import annotations

import httpx

from prism_core.errors import EmptyResponseError
from prism_core.models import ChatMessage, ModelInfo
from prism_core.providers.base import HTTPProvider
from prism_core.providers.retry import DEFAULT_RETRY_OPTIONS, RetryOptions


class OpenAICompatProvider(HTTPProvider):
    """Any server exposing the OpenAI chat-completions wire shape (vLLM, LiteLLM, LM Studio...).

    Talks plain httpx instead of the openai SDK because authentication is
    optional here: the Authorization header is only sent when a key is set.
    """

    NAME = "openai-compat"

    def __init__(
        self,
        model: str,
        base_url: str,
        api_key: str = "",
        retry_options: RetryOptions = DEFAULT_RETRY_OPTIONS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(model, base_url, retry_options, transport)
        self.api_key = api_key

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _send(self, messages: list[ChatMessage]) -> str:
        response = await self._request(
            "POST",
            "/v1/chat/completions",
            {
                "model": self.model,
                "messages": [m.to_dict() for m in messages],
                "temperature": self.TEMPERATURE,
            },
        )
        data = self._json(response)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not content:
            raise EmptyResponseError(self.NAME)
        return content

    async def _fetch_models(self) -> list[ModelInfo]:
        data = self._json(await self._request("GET", "/v1/models"))
        return [
            ModelInfo(id=m["id"], name=m["id"], created=m.get("created"), owned_by=m.get("owned_by"))
            for m in data.get("data", [])
        ]
