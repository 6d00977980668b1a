"""Base provider implementing the Template Method pattern.

All backends share the same public behaviour:
    chat()        → with_retry() → _send()          ← differs per provider
    list_models() → _fetch_models() → _rank_models() ← differs per provider
                    └ on any failure → _fallback_models()

Subclasses implement two things only:
  - _send: make one chat request and return the response text
  - _fetch_models: make one model-listing request

Retry, timeout and the never-raise guarantee of list_models() live here so
they are defined once and inherited consistently by every provider.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Sequence

import httpx

from prism_core.errors import EmptyResponseError, HttpError, NetworkError
from prism_core.models import ChatMessage, ModelInfo
from prism_core.providers.retry import DEFAULT_RETRY_OPTIONS, RetryOptions, sanitize_headers, with_retry

logger = logging.getLogger(__name__)

# Shared defaults; subclasses may override as class attributes.
_TEMPERATURE = 0.2
_MAX_TOKENS = 4096


class BaseProvider(ABC):
    NAME: str = "provider"
    TEMPERATURE: float = _TEMPERATURE
    MAX_TOKENS: int = _MAX_TOKENS

    def __init__(self, model: str, retry_options: RetryOptions = DEFAULT_RETRY_OPTIONS):
        self.model = model
        self.retry_options = retry_options

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    async def chat(self, messages: Sequence[ChatMessage]) -> str:
        """Send one chat request and return the model's text.

        Raises NetworkError, HttpError or EmptyResponseError once every
        retry attempt has failed.
        """
        messages = list(messages)
        return await with_retry(lambda: self._send(messages), self.retry_options, label=self.NAME)

    async def list_models(self) -> list[ModelInfo]:
        """Return the models this backend offers. Never raises."""
        try:
            models = await self._fetch_models()
        except Exception as e:
            fallback = self._fallback_models()
            logger.warning("%s: could not list models (%s); using %d fallback model(s)", self.NAME, e, len(fallback))
            return fallback
        return self._rank_models(models)

    # ------------------------------------------------------------------ #
    # Abstract: implement in each provider                                #
    # ------------------------------------------------------------------ #

    @abstractmethod
    async def _send(self, messages: list[ChatMessage]) -> str:
        """Make a single chat request and return the raw text response.

        Must raise on failure; with_retry handles retries and logging.
        """

    @abstractmethod
    async def _fetch_models(self) -> list[ModelInfo]:
        """Make a single model-listing request. May raise."""

    # ------------------------------------------------------------------ #
    # Overridable hooks                                                    #
    # ------------------------------------------------------------------ #

    def _fallback_models(self) -> list[ModelInfo]:
        return []

    def _rank_models(self, models: list[ModelInfo]) -> list[ModelInfo]:
        return models


class HTTPProvider(BaseProvider):
    """Base for providers that speak plain JSON over httpx rather than an SDK.

    A new AsyncClient is opened per request inside ``async with`` so a
    cancelled attempt closes its connection.
    """

    def __init__(
        self,
        model: str,
        base_url: str,
        retry_options: RetryOptions = DEFAULT_RETRY_OPTIONS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(model, retry_options)
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    async def _request(self, method: str, path: str, payload: dict | None = None) -> httpx.Response:
        url = f"{self.base_url}{path}"
        headers = self._headers()
        logger.debug("%s %s %s headers=%s", self.NAME, method, url, sanitize_headers(headers))
        try:
            # Timeouts are owned by with_retry, not by httpx.
            async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
                response = await client.request(method, url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            raise NetworkError(f"{self.NAME} request to {url} failed: {e}") from e
        if not response.is_success:
            raise HttpError(self.NAME, response.status_code, response.text or "unknown")
        return response

    def _json(self, response: httpx.Response) -> dict:
        try:
            data = response.json()
        except ValueError as e:
            raise EmptyResponseError(self.NAME) from e
        if not isinstance(data, dict):
            raise EmptyResponseError(self.NAME)
        return data
