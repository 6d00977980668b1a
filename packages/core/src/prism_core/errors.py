"""Exception hierarchy for the review pipeline.

Only ConfigurationError and ProviderError (after retries are exhausted) ever
escape run_review(). ResponseFormatError subclasses are raised inside the
result validator and converted into a fallback comment there.
"""

from __future__ import annotations


class PrismError(Exception):
    """Base class for every error raised by prism_core."""


class ConfigurationError(PrismError):
    """The resolved configuration cannot be used (bad value, missing credential)."""


class ProviderError(PrismError):
    """A model backend call failed. Retried by with_retry()."""


class NetworkError(ProviderError):
    """The request never produced an HTTP response (DNS, connect, reset...)."""


class ProviderTimeoutError(NetworkError):
    """A single attempt exceeded its time budget and was cancelled."""


class HttpError(ProviderError):
    def __init__(self, provider: str, status: int, body: str):
        self.provider = provider
        self.status = status
        self.body = body
        super().__init__(f"{provider} API error {status}: {body}")


class EmptyResponseError(ProviderError):
    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"Empty response from {provider}")


class ResponseFormatError(PrismError):
    """The model answered, but not in the contracted shape."""


class ParseError(ResponseFormatError):
    """The response text is not valid JSON."""


class SchemaValidationError(ResponseFormatError):
    """The response is valid JSON but does not match the review schema."""
