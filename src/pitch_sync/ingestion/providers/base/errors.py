from __future__ import annotations


class ProviderError(RuntimeError):
    """Base exception for provider-related failures."""


class ProviderRequestError(ProviderError):
    """HTTP/network/transport layer failures (timeouts, connection errors, non-2xx, etc.)."""


class ProviderNotFound(ProviderRequestError):
    """The resource does not exist upstream (HTTP 404). Terminal: never retried."""


class ProviderTransientError(ProviderRequestError):
    """A failure worth retrying with backoff."""


class ProviderRateLimited(ProviderTransientError):
    """Provider throttled the request (e.g., HTTP 429)."""


class ProviderTimeout(ProviderTransientError):
    """The request did not complete within the configured timeout."""


class ProviderUnavailable(ProviderTransientError):
    """Network failure, 5xx, or every retrieval strategy was exhausted."""


class ProviderParseError(ProviderError):
    """Payload did not have the expected shape; switches the fetch strategy."""

    def __init__(self, message: str, context: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if not self.context:
            return self.message
        return f"{self.message} | context={self.context}"
