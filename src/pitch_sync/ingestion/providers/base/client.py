from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from .errors import (
    ProviderNotFound,
    ProviderParseError,
    ProviderRateLimited,
    ProviderTimeout,
    ProviderUnavailable,
)

Json = dict[str, Any]


def raise_for_provider_status(resp: httpx.Response) -> None:
    """
    Translate a non-2xx response into the provider error taxonomy.

    404 is terminal (ProviderNotFound); 429 is ProviderRateLimited; every other
    failure status, 5xx included, is ProviderUnavailable.
    """
    if resp.is_success:
        return
    where = f"{resp.request.method} {resp.request.url}"
    if resp.status_code == 404:
        raise ProviderNotFound(f"HTTP 404 for {where}")
    if resp.status_code == 429:
        raise ProviderRateLimited(f"Rate limited (HTTP 429) on {where}")
    raise ProviderUnavailable(f"HTTP {resp.status_code} for {where}")


def decode_json_object(resp: httpx.Response) -> Json:
    try:
        data = resp.json()
    except ValueError as e:
        raise ProviderParseError(
            "Response was not valid JSON.", context={"url": str(resp.request.url)}
        ) from e
    if not isinstance(data, dict):
        raise ProviderParseError(
            f"Expected JSON object, got {type(data).__name__}",
            context={"url": str(resp.request.url)},
        )
    return data


@dataclass
class BaseHttpClient:
    """
    Thin httpx wrapper shared by provider clients.

    One pooled httpx.Client per instance. Only GET is needed upstream; retries
    and fallbacks belong to the provider gateway, not here.
    """

    base_url: str
    timeout_s: float = 15.0
    connect_timeout_s: float = 10.0
    headers: Mapping[str, str] = field(default_factory=dict)

    transport: httpx.BaseTransport | None = None

    def __post_init__(self) -> None:
        self._client = httpx.Client(
            base_url=self.base_url.rstrip("/") + "/",
            timeout=httpx.Timeout(self.timeout_s, connect=self.connect_timeout_s),
            headers=dict(self.headers),
            transport=self.transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> BaseHttpClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def get_json(self, path: str, *, params: Mapping[str, Any] | None = None) -> Json:
        """GET `path` relative to base_url and return the decoded JSON object."""
        url = path.lstrip("/")
        try:
            resp = self._client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise ProviderTimeout(f"Timed out on GET {url}: {e}") from e
        except httpx.TransportError as e:
            raise ProviderUnavailable(f"Network error on GET {url}: {e}") from e

        raise_for_provider_status(resp)
        return decode_json_object(resp)
