from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx

from pitch_sync.core.config import settings
from pitch_sync.db.enums import FidelityEnum
from pitch_sync.ingestion.providers.base.adapter import PageFetcher
from pitch_sync.ingestion.providers.base.client import BaseHttpClient, Json
from pitch_sync.ingestion.providers.base.errors import (
    ProviderError,
    ProviderParseError,
    ProviderTransientError,
    ProviderUnavailable,
)
from pitch_sync.ingestion.providers.base.types import FetchResult, ResourceDescriptor, Strategy

logger = logging.getLogger(__name__)


def sofascore_headers(user_agent: str | None = None) -> dict[str, str]:
    return {
        "User-Agent": user_agent or settings.user_agent,
        "Accept": "application/json",
        "Referer": settings.sofascore_web_base_url.rstrip("/") + "/",
    }


def validate_shape(resource: ResourceDescriptor, payload: Json) -> None:
    """Raise ProviderParseError unless payload has the resource's top-level key and type."""
    if resource.required_key not in payload:
        raise ProviderParseError(
            f"Missing '{resource.required_key}' in payload",
            context={"resource": resource.label, "keys": sorted(payload)[:10]},
        )
    value = payload[resource.required_key]
    if not isinstance(value, resource.required_type):
        raise ProviderParseError(
            f"Expected '{resource.required_key}' to be {resource.required_type.__name__}, "
            f"got {type(value).__name__}",
            context={"resource": resource.label},
        )


@dataclass
class SofaScoreClient:
    """
    Fetch gateway for the SofaScore API with a browser fallback.

    Strategies are tried in order (API, then browser). The API strategy retries
    transient failures with exponential backoff; a 404 is terminal; a payload
    with the wrong shape abandons the API strategy immediately.
    """

    http: BaseHttpClient
    browser: PageFetcher | None = None

    max_retries: int = 3
    backoff_base_s: float = 1.0
    backoff_multiplier: float = 1.5
    jitter_min_s: float = 1.0
    jitter_max_s: float = 3.0

    _sleep: Callable[[float], Any] = field(default=time.sleep, repr=False)
    _uniform: Callable[[float, float], float] = field(default=random.uniform, repr=False)

    @classmethod
    def from_settings(
        cls,
        *,
        transport: httpx.BaseTransport | None = None,
        browser: PageFetcher | None = None,
    ) -> SofaScoreClient:
        http = BaseHttpClient(
            base_url=settings.sofascore_api_base_url,
            timeout_s=settings.http_timeout_s,
            headers=sofascore_headers(),
            transport=transport,
        )
        return cls(
            http=http,
            browser=browser,
            max_retries=settings.fetch_max_retries,
            backoff_base_s=settings.fetch_backoff_base_s,
            backoff_multiplier=settings.fetch_backoff_multiplier,
            jitter_min_s=settings.fetch_jitter_min_s,
            jitter_max_s=settings.fetch_jitter_max_s,
        )

    def close(self) -> None:
        self.http.close()
        if self.browser is not None:
            self.browser.close()

    def __enter__(self) -> SofaScoreClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def backoff_delay(self, retry_index: int) -> float:
        """Delay before retry number `retry_index` (0-based): 1.0, 1.5, 2.25 s with defaults."""
        return self.backoff_base_s * (self.backoff_multiplier**retry_index)

    def fetch(self, resource: ResourceDescriptor) -> FetchResult:
        """
        Retrieve one resource.

        Raises:
          ProviderNotFound     immediately on upstream 404
          ProviderUnavailable  when the browser fallback also failed
          the last API error   when no fallback exists for the resource
        """
        strategies = [Strategy.API]
        if self.browser is not None and resource.browser_capable:
            strategies.append(Strategy.BROWSER)

        attempts = 0
        api_error: ProviderError | None = None

        for strategy in strategies:
            if strategy is Strategy.API:
                for retry_index in range(self.max_retries + 1):
                    attempts += 1
                    try:
                        payload = self.http.get_json(resource.api_path, params=resource.params or None)
                        validate_shape(resource, payload)
                    except ProviderParseError as e:
                        api_error = e
                        logger.warning("Bad payload for %s: %s", resource.label, e)
                        break
                    except ProviderTransientError as e:
                        api_error = e
                        if retry_index < self.max_retries:
                            delay = self.backoff_delay(retry_index)
                            logger.warning(
                                "Transient failure for %s (attempt %d/%d): %s; retrying in %.2fs",
                                resource.label,
                                retry_index + 1,
                                self.max_retries + 1,
                                e,
                                delay,
                            )
                            self._sleep(delay)
                        continue
                    self._pause()
                    return FetchResult(
                        resource=resource,
                        payload=payload,
                        strategy=Strategy.API,
                        fidelity=FidelityEnum.FULL,
                        attempts=attempts,
                    )
                continue

            if self.browser is None:
                break
            attempts += 1
            logger.warning("Falling back to browser for %s after: %s", resource.label, api_error)
            try:
                payload = self.browser.fetch_page(resource)
                validate_shape(resource, payload)
            except ProviderError as e:
                raise ProviderUnavailable(
                    f"All strategies failed for {resource.label}: api={api_error}; browser={e}"
                ) from e
            self._pause()
            return FetchResult(
                resource=resource,
                payload=payload,
                strategy=Strategy.BROWSER,
                fidelity=FidelityEnum.DEGRADED,
                attempts=attempts,
            )

        if api_error is None:
            raise ProviderUnavailable(f"No strategy could fetch {resource.label}")
        raise api_error

    def _pause(self) -> None:
        self._sleep(self._uniform(self.jitter_min_s, self.jitter_max_s))
