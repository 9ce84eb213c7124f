from __future__ import annotations

from typing import Any

import httpx
import pytest

from pitch_sync.db.enums import FidelityEnum
from pitch_sync.ingestion.providers.base.errors import (
    ProviderNotFound,
    ProviderParseError,
    ProviderRateLimited,
    ProviderUnavailable,
)
from pitch_sync.ingestion.providers.base.types import Strategy
from pitch_sync.ingestion.providers.sofascore import resources


class FakeBrowser:
    def __init__(self, payload: dict[str, Any] | None = None, error: Exception | None = None):
        self.payload = payload
        self.error = error
        self.calls: list[str] = []

    def fetch_page(self, resource):
        self.calls.append(resource.kind)
        if self.error is not None:
            raise self.error
        return self.payload

    def close(self) -> None:
        pass


def _flaky(statuses: list[int], payload: dict[str, Any]):
    remaining = list(statuses)

    def handler(request: httpx.Request) -> httpx.Response:
        if remaining:
            return httpx.Response(remaining.pop(0))
        return httpx.Response(200, json=payload)

    return handler


def test_transient_failures_are_retried_with_exponential_backoff(make_client, sleeps) -> None:
    client = make_client({"team/42": _flaky([503, 503], {"team": {"id": 42, "name": "Arsenal"}})})

    result = client.fetch(resources.team(42))

    assert result.strategy is Strategy.API
    assert result.fidelity is FidelityEnum.FULL
    assert result.attempts == 3
    assert result.data["name"] == "Arsenal"
    # two backoff delays, then the post-success jitter
    assert sleeps == [1.0, 1.5, 3.0]


def test_not_found_fails_immediately_without_waiting(make_client, sleeps) -> None:
    browser = FakeBrowser(payload={"team": {"id": 1, "name": "x"}})
    client = make_client({}, browser=browser)

    with pytest.raises(ProviderNotFound):
        client.fetch(resources.team(1))

    assert client.requested == ["team/1"]
    assert sleeps == []
    assert browser.calls == []


def test_exhausted_retries_fall_back_to_browser_as_degraded(make_client, sleeps) -> None:
    browser = FakeBrowser(payload={"team": {"id": 42, "name": "Arsenal"}})
    client = make_client({"team/42": 500}, browser=browser)

    result = client.fetch(resources.team(42))

    assert len(client.requested) == 4
    assert browser.calls == ["team"]
    assert result.strategy is Strategy.BROWSER
    assert result.fidelity is FidelityEnum.DEGRADED
    assert result.degraded
    assert result.attempts == 5
    assert sleeps == [1.0, 1.5, 2.25, 3.0]


def test_bad_shape_switches_strategy_without_retrying(make_client, sleeps) -> None:
    browser = FakeBrowser(payload={"players": [{"player": {"id": 7, "name": "Saka"}}]})
    client = make_client({"team/42/players": {"unexpected": []}}, browser=browser)

    result = client.fetch(resources.team_players(42))

    assert client.requested == ["team/42/players"]
    assert result.strategy is Strategy.BROWSER
    assert sleeps == [3.0]


def test_browser_failure_raises_unavailable(make_client) -> None:
    browser = FakeBrowser(error=ProviderUnavailable("chromium crashed"))
    client = make_client({"player/9": 429}, browser=browser)

    with pytest.raises(ProviderUnavailable) as exc_info:
        client.fetch(resources.player(9))

    assert "chromium crashed" in str(exc_info.value)
    assert "api=" in str(exc_info.value)


def test_browser_payload_is_shape_checked_too(make_client) -> None:
    browser = FakeBrowser(payload={"nothing": True})
    client = make_client({"player/9": 503}, browser=browser)

    with pytest.raises(ProviderUnavailable):
        client.fetch(resources.player(9))


def test_resource_without_page_reraises_last_api_error(make_client) -> None:
    browser = FakeBrowser(payload={"seasons": []})
    client = make_client({"unique-tournament/17/seasons": 429}, browser=browser)

    with pytest.raises(ProviderRateLimited):
        client.fetch(resources.league_seasons(17))

    assert browser.calls == []
    assert len(client.requested) == 4


def test_parse_error_without_browser_is_reraised(make_client) -> None:
    client = make_client({"team/42": {"team": ["not", "an", "object"]}})

    with pytest.raises(ProviderParseError):
        client.fetch(resources.team(42))


def test_no_api_attempt_and_no_browser_is_unavailable(make_client) -> None:
    client = make_client({"team/42": {"team": {"id": 42, "name": "Arsenal"}}})
    client.max_retries = -1

    with pytest.raises(ProviderUnavailable, match="No strategy"):
        client.fetch(resources.team(42))
    assert client.requested == []


def test_backoff_delays_follow_multiplier(make_client) -> None:
    client = make_client({})
    assert [client.backoff_delay(i) for i in range(3)] == [1.0, 1.5, 2.25]
