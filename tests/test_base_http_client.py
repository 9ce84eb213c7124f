from __future__ import annotations

import httpx
import pytest

from pitch_sync.ingestion.providers.base.client import BaseHttpClient
from pitch_sync.ingestion.providers.base.errors import (
    ProviderNotFound,
    ProviderParseError,
    ProviderRateLimited,
    ProviderTimeout,
    ProviderUnavailable,
)


def _client(handler) -> BaseHttpClient:
    return BaseHttpClient(base_url="https://api.test/api/v1", transport=httpx.MockTransport(handler))


@pytest.mark.parametrize(
    ("status", "error"),
    [
        (404, ProviderNotFound),
        (429, ProviderRateLimited),
        (500, ProviderUnavailable),
        (503, ProviderUnavailable),
        (403, ProviderUnavailable),
    ],
)
def test_status_codes_map_onto_provider_errors(status: int, error: type[Exception]) -> None:
    client = _client(lambda request: httpx.Response(status))
    with pytest.raises(error):
        client.get_json("team/1")


def test_timeout_maps_to_provider_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(ProviderTimeout):
        _client(handler).get_json("team/1")


def test_connection_error_maps_to_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ProviderUnavailable):
        _client(handler).get_json("team/1")


def test_non_json_and_non_object_bodies_are_parse_errors() -> None:
    with pytest.raises(ProviderParseError):
        _client(lambda r: httpx.Response(200, content=b"<html>")).get_json("team/1")
    with pytest.raises(ProviderParseError):
        _client(lambda r: httpx.Response(200, json=[1, 2])).get_json("team/1")


def test_get_json_joins_path_onto_base_url() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json={"ok": True})

    assert _client(handler).get_json("/team/1") == {"ok": True}
    assert seen == ["https://api.test/api/v1/team/1"]
