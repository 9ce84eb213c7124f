from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from typing import Any

import httpx
import pytest
import sqlalchemy as sa
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import pitch_sync.db.models  # noqa: F401
from pitch_sync.db.base import Base
from pitch_sync.ingestion.providers.base.client import BaseHttpClient
from pitch_sync.ingestion.providers.sofascore.client import SofaScoreClient
from pitch_sync.jobs.pacing import no_pacing
from pitch_sync.jobs.registry import JobRegistry

API_BASE = "https://api.test/api/v1"

Route = Any  # dict payload, int status, or callable(request) -> httpx.Response


@pytest.fixture
def session_factory() -> Iterator[sessionmaker[Session]]:
    # One shared in-memory connection, usable from job worker threads.
    engine = sa.create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    with session_factory() as s:
        yield s


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def make_client(sleeps: list[float]) -> Callable[..., SofaScoreClient]:
    """
    Build a gateway over httpx.MockTransport.

    `routes` maps API paths (relative to the API base) to a JSON payload, an
    HTTP status code, or a handler; unknown paths answer 404. Every requested
    path is appended to the returned client's `requested` list.
    """

    def factory(routes: dict[str, Route], *, browser: Any = None) -> SofaScoreClient:
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.path.removeprefix("/api/v1/")
            requested.append(path)
            route = routes.get(path)
            if route is None:
                return httpx.Response(404, json={"error": {"code": 404}})
            if callable(route):
                return route(request)
            if isinstance(route, int):
                return httpx.Response(route)
            return httpx.Response(200, content=json.dumps(route).encode())

        http = BaseHttpClient(base_url=API_BASE, transport=httpx.MockTransport(handler))
        client = SofaScoreClient(
            http=http,
            browser=browser,
            _sleep=sleeps.append,
            _uniform=lambda lo, hi: hi,
        )
        client.requested = requested  # type: ignore[attr-defined]
        return client

    return factory


@pytest.fixture
def registry() -> JobRegistry:
    return JobRegistry()


@pytest.fixture
def pacer():
    return no_pacing()
