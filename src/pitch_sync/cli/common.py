from __future__ import annotations

import json
from typing import Any

import typer
from sqlalchemy.orm import Session, sessionmaker

from pitch_sync.core.config import settings
from pitch_sync.db import DatabaseConfig, create_db_engine, create_session_factory
from pitch_sync.ingestion.providers.sofascore.browser import PlaywrightPageFetcher
from pitch_sync.ingestion.providers.sofascore.client import SofaScoreClient
from pitch_sync.jobs.control import JobControl


def session_factory() -> sessionmaker[Session]:
    engine = create_db_engine(
        DatabaseConfig(database_url=settings.database_url, echo=settings.db_echo)
    )
    return create_session_factory(engine)


def build_control() -> JobControl:
    browser = PlaywrightPageFetcher.from_settings() if settings.browser_enabled else None
    return JobControl(
        session_factory=session_factory(),
        client=SofaScoreClient.from_settings(browser=browser),
    )


def echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))
