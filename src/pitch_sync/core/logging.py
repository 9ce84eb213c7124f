from __future__ import annotations

import logging

from pitch_sync.core.config import settings


def setup_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    # httpx logs every request at INFO; the gateway already logs what matters.
    logging.getLogger("httpx").setLevel(logging.WARNING)
