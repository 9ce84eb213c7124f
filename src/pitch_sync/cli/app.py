from __future__ import annotations

import typer

from pitch_sync.cli.jobs import app as jobs_app
from pitch_sync.cli.lookup import app as lookup_app
from pitch_sync.core.logging import setup_logging

app = typer.Typer(no_args_is_help=True)
app.add_typer(jobs_app, name="jobs")
app.add_typer(lookup_app, name="lookup")


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="Override LOG_LEVEL."),
) -> None:
    setup_logging(log_level)
