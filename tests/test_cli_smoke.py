from __future__ import annotations

import json

from typer.testing import CliRunner

import pitch_sync.cli.lookup as lookup_cli
from pitch_sync.cli.app import app
from pitch_sync.jobs.control import JobControl


def test_cli_help_smoke() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    # Basic sanity checks that the command groups are registered.
    assert "jobs" in result.stdout
    assert "lookup" in result.stdout


def test_jobs_help_lists_every_job() -> None:
    result = CliRunner().invoke(app, ["jobs", "--help"])
    assert result.exit_code == 0
    for name in (
        "enrich-database",
        "enrich-team",
        "enrich-all-teams",
        "populate-leagues",
        "season-fixture",
    ):
        assert name in result.stdout


def test_lookup_team_prints_json(monkeypatch, make_client, session_factory) -> None:
    client = make_client({"team/42": {"team": {"id": 42, "name": "Arsenal"}}})
    monkeypatch.setattr(
        lookup_cli,
        "build_control",
        lambda: JobControl(session_factory=session_factory, client=client),
    )

    result = CliRunner().invoke(app, ["lookup", "team", "42"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["team"]["name"] == "Arsenal"
    assert payload["fidelity"] == "full"
