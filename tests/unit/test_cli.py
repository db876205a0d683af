from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from showdown import config
from showdown.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.chdir(tmp_path)
    # Keep root handlers off the runner's temporary streams.
    monkeypatch.setattr("showdown.main.configure_logging", lambda **kwargs: None)
    monkeypatch.setenv("DATABASE_URL", "postgresql://user:hunter2@db:5432/showdown")
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


def test_info_masks_credentials() -> None:
    result = runner.invoke(app, ["info"])

    assert result.exit_code == 0
    values = json.loads(result.stdout)
    assert values["database_url"] == "postgresql://user:****@db:5432/showdown"
    assert "hunter2" not in result.stdout


def test_load_with_missing_data_exits_before_connecting(tmp_path: Path) -> None:
    result = runner.invoke(app, ["load", "--data-path", str(tmp_path / "absent")])

    assert result.exit_code == 1
    assert "Missing input" in result.output


def test_load_rejects_bad_batch_size() -> None:
    result = runner.invoke(app, ["load", "--batch-size", "0"])
    assert result.exit_code != 0


def test_benchmark_rejects_unknown_query_set() -> None:
    result = runner.invoke(app, ["benchmark", "--user", "u1", "--query-set", "everything"])

    assert result.exit_code == 2
    assert "Unknown query set" in result.output
