"""
tests/test_db_config.py

Database URL resolution and `.env` loading.
"""

from __future__ import annotations

import os

import pytest

from db.config import load_env_files, resolve_database_url, to_psycopg_url


@pytest.fixture()
def no_database_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    monkeypatch.delenv("MONITORING_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    return monkeypatch


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("postgres://u:p@db/monitoring", "postgresql+psycopg://u:p@db/monitoring"),
        ("postgresql://u:p@db/monitoring", "postgresql+psycopg://u:p@db/monitoring"),
        ("postgresql+psycopg://u:p@db/monitoring", "postgresql+psycopg://u:p@db/monitoring"),
        ("sqlite:///local.db", "sqlite:///local.db"),
    ],
)
def test_to_psycopg_url(url: str, expected: str) -> None:
    assert to_psycopg_url(url) == expected


def test_monitoring_url_wins_over_database_url(no_database_env) -> None:
    no_database_env.setenv("DATABASE_URL", "postgres://shared/app")
    no_database_env.setenv("MONITORING_DATABASE_URL", "postgresql://mon/app")

    assert resolve_database_url() == "postgresql+psycopg://mon/app"


def test_blank_monitoring_url_falls_through(no_database_env) -> None:
    no_database_env.setenv("MONITORING_DATABASE_URL", "  ")
    no_database_env.setenv("DATABASE_URL", "postgres://shared/app")

    assert resolve_database_url() == "postgresql+psycopg://shared/app"


def test_missing_url_raises(no_database_env) -> None:
    with pytest.raises(RuntimeError, match="MONITORING_DATABASE_URL, DATABASE_URL"):
        resolve_database_url()


def test_env_file_does_not_override_process_env(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("IMPORT_MAX_ROWS", "10")
    # Registered so the value loaded from the file is removed afterwards.
    monkeypatch.setenv("IMPORT_PREVIEW_ROWS", "")
    monkeypatch.delenv("IMPORT_PREVIEW_ROWS")
    (tmp_path / ".env").write_text(
        "# comment\nIMPORT_MAX_ROWS=99\nIMPORT_PREVIEW_ROWS=\"7\"\nnot a pair\n",
        encoding="utf-8",
    )

    load_env_files(tmp_path)

    assert os.environ["IMPORT_MAX_ROWS"] == "10"
    assert os.environ["IMPORT_PREVIEW_ROWS"] == "7"


def test_missing_env_file_is_ignored(tmp_path) -> None:
    load_env_files(tmp_path)
