"""
db/config.py

Database URL resolution for the monitoring service and its migrations.
"""

from __future__ import annotations

import os
from pathlib import Path

# First non-empty variable wins.
DATABASE_URL_VARIABLES = ("MONITORING_DATABASE_URL", "DATABASE_URL")

_POSTGRES_SCHEMES = frozenset({"postgres", "postgresql"})


def load_env_files(root: Path | None = None) -> None:
    """
    Copy KEY=VALUE lines from ``<root>/.env`` into the process environment.
    Variables that are already set are left alone.
    """

    env_path = (root or Path(__file__).resolve().parents[1]) / ".env"
    if not env_path.is_file():
        return

    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        key, sep, value = raw_line.strip().partition("=")
        if not sep or key.startswith("#"):
            continue
        key = key.strip()
        if key:
            os.environ.setdefault(key, value.strip().strip("\"'"))


def to_psycopg_url(url: str) -> str:
    """
    ``postgres://`` and ``postgresql://`` become ``postgresql+psycopg://``;
    URLs that already name a driver pass through.
    """

    scheme, sep, rest = url.strip().partition("://")
    if sep and scheme in _POSTGRES_SCHEMES:
        return f"postgresql+psycopg://{rest}"
    return url.strip()


def resolve_database_url() -> str:
    load_env_files()
    for name in DATABASE_URL_VARIABLES:
        url = (os.getenv(name) or "").strip()
        if url:
            return to_psycopg_url(url)

    raise RuntimeError(
        "No database URL configured for submissions and imports. "
        f"Set one of: {', '.join(DATABASE_URL_VARIABLES)}."
    )
