"""
Shared fixtures: an in-memory SQLite database with the full schema and
factories for indicators.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from db.base import Base
from db.models import Indicator
from db.session import build_session_factory


@pytest.fixture()
def session_factory() -> Generator[sessionmaker[Session], None, None]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield build_session_factory(engine)
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def db(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_indicator(db: Session) -> Callable[..., Indicator]:
    def _make(**overrides: Any) -> Indicator:
        fields: dict[str, Any] = {"name": "Households reached", "data_type": "NUMBER"}
        fields.update(overrides)
        indicator = Indicator(**fields)
        db.add(indicator)
        db.commit()
        return indicator

    return _make
