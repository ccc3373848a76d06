"""
app/repositories/indicator_repository.py

Read access to indicators owned by logframe nodes.
"""

from __future__ import annotations

import uuid

from sqlalchemy.orm import Session

from db.models.indicator import Indicator


class IndicatorRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, indicator_id: uuid.UUID) -> Indicator | None:
        return self._session.get(Indicator, indicator_id)
