from __future__ import annotations

from sqlalchemy.orm import Session

from pitch_sync.db.models.core.standing import Standing
from pitch_sync.db.repos.base import BaseRepository


class StandingRepository(BaseRepository[Standing]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=Standing)
