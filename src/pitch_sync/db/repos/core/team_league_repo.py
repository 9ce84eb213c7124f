from __future__ import annotations

from sqlalchemy.orm import Session

from pitch_sync.db.models.core.team_league import TeamLeague
from pitch_sync.db.repos.base import BaseRepository


class TeamLeagueRepository(BaseRepository[TeamLeague]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=TeamLeague)
