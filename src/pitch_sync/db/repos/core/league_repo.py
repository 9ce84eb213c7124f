from __future__ import annotations

from sqlalchemy.orm import Session

from pitch_sync.db.models.core.league import League
from pitch_sync.db.repos.base import BaseRepository


class LeagueRepository(BaseRepository[League]):
    provider_id_field = "provider_league_id"
    name_fields = ("name",)

    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=League)
