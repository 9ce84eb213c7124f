from __future__ import annotations

from sqlalchemy.orm import Session

from pitch_sync.db.models.core.match import Match
from pitch_sync.db.repos.base import BaseRepository


class MatchRepository(BaseRepository[Match]):
    provider_id_field = "provider_match_id"

    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=Match)
