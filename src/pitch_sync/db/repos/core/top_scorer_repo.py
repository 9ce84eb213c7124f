from __future__ import annotations

from sqlalchemy.orm import Session

from pitch_sync.db.models.core.top_scorer import TopScorer
from pitch_sync.db.repos.base import BaseRepository


class TopScorerRepository(BaseRepository[TopScorer]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=TopScorer)
