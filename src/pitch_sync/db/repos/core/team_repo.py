from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pitch_sync.db.models.core.team import Team
from pitch_sync.db.repos.base import BaseRepository


class TeamRepository(BaseRepository[Team]):
    provider_id_field = "provider_team_id"
    name_fields = ("name",)

    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=Team)

    def page_with_provider_id(self, *, offset: int, limit: int) -> list[Team]:
        """Teams that can be fetched upstream, in stable id order."""
        stmt = (
            select(Team)
            .where(Team.provider_team_id.is_not(None))
            .order_by(Team.id)
            .offset(offset)
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars().all())

    def count_with_provider_id(self) -> int:
        stmt = select(func.count()).select_from(Team).where(Team.provider_team_id.is_not(None))
        return int(self.session.execute(stmt).scalar_one())
