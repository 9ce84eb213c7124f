from __future__ import annotations

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pitch_sync.db.base import Base, TimestampMixin


class TeamLeague(Base, TimestampMixin):
    __tablename__ = "team_leagues"

    id: Mapped[int] = mapped_column(primary_key=True)

    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    league_id: Mapped[int] = mapped_column(
        ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False
    )
    season: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")

    team: Mapped[Team] = relationship(back_populates="team_leagues")
    league: Mapped[League] = relationship(back_populates="team_leagues")

    __table_args__ = (
        UniqueConstraint("team_id", "league_id", "season", name="uq_team_leagues_team_league_season"),
    )


from pitch_sync.db.models.core.league import League  # noqa: E402
from pitch_sync.db.models.core.team import Team  # noqa: E402
