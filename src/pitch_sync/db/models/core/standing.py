from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pitch_sync.db.base import Base, TimestampMixin


class Standing(Base, TimestampMixin):
    __tablename__ = "standings"

    id: Mapped[int] = mapped_column(primary_key=True)

    league_id: Mapped[int] = mapped_column(
        ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False
    )
    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    season: Mapped[str] = mapped_column(String, nullable=False)
    group_name: Mapped[str | None] = mapped_column(String, nullable=True)

    position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    played: Mapped[int | None] = mapped_column(Integer, nullable=True)
    won: Mapped[int | None] = mapped_column(Integer, nullable=True)
    drawn: Mapped[int | None] = mapped_column(Integer, nullable=True)
    lost: Mapped[int | None] = mapped_column(Integer, nullable=True)
    goals_for: Mapped[int | None] = mapped_column(Integer, nullable=True)
    goals_against: Mapped[int | None] = mapped_column(Integer, nullable=True)
    goal_difference: Mapped[int | None] = mapped_column(Integer, nullable=True)
    points: Mapped[int | None] = mapped_column(Integer, nullable=True)
    description: Mapped[str | None] = mapped_column(String, nullable=True)

    league: Mapped[League] = relationship(back_populates="standings")
    team: Mapped[Team] = relationship()

    __table_args__ = (
        UniqueConstraint("league_id", "team_id", "season", name="uq_standings_league_team_season"),
    )


from pitch_sync.db.models.core.league import League  # noqa: E402
from pitch_sync.db.models.core.team import Team  # noqa: E402
