from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pitch_sync.db.base import Base, TimestampMixin


class TopScorer(Base, TimestampMixin):
    __tablename__ = "top_scorers"

    id: Mapped[int] = mapped_column(primary_key=True)

    league_id: Mapped[int] = mapped_column(
        ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False
    )
    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False
    )
    team_id: Mapped[int | None] = mapped_column(
        ForeignKey("teams.id", ondelete="SET NULL"), nullable=True
    )
    season: Mapped[str] = mapped_column(String, nullable=False)

    rank: Mapped[int | None] = mapped_column(Integer, nullable=True)
    goals: Mapped[int | None] = mapped_column(Integer, nullable=True)
    assists: Mapped[int | None] = mapped_column(Integer, nullable=True)
    matches: Mapped[int | None] = mapped_column(Integer, nullable=True)
    minutes_played: Mapped[int | None] = mapped_column(Integer, nullable=True)
    penalty_goals: Mapped[int | None] = mapped_column(Integer, nullable=True)

    league: Mapped[League] = relationship()
    player: Mapped[Player] = relationship()
    team: Mapped[Team | None] = relationship()

    __table_args__ = (
        UniqueConstraint(
            "league_id", "player_id", "season", name="uq_top_scorers_league_player_season"
        ),
    )


from pitch_sync.db.models.core.league import League  # noqa: E402
from pitch_sync.db.models.core.player import Player  # noqa: E402
from pitch_sync.db.models.core.team import Team  # noqa: E402
