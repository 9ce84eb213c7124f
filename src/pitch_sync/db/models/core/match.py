from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pitch_sync.db.base import Base, TimestampMixin
from pitch_sync.db.enums import MatchStatusEnum


class Match(Base, TimestampMixin):
    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(primary_key=True)
    provider_match_id: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)

    start_time: Mapped[datetime] = mapped_column(nullable=False)
    status: Mapped[MatchStatusEnum] = mapped_column(
        sa.Enum(
            MatchStatusEnum,
            name="matchstatusenum",
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
        ),
        nullable=False,
        default=MatchStatusEnum.UNKNOWN,
    )
    round: Mapped[int | None] = mapped_column(Integer, nullable=True)
    season: Mapped[str | None] = mapped_column(String, nullable=True)

    league_id: Mapped[int | None] = mapped_column(
        ForeignKey("leagues.id", ondelete="SET NULL"), nullable=True
    )
    competition: Mapped[str | None] = mapped_column(String, nullable=True)

    home_team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="RESTRICT"), nullable=False
    )
    away_team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="RESTRICT"), nullable=False
    )
    home_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    away_score: Mapped[int | None] = mapped_column(Integer, nullable=True)

    venue: Mapped[str | None] = mapped_column(String, nullable=True)
    provider_url: Mapped[str | None] = mapped_column(String, nullable=True)
    source_last_seen_at: Mapped[datetime | None] = mapped_column(nullable=True)

    league: Mapped[League | None] = relationship(back_populates="matches")
    home_team: Mapped[Team] = relationship(back_populates="home_matches", foreign_keys=[home_team_id])
    away_team: Mapped[Team] = relationship(back_populates="away_matches", foreign_keys=[away_team_id])

    __table_args__ = (
        Index("ix_matches_teams_start_time", "home_team_id", "away_team_id", "start_time"),
        Index("ix_matches_league_start_time", "league_id", "start_time"),
    )


from pitch_sync.db.models.core.league import League  # noqa: E402
from pitch_sync.db.models.core.team import Team  # noqa: E402
