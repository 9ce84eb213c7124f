from __future__ import annotations

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from pitch_sync.core.text import normalize_name
from pitch_sync.db.base import Base, TimestampMixin


class Team(Base, TimestampMixin):
    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(primary_key=True)
    provider_team_id: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)

    name: Mapped[str] = mapped_column(String, nullable=False)
    name_norm: Mapped[str] = mapped_column(String, nullable=False)
    short_name: Mapped[str | None] = mapped_column(String, nullable=True)
    slug: Mapped[str | None] = mapped_column(String, nullable=True)
    country_id: Mapped[int | None] = mapped_column(
        ForeignKey("countries.id", ondelete="SET NULL"), nullable=True
    )
    logo_url: Mapped[str | None] = mapped_column(String, nullable=True)
    city: Mapped[str | None] = mapped_column(String, nullable=True)
    stadium: Mapped[str | None] = mapped_column(String, nullable=True)
    stadium_capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    founded: Mapped[int | None] = mapped_column(Integer, nullable=True)
    manager: Mapped[str | None] = mapped_column(String, nullable=True)
    primary_color: Mapped[str | None] = mapped_column(String, nullable=True)
    secondary_color: Mapped[str | None] = mapped_column(String, nullable=True)

    country: Mapped[Country | None] = relationship(back_populates="teams")
    players: Mapped[list[Player]] = relationship(back_populates="team")
    team_leagues: Mapped[list[TeamLeague]] = relationship(back_populates="team")

    home_matches: Mapped[list[Match]] = relationship(
        back_populates="home_team",
        foreign_keys="Match.home_team_id",
    )
    away_matches: Mapped[list[Match]] = relationship(
        back_populates="away_team",
        foreign_keys="Match.away_team_id",
    )

    __table_args__ = (Index("ix_teams_country_name", "country_id", "name_norm"),)

    @validates("name")
    def _sync_name_norm(self, key: str, value: str) -> str:
        self.name_norm = normalize_name(value)
        return value


from pitch_sync.db.models.core.country import Country  # noqa: E402
from pitch_sync.db.models.core.match import Match  # noqa: E402
from pitch_sync.db.models.core.player import Player  # noqa: E402
from pitch_sync.db.models.core.team_league import TeamLeague  # noqa: E402
