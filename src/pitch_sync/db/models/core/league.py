from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from pitch_sync.core.text import normalize_name
from pitch_sync.db.base import Base, TimestampMixin


class League(Base, TimestampMixin):
    __tablename__ = "leagues"

    id: Mapped[int] = mapped_column(primary_key=True)
    provider_league_id: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)

    name: Mapped[str] = mapped_column(String, nullable=False)
    name_norm: Mapped[str] = mapped_column(String, nullable=False)
    slug: Mapped[str | None] = mapped_column(String, nullable=True)
    country_id: Mapped[int | None] = mapped_column(
        ForeignKey("countries.id", ondelete="SET NULL"), nullable=True
    )
    category: Mapped[str | None] = mapped_column(String, nullable=True)
    logo_url: Mapped[str | None] = mapped_column(String, nullable=True)
    season: Mapped[str | None] = mapped_column(String, nullable=True)
    provider_season_id: Mapped[str | None] = mapped_column(String, nullable=True)
    tier: Mapped[int | None] = mapped_column(Integer, nullable=True)
    primary_color: Mapped[str | None] = mapped_column(String, nullable=True)
    secondary_color: Mapped[str | None] = mapped_column(String, nullable=True)
    has_standings: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    country: Mapped[Country | None] = relationship(back_populates="leagues")
    team_leagues: Mapped[list[TeamLeague]] = relationship(back_populates="league")
    standings: Mapped[list[Standing]] = relationship(back_populates="league")
    matches: Mapped[list[Match]] = relationship(back_populates="league")

    __table_args__ = (Index("ix_leagues_country_name", "country_id", "name_norm"),)

    @validates("name")
    def _sync_name_norm(self, key: str, value: str) -> str:
        self.name_norm = normalize_name(value)
        return value


from pitch_sync.db.models.core.country import Country  # noqa: E402
from pitch_sync.db.models.core.match import Match  # noqa: E402
from pitch_sync.db.models.core.standing import Standing  # noqa: E402
from pitch_sync.db.models.core.team_league import TeamLeague  # noqa: E402
