from __future__ import annotations

from datetime import date

from sqlalchemy import BigInteger, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from pitch_sync.core.text import normalize_name
from pitch_sync.db.base import Base, TimestampMixin


class Player(Base, TimestampMixin):
    __tablename__ = "players"

    id: Mapped[int] = mapped_column(primary_key=True)
    provider_player_id: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)

    name: Mapped[str] = mapped_column(String, nullable=False)
    name_norm: Mapped[str] = mapped_column(String, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String, nullable=True)
    short_name: Mapped[str | None] = mapped_column(String, nullable=True)
    slug: Mapped[str | None] = mapped_column(String, nullable=True)

    position: Mapped[str | None] = mapped_column(String, nullable=True)
    position_category: Mapped[str | None] = mapped_column(String, nullable=True)
    shirt_number: Mapped[int | None] = mapped_column(Integer, nullable=True)

    nationality: Mapped[str | None] = mapped_column(String, nullable=True)
    nationality_id: Mapped[int | None] = mapped_column(
        ForeignKey("countries.id", ondelete="SET NULL"), nullable=True
    )
    birth_date: Mapped[date | None] = mapped_column(nullable=True)
    birth_place: Mapped[str | None] = mapped_column(String, nullable=True)
    height: Mapped[int | None] = mapped_column(Integer, nullable=True)
    weight: Mapped[int | None] = mapped_column(Integer, nullable=True)
    foot: Mapped[str | None] = mapped_column(String, nullable=True)

    photo_url: Mapped[str | None] = mapped_column(String, nullable=True)
    provider_url: Mapped[str | None] = mapped_column(String, nullable=True)
    market_value: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    contract_until: Mapped[date | None] = mapped_column(nullable=True)

    team_id: Mapped[int | None] = mapped_column(
        ForeignKey("teams.id", ondelete="SET NULL"), nullable=True
    )

    team: Mapped[Team | None] = relationship(back_populates="players")
    transfers: Mapped[list[Transfer]] = relationship(
        back_populates="player",
        foreign_keys="Transfer.player_id",
    )

    __table_args__ = (Index("ix_players_team_name", "team_id", "name_norm"),)

    @validates("name")
    def _sync_name_norm(self, key: str, value: str) -> str:
        self.name_norm = normalize_name(value)
        return value


from pitch_sync.db.models.core.team import Team  # noqa: E402
from pitch_sync.db.models.core.transfer import Transfer  # noqa: E402
