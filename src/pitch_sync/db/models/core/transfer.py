from __future__ import annotations

from datetime import date

from sqlalchemy import BigInteger, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pitch_sync.db.base import Base, TimestampMixin


class Transfer(Base, TimestampMixin):
    __tablename__ = "transfers"

    id: Mapped[int] = mapped_column(primary_key=True)
    provider_transfer_id: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)

    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False
    )
    from_team_id: Mapped[int | None] = mapped_column(
        ForeignKey("teams.id", ondelete="SET NULL"), nullable=True
    )
    to_team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="RESTRICT"), nullable=False
    )
    transfer_date: Mapped[date | None] = mapped_column(nullable=True)
    type: Mapped[str | None] = mapped_column(String, nullable=True)
    fee: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    currency: Mapped[str | None] = mapped_column(String(8), nullable=True)

    player: Mapped[Player] = relationship(back_populates="transfers", foreign_keys=[player_id])
    from_team: Mapped[Team | None] = relationship(foreign_keys=[from_team_id])
    to_team: Mapped[Team] = relationship(foreign_keys=[to_team_id])

    __table_args__ = (Index("ix_transfers_player_date", "player_id", "transfer_date"),)


from pitch_sync.db.models.core.player import Player  # noqa: E402
from pitch_sync.db.models.core.team import Team  # noqa: E402
