from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from pitch_sync.core.text import normalize_name
from pitch_sync.db.base import Base, TimestampMixin


class Country(Base, TimestampMixin):
    __tablename__ = "countries"

    id: Mapped[int] = mapped_column(primary_key=True)
    provider_country_id: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)

    name: Mapped[str] = mapped_column(String, nullable=False)
    name_norm: Mapped[str] = mapped_column(String, nullable=False, index=True)
    code: Mapped[str | None] = mapped_column(String(8), nullable=True)  # alpha2
    code3: Mapped[str | None] = mapped_column(String(8), nullable=True)
    region: Mapped[str | None] = mapped_column(String, nullable=True)
    flag: Mapped[str | None] = mapped_column(String, nullable=True)

    leagues: Mapped[list[League]] = relationship(back_populates="country")
    teams: Mapped[list[Team]] = relationship(back_populates="country")

    @validates("name")
    def _sync_name_norm(self, key: str, value: str) -> str:
        self.name_norm = normalize_name(value)
        return value


from pitch_sync.db.models.core.league import League  # noqa: E402
from pitch_sync.db.models.core.team import Team  # noqa: E402
