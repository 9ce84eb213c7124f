from __future__ import annotations

from sqlalchemy.orm import Session

from pitch_sync.db.models.core.country import Country
from pitch_sync.db.repos.base import BaseRepository


class CountryRepository(BaseRepository[Country]):
    provider_id_field = "provider_country_id"
    name_fields = ("name",)

    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=Country)
