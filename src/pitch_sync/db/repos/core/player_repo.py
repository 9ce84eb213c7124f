from __future__ import annotations

from sqlalchemy.orm import Session

from pitch_sync.db.models.core.player import Player
from pitch_sync.db.repos.base import BaseRepository


class PlayerRepository(BaseRepository[Player]):
    provider_id_field = "provider_player_id"
    name_fields = ("name",)

    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=Player)
