from __future__ import annotations

from sqlalchemy.orm import Session

from pitch_sync.db.models.core.transfer import Transfer
from pitch_sync.db.repos.base import BaseRepository


class TransferRepository(BaseRepository[Transfer]):
    provider_id_field = "provider_transfer_id"

    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=Transfer)
