from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, ClassVar, Generic, TypeVar

from sqlalchemy import or_, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from pitch_sync.core.text import normalize_name
from pitch_sync.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _same(current: Any, incoming: Any) -> bool:
    # SQLite hands datetimes back naive (UTC wall clock).
    if isinstance(current, datetime) and isinstance(incoming, datetime):
        return _as_naive_utc(current) == _as_naive_utc(incoming)
    return current == incoming


class BaseRepository(Generic[ModelT]):
    # Column holding the upstream identifier, if the model has one.
    provider_id_field: ClassVar[str | None] = None
    # Columns matched through their stored `<field>_norm` companion column.
    name_fields: ClassVar[tuple[str, ...]] = ()

    def __init__(self, session: Session, model: type[ModelT]) -> None:
        self.session = session
        self.model = model

    def add(self, obj: ModelT, *, flush: bool = True) -> ModelT:
        self.session.add(obj)
        if flush:
            self.session.flush()  # assigns PKs, etc.
        return obj

    def first_where(self, *predicates: ColumnElement[bool]) -> ModelT | None:
        stmt = select(self.model).where(*predicates).order_by(self.model.id).limit(1)
        return self.session.execute(stmt).scalars().first()

    def get_by_provider_id(self, provider_id: str) -> ModelT | None:
        if self.provider_id_field is None:
            return None
        column = getattr(self.model, self.provider_id_field)
        return self.first_where(column == provider_id)

    def key_predicates(self, criteria: Mapping[str, Any]) -> list[ColumnElement[bool]]:
        predicates: list[ColumnElement[bool]] = []
        for field_name, value in criteria.items():
            if value is None:
                predicates.append(getattr(self.model, field_name).is_(None))
            elif field_name in self.name_fields:
                # Normalized in Python on both sides; SQLite's lower() is ASCII-only.
                column = getattr(self.model, f"{field_name}_norm")
                predicates.append(column == normalize_name(value))
            else:
                predicates.append(getattr(self.model, field_name) == value)
        return predicates

    def find_by(
        self, criteria: Mapping[str, Any], *, provider_id: str | None = None
    ) -> ModelT | None:
        """
        First row matching `criteria`.

        With `provider_id`, rows already holding a different provider id are
        not candidates.
        """
        predicates = self.key_predicates(criteria)
        if provider_id is not None and self.provider_id_field is not None:
            column = getattr(self.model, self.provider_id_field)
            predicates.append(or_(column.is_(None), column == provider_id))
        return self.first_where(*predicates)

    def find_or_create(
        self,
        criteria: Mapping[str, Any],
        defaults: Mapping[str, Any] | None = None,
        *,
        provider_id: str | None = None,
    ) -> tuple[ModelT, bool]:
        """
        Return the row matching `criteria`, creating it from criteria + defaults if absent.

        The boolean is True when a new row was inserted.
        """
        existing = self.find_by(criteria, provider_id=provider_id)
        if existing is not None:
            return existing, False

        values = {k: v for k, v in (defaults or {}).items() if v is not None}
        values.update(criteria)
        return self.add(self.model(**values)), True

    def update(
        self,
        obj: ModelT,
        fields: Mapping[str, Any],
        *,
        overwrite: bool = False,
        flush: bool = True,
    ) -> list[str]:
        """
        Apply `fields` to `obj` and return the names of the columns that changed.

        None never overwrites. Without `overwrite` only columns that are
        currently null are written.
        """
        changed: list[str] = []
        for k, v in fields.items():
            if v is None:
                continue
            current = getattr(obj, k)
            if current is not None and not overwrite:
                continue
            if _same(current, v):
                continue
            setattr(obj, k, v)
            changed.append(k)
        if changed and flush:
            self.session.flush()
        return changed
