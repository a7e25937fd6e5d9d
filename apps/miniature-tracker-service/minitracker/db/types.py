"""Custom SQLAlchemy types used by the persistence layer."""
from __future__ import annotations

import json
from datetime import datetime, UTC
from typing import Iterable, List, Optional

from sqlalchemy.types import DateTime, Text, TypeDecorator


class UTCDateTime(TypeDecorator[datetime]):
    """Timezone-aware UTC timestamps on every dialect.

    PostgreSQL keeps the offset natively. SQLite stores the naive UTC value,
    so results are re-tagged as UTC on the way out. Naive inputs are taken
    to already be UTC.
    """

    cache_ok = True
    impl = DateTime(timezone=True)

    def process_bind_param(self, value: Optional[datetime], dialect):  # type: ignore[override]
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        value = value.astimezone(UTC)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: Optional[datetime], dialect):  # type: ignore[override]
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class StringList(TypeDecorator[List[str]]):
    """Ordered list of strings persisted as a JSON array in a text column.

    The encoding is ``json.dumps(list, ensure_ascii=False)``. Values that do
    not decode to JSON are returned raw so the read schema can reject them
    with a field-level error.
    """

    cache_ok = True
    impl = Text

    def process_bind_param(self, value: Optional[Iterable[str]], dialect):  # type: ignore[override]
        if value is None:
            return json.dumps([])
        if isinstance(value, (str, bytes)):
            raise TypeError("StringList expects a sequence of strings, not a single string")
        items = list(value)
        for item in items:
            if not isinstance(item, str):
                raise TypeError(f"StringList items must be strings, got {type(item).__name__}")
        return json.dumps(items, ensure_ascii=False)

    def process_result_value(self, value: Optional[str], dialect):  # type: ignore[override]
        if value is None:
            return []
        try:
            return json.loads(value)
        except (TypeError, ValueError):
            return value
