"""Column types and helpers shared by the table models."""

import uuid
from datetime import date
from typing import Any

from sqlalchemy import JSON, DateTime
from sqlalchemy.types import TypeDecorator

from fieldops.domain.shared.base import utcnow

__all__ = ["UUIDList", "StringSet", "DateList", "UTCDateTime", "utcnow", "normalize_string_set"]

# Timestamps are stored as naive UTC; offsets are stripped before they reach a table model
UTCDateTime = DateTime(timezone=False)


class UUIDList(TypeDecorator):
    """A list of UUIDs stored as a JSON array of strings."""

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> list[str] | None:
        if value is None:
            return None
        return [str(item) for item in value]

    def process_result_value(self, value: Any, dialect: Any) -> list[uuid.UUID] | None:
        if value is None:
            return None
        return [uuid.UUID(str(item)) for item in value]


class DateList(TypeDecorator):
    """A sorted, de-duplicated list of calendar dates stored as ISO strings."""

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> list[str] | None:
        if value is None:
            return None
        return sorted({item.isoformat() for item in value})

    def process_result_value(self, value: Any, dialect: Any) -> list[date] | None:
        if value is None:
            return None
        return [date.fromisoformat(item) for item in value]


class StringSet(TypeDecorator):
    """A set of strings stored as a sorted, de-duplicated JSON array."""

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> list[str] | None:
        if value is None:
            return None
        return normalize_string_set(value)

    def process_result_value(self, value: Any, dialect: Any) -> list[str] | None:
        if value is None:
            return None
        return list(value)


def normalize_string_set(values: Any) -> list[str]:
    """Strip, drop blanks and de-duplicate, keeping a stable sorted order."""
    return sorted({str(v).strip() for v in values or [] if str(v).strip()})
