"""Helpers shared by the entity repositories."""

from __future__ import annotations

from typing import Any, Iterable

from sqlalchemy.orm import Session

from app.errors import ValidationError


def missing_fields(data: dict[str, Any], required: Iterable[str]) -> list[str]:
    """Required fields that are absent, None or blank."""
    return [name for name in required if data.get(name) in (None, "")]


def require_fields(data: dict[str, Any], required: Iterable[str]) -> None:
    missing = missing_fields(data, required)
    if missing:
        raise ValidationError.missing(missing)


def reject_blank(data: dict[str, Any], required: Iterable[str]) -> None:
    """Required fields sent as blank on an update; omitted or None is fine there."""
    blank = [name for name in required if data.get(name) == ""]
    if blank:
        raise ValidationError(f"Campos obligatorios vacíos: {', '.join(blank)}", details=blank)


def coalesce_update(obj: Any, changes: dict[str, Any], allowed: Iterable[str]) -> list[str]:
    """
    Apply ``changes`` to ``obj`` with COALESCE semantics.

    A field that is omitted or sent as None keeps its stored value, so a
    caller cannot clear a column through an update. Returns the names of the
    fields that were written.
    """
    written = []
    for name in allowed:
        value = changes.get(name)
        if value is None:
            continue
        setattr(obj, name, value)
        written.append(name)
    return written


class Repository:
    """Entity repositories receive the request's session explicitly."""

    def __init__(self, db: Session):
        self.db = db
