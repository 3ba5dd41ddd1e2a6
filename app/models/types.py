"""
Structured values (lists and maps) stored as JSON text.

The schema keeps survey answers, referral targets and follow-up
data as serialized text columns. ``JSONText`` encodes on write and decodes on
read; text that does not decode to the declared shape is replaced by an empty
structure of that shape and logged, so one bad row never breaks a listing.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from sqlalchemy.types import Text, TypeDecorator

from app.errors import MalformedDataError

logger = logging.getLogger(__name__)


def empty_of(shape: type) -> Any:
    return shape()


def encode(value: Any, shape: type) -> str:
    if value is None:
        value = empty_of(shape)
    return json.dumps(value, ensure_ascii=False)


def decode(raw: str | None, shape: type) -> Any:
    """Decode stored text, raising MalformedDataError when it is not a ``shape``."""
    if raw is None or raw == "":
        return empty_of(shape)
    try:
        value = json.loads(raw)
    except ValueError as exc:
        raise MalformedDataError(f"JSON inválido: {exc}") from exc
    if value is None:
        return empty_of(shape)
    if not isinstance(value, shape):
        raise MalformedDataError(
            f"se esperaba {shape.__name__}, se encontró {type(value).__name__}"
        )
    return value


def decode_or_empty(raw: str | None, shape: type, column: str = "?") -> Any:
    try:
        return decode(raw, shape)
    except MalformedDataError as exc:
        logger.warning("Campo estructurado malformado en %s (%s); se usa vacío", column, exc.message)
        return empty_of(shape)


class JSONText(TypeDecorator):
    """Text column holding a JSON list or object."""

    impl = Text
    cache_ok = True

    def __init__(self, shape: type = dict, column: str = "?", **kwargs):
        super().__init__(**kwargs)
        self.shape = shape
        self.column = column

    def process_bind_param(self, value, dialect):
        return encode(value, self.shape)

    def process_result_value(self, value, dialect):
        return decode_or_empty(value, self.shape, self.column)


def JSONList(column: str = "?") -> JSONText:
    return JSONText(list, column)


def JSONMap(column: str = "?") -> JSONText:
    return JSONText(dict, column)
