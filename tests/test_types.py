"""Tests for the JSON-text codec behind structured columns."""

import logging

import pytest
from sqlalchemy import text

from app.errors import MalformedDataError
from app.models.aps import Familia
from app.models.types import decode, decode_or_empty, encode


def test_encode_keeps_non_ascii_and_empties_none():
    assert encode({"vía": "rural"}, dict) == '{"vía": "rural"}'
    assert encode(None, list) == "[]"


@pytest.mark.parametrize("raw, shape, expected", [
    (None, list, []),
    ("", dict, {}),
    ("null", dict, {}),
    ('["A", "B"]', list, ["A", "B"]),
])
def test_decode_defaults(raw, shape, expected):
    assert decode(raw, shape) == expected


def test_decode_rejects_bad_text_and_wrong_shape():
    with pytest.raises(MalformedDataError, match="JSON inválido"):
        decode("{no es json", dict)
    with pytest.raises(MalformedDataError, match="se esperaba list"):
        decode('{"a": 1}', list)


def test_decode_or_empty_logs_and_recovers(caplog):
    with caplog.at_level(logging.WARNING, logger="app.models.types"):
        assert decode_or_empty("[1, 2", list, "familias.situaciones_proteccion") == []
    assert "familias.situaciones_proteccion" in caplog.text


def test_structured_columns_round_trip(db, familia):
    familia.info_vivienda = {"tipo": "Casa", "habitaciones": 3, "servicios": ["agua", "luz"]}
    familia.situaciones_proteccion = ["Desplazamiento"]
    db.commit()
    db.expire_all()

    reloaded = db.get(Familia, familia.familia_id)
    assert reloaded.info_vivienda == {"tipo": "Casa", "habitaciones": 3, "servicios": ["agua", "luz"]}
    assert reloaded.situaciones_proteccion == ["Desplazamiento"]
    assert reloaded.practicas_cuidado == {}


def test_malformed_stored_text_reads_as_empty(db, familia, caplog):
    """One bad row does not break the read; the anomaly is logged."""
    db.execute(
        text("UPDATE familias SET info_vivienda = 'texto suelto', situaciones_proteccion = '{}' "
             "WHERE familia_id = :id"),
        {"id": familia.familia_id},
    )
    db.commit()
    db.expire_all()

    with caplog.at_level(logging.WARNING, logger="app.models.types"):
        reloaded = db.get(Familia, familia.familia_id)
        assert reloaded.info_vivienda == {}
        assert reloaded.situaciones_proteccion == []
    assert "familias.info_vivienda" in caplog.text
