"""Tests for the ordered write plan."""

import pytest

from app.errors import ConflictError, PersistenceError
from app.models.aps import Familia
from app.workflows.caracterizacion import build_characterization_plan
from app.workflows.plan import WritePlan


def test_characterization_plan_order():
    assert build_characterization_plan().step_names() == [
        "actualizar_familia",
        "limpiar_caracterizaciones",
        "insertar_integrantes",
    ]


def test_steps_run_in_order_and_share_context(db):
    calls = []

    def first(ctx):
        calls.append("first")
        return {"total": ctx["base"] + 1}

    def second(ctx):
        calls.append("second")
        return {"total": ctx["total"] * 10}

    def silent(ctx):
        calls.append("silent")

    plan = WritePlan("prueba", "prueba").add_step("first", first).add_step("second", second)
    plan.add_step("silent", silent)

    initial = {"base": 4}
    result = plan.run(db, initial)
    assert calls == ["first", "second", "silent"]
    assert result == {"base": 4, "total": 50}
    assert initial == {"base": 4}


def test_failure_stops_the_plan_and_rolls_back(db, familia):
    calls = []

    def rename(ctx):
        ctx["familia"].municipio = "Ipiales"
        db.flush()
        calls.append("rename")

    def boom(ctx):
        raise RuntimeError("disco lleno")

    def never(ctx):
        calls.append("never")

    plan = WritePlan("prueba", "actualización de prueba")
    plan.add_step("rename", rename).add_step("boom", boom).add_step("never", never)

    with pytest.raises(PersistenceError) as info:
        plan.run(db, {"familia": familia})

    assert info.value.message == "Error en actualización de prueba; paso fallido: boom"
    assert isinstance(info.value.__cause__, RuntimeError)
    assert calls == ["rename"]
    db.expire_all()
    assert db.get(Familia, familia.familia_id).municipio == "Pasto"


def test_domain_errors_pass_through_unchanged(db, familia):
    def refuse(ctx):
        ctx["familia"].municipio = "Ipiales"
        raise ConflictError("No permitido")

    plan = WritePlan("prueba", "prueba").add_step("refuse", refuse)
    with pytest.raises(ConflictError, match="No permitido"):
        plan.run(db, {"familia": familia})

    db.expire_all()
    assert db.get(Familia, familia.familia_id).municipio == "Pasto"


def test_duplicate_step_names_are_rejected():
    plan = WritePlan("prueba", "prueba").add_step("a", lambda ctx: None)
    with pytest.raises(ValueError, match="Duplicate step name: a"):
        plan.add_step("a", lambda ctx: None)
