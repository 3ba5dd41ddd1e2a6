"""
Full family characterization replace.

A resubmitted survey overwrites the family's characterization fields and
replaces every member characterization. The three writes run in order as one
WritePlan inside a single transaction:

    actualizar_familia -> limpiar_caracterizaciones -> insertar_integrantes

Member rows are never patched; if any step fails nothing is committed and the
caller gets one error naming the failed step.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.errors import NotFoundError, ValidationError
from app.models.aps import CaracterizacionPaciente, Familia, Paciente
from app.repositories.base import require_fields
from app.repositories.pacientes import PacienteRepository
from app.schemas.caracterizacion import CARACTERIZACION_FAMILIAR_SCHEMA
from app.services.validation import validate_against_schema
from app.workflows.plan import WritePlan

logger = logging.getLogger(__name__)

CAMPOS_FAMILIA = (
    "numero_ficha",
    "zona",
    "territorio",
    "estrato",
    "tipo_familia",
    "riesgo_familiar",
)
ESTRUCTURADOS_FAMILIA = {
    "info_vivienda": dict,
    "situaciones_proteccion": list,
    "condiciones_salud_publica": list,
    "practicas_cuidado": dict,
}
CAMPOS_INTEGRANTE = (
    "rol_familiar",
    "ocupacion",
    "nivel_educativo",
    "grupo_poblacional",
    "regimen_afiliacion",
    "pertenencia_etnica",
)
ESTRUCTURADOS_INTEGRANTE = {
    "discapacidad": list,
    "datos_pyp": dict,
    "datos_salud": dict,
}


def _parse_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


def _text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


# ---------------------------------------------------------------------------
# Plan steps (each receives and returns a context dict)
# ---------------------------------------------------------------------------


def update_family(context: dict[str, Any]) -> dict[str, Any]:
    """Overwrite every characterization field; absent values become null/empty."""
    db: Session = context["db"]
    familia: Familia = context["familia"]
    datos: dict[str, Any] = context["datos_familia"]

    for name in CAMPOS_FAMILIA:
        setattr(familia, name, _text(datos.get(name)))
    familia.fecha_caracterizacion = _parse_date(datos.get("fecha_caracterizacion"))
    for name, shape in ESTRUCTURADOS_FAMILIA.items():
        setattr(familia, name, datos.get(name) or shape())
    db.flush()

    logger.info("Familia %s actualizada con datos de caracterización", familia.familia_id)
    return {"fecha_familia": familia.fecha_caracterizacion}


def purge_member_characterizations(context: dict[str, Any]) -> dict[str, Any]:
    """Delete the characterization of every patient of the family, active or not."""
    db: Session = context["db"]
    miembros = select(Paciente.paciente_id).where(Paciente.familia_id == context["familia_id"])
    result = db.execute(
        delete(CaracterizacionPaciente)
        .where(CaracterizacionPaciente.paciente_id.in_(miembros))
        .execution_options(synchronize_session="fetch")
    )
    logger.info("Caracterizaciones previas eliminadas: %d", result.rowcount)
    return {"caracterizaciones_eliminadas": result.rowcount}


def insert_member_characterizations(context: dict[str, Any]) -> dict[str, Any]:
    db: Session = context["db"]
    integrantes: list[dict[str, Any]] = context["integrantes"]
    fecha_defecto = context.get("fecha_familia") or date.today()

    for integrante in integrantes:
        db.add(
            CaracterizacionPaciente(
                paciente_id=int(integrante["paciente_id"]),
                fecha_caracterizacion=_parse_date(integrante.get("fecha_caracterizacion"))
                or fecha_defecto,
                victima_violencia=bool(integrante.get("victima_violencia")),
                creado_por_uid=integrante.get("creado_por_uid"),
                **{name: _text(integrante.get(name)) for name in CAMPOS_INTEGRANTE},
                **{
                    name: integrante.get(name) or shape()
                    for name, shape in ESTRUCTURADOS_INTEGRANTE.items()
                },
            )
        )
    db.flush()
    return {"integrantes_procesados": len(integrantes)}


def build_characterization_plan() -> WritePlan:
    plan = WritePlan("caracterizacion_familiar", "caracterización familiar")
    plan.add_step("actualizar_familia", update_family)
    plan.add_step("limpiar_caracterizaciones", purge_member_characterizations)
    plan.add_step("insertar_integrantes", insert_member_characterizations)
    return plan


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def _check_members(db: Session, familia_id: int, integrantes: list[dict[str, Any]]) -> None:
    """Members must belong to the family and appear once, or the 1-1 invariant breaks."""
    propios = PacienteRepository(db).ids_in_family(familia_id)
    vistos: set[int] = set()
    problemas = []
    for index, integrante in enumerate(integrantes):
        paciente_id = int(integrante["paciente_id"])
        if paciente_id not in propios:
            problemas.append(f"integrantes.{index}: el paciente {paciente_id} no pertenece a la familia")
        elif paciente_id in vistos:
            problemas.append(f"integrantes.{index}: paciente {paciente_id} repetido")
        vistos.add(paciente_id)
    if problemas:
        raise ValidationError("Integrantes inválidos", details=problemas)


def replace_family_characterization(db: Session, payload: dict[str, Any]) -> dict[str, Any]:
    """
    Validate the payload, then run the characterization plan in one transaction.

    Raises ValidationError / NotFoundError before any write, and
    PersistenceError (after rolling back) when any step fails.
    """
    require_fields(payload, ("familia_id", "datos_familia"))
    errors = validate_against_schema(payload, CARACTERIZACION_FAMILIAR_SCHEMA)
    if errors:
        raise ValidationError("Caracterización inválida", details=errors)

    familia_id = int(payload["familia_id"])
    integrantes = payload.get("integrantes") or []

    familia = db.get(Familia, familia_id)
    if familia is None:
        raise NotFoundError("Familia no encontrada")
    _check_members(db, familia_id, integrantes)

    logger.info("Creando caracterización para familia %s (%d integrantes)", familia_id, len(integrantes))
    result = build_characterization_plan().run(
        db,
        {
            "db": db,
            "familia": familia,
            "familia_id": familia_id,
            "datos_familia": payload["datos_familia"],
            "integrantes": integrantes,
        },
    )
    procesados = result["integrantes_procesados"]
    logger.info("Caracterización de familia %s completada (%d integrantes)", familia_id, procesados)
    return {
        "success": True,
        "message": "Caracterización creada exitosamente",
        "familia_id": familia_id,
        "integrantes_procesados": procesados,
    }
