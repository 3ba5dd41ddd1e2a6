"""
Induced demands (demandas inducidas).

Status moves only through explicit writes:

    Pendiente -> Asignada -> Completada
                          -> Cancelada

A new demand enters the lifecycle as Pendiente, or as Asignada when it
already names its assignee.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from app.errors import ConflictError, NotFoundError, ValidationError
from app.models.aps import ESTADOS_DEMANDA, DemandaInducida
from app.models.database import transaction
from app.repositories.base import Repository, coalesce_update, reject_blank, require_fields

logger = logging.getLogger(__name__)

CAMPOS_OBLIGATORIOS = ("paciente_id", "fecha_demanda", "solicitado_por_uid")
CAMPOS_EDITABLES = (
    "numero_formulario",
    "fecha_demanda",
    "diligenciamiento",
    "remision_a",
    "seguimiento",
    "observaciones",
)

ESTADO_INICIAL = "Pendiente"
ESTADOS_ABIERTOS = ("Pendiente", "Asignada")
TRANSICIONES: dict[str, tuple[str, ...]] = {
    "Pendiente": ("Asignada",),
    "Asignada": ("Completada", "Cancelada"),
    "Completada": (),
    "Cancelada": (),
}


class DemandaInducidaRepository(Repository):

    def get(self, demanda_id: int) -> DemandaInducida:
        demanda = (
            self.db.query(DemandaInducida)
            .filter(DemandaInducida.demanda_id == demanda_id)
            .first()
        )
        if demanda is None:
            raise NotFoundError("Demanda inducida no encontrada")
        return demanda

    def list_by_patient(self, paciente_id: int) -> list[DemandaInducida]:
        return (
            self.db.query(DemandaInducida)
            .filter(DemandaInducida.paciente_id == paciente_id)
            .order_by(DemandaInducida.fecha_demanda.desc(), DemandaInducida.demanda_id.desc())
            .all()
        )

    def list_assigned_to(self, usuario_id: int) -> list[DemandaInducida]:
        """Open demands (pending or assigned) for one professional."""
        return (
            self.db.query(DemandaInducida)
            .filter(
                DemandaInducida.asignado_a_uid == usuario_id,
                DemandaInducida.estado.in_(ESTADOS_ABIERTOS),
            )
            .order_by(DemandaInducida.fecha_demanda.desc(), DemandaInducida.demanda_id.desc())
            .all()
        )

    def create(self, data: dict[str, Any]) -> DemandaInducida:
        require_fields(data, CAMPOS_OBLIGATORIOS)
        estado = data.get("estado") or ESTADO_INICIAL
        if estado not in ESTADOS_DEMANDA:
            raise ValidationError(f"Estado de demanda inválido: {estado}", details=["estado"])
        if estado not in ESTADOS_ABIERTOS:
            raise ConflictError(f"Una demanda nueva no puede crearse en estado {estado}")

        asignado_a_uid = data.get("asignado_a_uid")
        if estado == "Asignada" and not asignado_a_uid:
            raise ValidationError.missing(["asignado_a_uid"])
        demanda = DemandaInducida(
            numero_formulario=data.get("numero_formulario") or None,
            paciente_id=data["paciente_id"],
            plan_id=data.get("plan_id"),
            fecha_demanda=data["fecha_demanda"],
            diligenciamiento=data.get("diligenciamiento") or [],
            remision_a=data.get("remision_a") or [],
            estado=estado,
            asignado_a_uid=asignado_a_uid,
            solicitado_por_uid=data["solicitado_por_uid"],
            seguimiento=data.get("seguimiento") or {},
            fecha_asignacion=date.today() if asignado_a_uid else None,
            observaciones=data.get("observaciones") or None,
        )
        with transaction(self.db, "creación de demanda inducida"):
            self.db.add(demanda)
            self.db.flush()
        logger.info("Demanda inducida %s creada para paciente %s", demanda.demanda_id, demanda.paciente_id)
        return self.get(demanda.demanda_id)

    def update(self, demanda_id: int, data: dict[str, Any]) -> DemandaInducida:
        reject_blank(data, CAMPOS_OBLIGATORIOS)
        demanda = self.get(demanda_id)
        with transaction(self.db, "actualización de demanda inducida"):
            coalesce_update(demanda, data, CAMPOS_EDITABLES)
        return self.get(demanda_id)

    def change_status(
        self, demanda_id: int, estado: str, asignado_a_uid: int | None = None
    ) -> DemandaInducida:
        if estado not in ESTADOS_DEMANDA:
            raise ValidationError(f"Estado de demanda inválido: {estado}", details=["estado"])

        demanda = self.get(demanda_id)
        if estado not in TRANSICIONES[demanda.estado]:
            raise ConflictError(f"Transición no permitida: {demanda.estado} -> {estado}")

        if estado == "Asignada":
            profesional = asignado_a_uid or demanda.asignado_a_uid
            if not profesional:
                raise ValidationError.missing(["asignado_a_uid"])

        anterior = demanda.estado
        with transaction(self.db, "cambio de estado de demanda"):
            demanda.estado = estado
            if estado == "Asignada":
                demanda.asignado_a_uid = profesional
                demanda.fecha_asignacion = date.today()
        logger.info("Demanda %s: %s -> %s", demanda_id, anterior, estado)
        return self.get(demanda_id)
