"""Clinical visit records (historias clínicas), with the lab orders and prescriptions issued from them."""

from __future__ import annotations

import logging
from typing import Any

from app.errors import NotFoundError, ValidationError
from app.models.aps import HistoriaClinica, OrdenLaboratorio, Paciente, Receta
from app.models.database import transaction
from app.repositories.base import Repository, require_fields

logger = logging.getLogger(__name__)

CAMPOS_OBLIGATORIOS = ("paciente_id", "tipo_consulta", "motivo_consulta")
CAMPOS_OPCIONALES = ("sintomas", "diagnostico", "tratamiento", "observaciones")

ESTADO_ORDEN_INICIAL = "pendiente"


class HistoriaClinicaRepository(Repository):

    def get(self, historia_clinica_id: int) -> HistoriaClinica:
        historia = self.db.get(HistoriaClinica, historia_clinica_id)
        if historia is None:
            raise NotFoundError("Historia clínica no encontrada")
        return historia

    def list_by_patient(self, paciente_id: int) -> list[HistoriaClinica]:
        return (
            self.db.query(HistoriaClinica)
            .filter(HistoriaClinica.paciente_id == paciente_id)
            .order_by(HistoriaClinica.fecha_consulta.desc(), HistoriaClinica.historia_clinica_id.desc())
            .all()
        )

    def create(self, data: dict[str, Any], demanda_id: int | None = None) -> HistoriaClinica:
        require_fields(data, CAMPOS_OBLIGATORIOS)
        historia = HistoriaClinica(
            paciente_id=data["paciente_id"],
            demanda_id=demanda_id,
            profesional_id=data.get("profesional_id"),
            tipo_consulta=data["tipo_consulta"],
            motivo_consulta=data["motivo_consulta"],
            **{name: data.get(name) or None for name in CAMPOS_OPCIONALES},
        )
        with transaction(self.db, "creación de historia clínica"):
            self.db.add(historia)
            self.db.flush()
        logger.info("Historia clínica %s registrada (demanda %s)", historia.historia_clinica_id, demanda_id)
        return historia

    def order_lab(self, historia_clinica_id: int, data: dict[str, Any]) -> OrdenLaboratorio:
        """Lab orders always start out ``pendiente``."""
        require_fields(data, ("tipo_examen", "descripcion"))
        self.get(historia_clinica_id)
        orden = OrdenLaboratorio(
            historia_clinica_id=historia_clinica_id,
            tipo_examen=data["tipo_examen"],
            descripcion=data["descripcion"],
            instrucciones=data.get("instrucciones") or None,
            fecha_requerida=data.get("fecha_requerida"),
            estado=ESTADO_ORDEN_INICIAL,
        )
        with transaction(self.db, "creación de orden de laboratorio"):
            self.db.add(orden)
            self.db.flush()
        logger.info("Orden de laboratorio %s para historia %s", orden.orden_lab_id, historia_clinica_id)
        return orden


class RecetaRepository(Repository):

    def create(self, paciente_id: int, data: dict[str, Any]) -> Receta:
        require_fields(data, ("profesional_id",))
        if not data.get("medicamentos"):
            raise ValidationError.missing(["medicamentos"])
        if self.db.get(Paciente, paciente_id) is None:
            raise NotFoundError("Paciente no encontrado")
        receta = Receta(
            paciente_id=paciente_id,
            profesional_id=data["profesional_id"],
            medicamentos=data["medicamentos"],
            instrucciones=data.get("instrucciones") or None,
            fecha_vencimiento=data.get("fecha_vencimiento"),
            activa=True,
        )
        with transaction(self.db, "creación de receta"):
            self.db.add(receta)
            self.db.flush()
        logger.info("Receta %s emitida para paciente %s", receta.receta_id, paciente_id)
        return receta
