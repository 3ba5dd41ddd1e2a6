"""Family care plans (planes de cuidado familiar)."""

from __future__ import annotations

import logging
from typing import Any

from app.errors import NotFoundError
from app.models.aps import PlanCuidadoFamiliar
from app.models.database import transaction
from app.repositories.base import Repository, coalesce_update, reject_blank, require_fields

logger = logging.getLogger(__name__)

CAMPOS_OBLIGATORIOS = ("familia_id", "paciente_principal_id", "fecha_entrega", "creado_por_uid")
CAMPOS_TEXTO = (
    "condicion_identificada",
    "logro_salud",
    "cuidados_salud",
    "demandas_inducidas_desc",
    "educacion_salud",
)
CAMPOS_EDITABLES = CAMPOS_TEXTO + ("fecha_entrega", "plan_asociado", "estado", "fecha_aceptacion")

ESTADO_INICIAL = "Activo"


class PlanCuidadoRepository(Repository):

    def get(self, plan_id: int) -> PlanCuidadoFamiliar:
        plan = (
            self.db.query(PlanCuidadoFamiliar)
            .filter(PlanCuidadoFamiliar.plan_id == plan_id)
            .first()
        )
        if plan is None:
            raise NotFoundError("Plan de cuidado no encontrado")
        return plan

    def list_by_patient(self, paciente_id: int) -> list[PlanCuidadoFamiliar]:
        return (
            self.db.query(PlanCuidadoFamiliar)
            .filter(PlanCuidadoFamiliar.paciente_principal_id == paciente_id)
            .order_by(PlanCuidadoFamiliar.fecha_entrega.desc(), PlanCuidadoFamiliar.plan_id.desc())
            .all()
        )

    def list_by_family(self, familia_id: int) -> list[PlanCuidadoFamiliar]:
        return (
            self.db.query(PlanCuidadoFamiliar)
            .filter(PlanCuidadoFamiliar.familia_id == familia_id)
            .order_by(PlanCuidadoFamiliar.fecha_entrega.desc(), PlanCuidadoFamiliar.plan_id.desc())
            .all()
        )

    def create(self, data: dict[str, Any]) -> PlanCuidadoFamiliar:
        require_fields(data, CAMPOS_OBLIGATORIOS)
        plan = PlanCuidadoFamiliar(
            familia_id=data["familia_id"],
            paciente_principal_id=data["paciente_principal_id"],
            fecha_entrega=data["fecha_entrega"],
            plan_asociado=data.get("plan_asociado") or [],
            estado=data.get("estado") or ESTADO_INICIAL,
            creado_por_uid=data["creado_por_uid"],
            fecha_aceptacion=data.get("fecha_aceptacion"),
            **{name: data.get(name) or None for name in CAMPOS_TEXTO},
        )
        with transaction(self.db, "creación de plan de cuidado"):
            self.db.add(plan)
            self.db.flush()
        logger.info("Plan de cuidado %s creado para familia %s", plan.plan_id, plan.familia_id)
        return self.get(plan.plan_id)

    def update(self, plan_id: int, data: dict[str, Any]) -> PlanCuidadoFamiliar:
        reject_blank(data, CAMPOS_OBLIGATORIOS)
        plan = self.get(plan_id)
        with transaction(self.db, "actualización de plan de cuidado"):
            coalesce_update(plan, data, CAMPOS_EDITABLES)
        return self.get(plan_id)
