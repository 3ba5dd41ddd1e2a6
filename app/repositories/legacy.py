"""
Characterization-lite tables kept for the old API surface.

Per-family housing/economic survey rows and the simple narrative care plan.
New clients use the full family characterization and PlanCuidadoFamiliar.
"""

from __future__ import annotations

from typing import Any

from app.errors import NotFoundError
from app.models.aps import Caracterizacion, Familia, PlanCuidado
from app.models.database import transaction
from app.repositories.base import Repository, coalesce_update, require_fields

CAMPOS_ENCUESTA = (
    "tipo_vivienda",
    "material_paredes",
    "material_piso",
    "servicios_publicos",
    "numero_habitaciones",
    "numero_personas",
    "ingresos_mensuales",
    "observaciones",
)


class LegacyRepository(Repository):

    def _require_family(self, familia_id: int) -> None:
        if self.db.get(Familia, familia_id) is None:
            raise NotFoundError("Familia no encontrada")

    def create_survey(self, familia_id: int, data: dict[str, Any]) -> Caracterizacion:
        self._require_family(familia_id)
        encuesta = Caracterizacion(
            familia_id=familia_id,
            **{name: data.get(name) for name in CAMPOS_ENCUESTA},
        )
        with transaction(self.db, "creación de caracterización"):
            self.db.add(encuesta)
            self.db.flush()
        return encuesta

    def update_survey(self, caracterizacion_id: int, data: dict[str, Any]) -> Caracterizacion:
        encuesta = self.db.get(Caracterizacion, caracterizacion_id)
        if encuesta is None:
            raise NotFoundError("Caracterización no encontrada")
        with transaction(self.db, "actualización de caracterización"):
            coalesce_update(encuesta, data, CAMPOS_ENCUESTA)
        return encuesta

    def create_care_plan(self, familia_id: int, data: dict[str, Any]) -> PlanCuidado:
        require_fields(data, ("objetivo", "actividades"))
        self._require_family(familia_id)
        plan = PlanCuidado(
            familia_id=familia_id,
            objetivo=data["objetivo"],
            actividades=data["actividades"],
            responsable=data.get("responsable") or None,
            fecha_inicio=data.get("fecha_inicio"),
            fecha_fin=data.get("fecha_fin"),
            observaciones=data.get("observaciones") or None,
        )
        with transaction(self.db, "creación de plan de cuidado"):
            self.db.add(plan)
            self.db.flush()
        return plan
