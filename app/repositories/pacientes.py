"""Paciente repository – household members with logical deletion."""

from __future__ import annotations

import logging
from typing import Any

from app.errors import NotFoundError
from app.models.aps import Familia, Paciente
from app.models.database import transaction
from app.repositories.base import Repository, coalesce_update, reject_blank, require_fields

logger = logging.getLogger(__name__)

CAMPOS_OBLIGATORIOS = (
    "familia_id",
    "tipo_documento",
    "numero_documento",
    "primer_nombre",
    "primer_apellido",
)
CAMPOS_OPCIONALES = (
    "segundo_nombre",
    "segundo_apellido",
    "fecha_nacimiento",
    "genero",
    "telefono",
    "email",
)
CAMPOS_EDITABLES = CAMPOS_OBLIGATORIOS + CAMPOS_OPCIONALES + ("activo",)


class PacienteRepository(Repository):

    def get(self, paciente_id: int) -> Paciente:
        paciente = self.db.query(Paciente).filter(Paciente.paciente_id == paciente_id).first()
        if paciente is None:
            raise NotFoundError("Paciente no encontrado")
        return paciente

    def list_by_family(self, familia_id: int, include_inactive: bool = False) -> list[Paciente]:
        query = self.db.query(Paciente).filter(Paciente.familia_id == familia_id)
        if not include_inactive:
            query = query.filter(Paciente.activo.is_(True))
        return query.order_by(
            Paciente.primer_nombre, Paciente.primer_apellido, Paciente.paciente_id
        ).all()

    def ids_in_family(self, familia_id: int) -> set[int]:
        """Every patient id of the family, active or not."""
        rows = self.db.query(Paciente.paciente_id).filter(Paciente.familia_id == familia_id).all()
        return {paciente_id for (paciente_id,) in rows}

    def create(self, data: dict[str, Any]) -> Paciente:
        require_fields(data, CAMPOS_OBLIGATORIOS)
        if self.db.get(Familia, data["familia_id"]) is None:
            raise NotFoundError("Familia no encontrada")

        paciente = Paciente(
            **{name: data[name] for name in CAMPOS_OBLIGATORIOS},
            **{name: data.get(name) or None for name in CAMPOS_OPCIONALES},
            activo=True,
        )
        with transaction(self.db, "creación de paciente"):
            self.db.add(paciente)
            self.db.flush()
        logger.info("Paciente %s creado en familia %s", paciente.paciente_id, paciente.familia_id)
        return self.get(paciente.paciente_id)

    def update(self, paciente_id: int, data: dict[str, Any]) -> Paciente:
        reject_blank(data, CAMPOS_OBLIGATORIOS)
        paciente = self.get(paciente_id)
        familia_id = data.get("familia_id")
        if familia_id is not None and self.db.get(Familia, familia_id) is None:
            raise NotFoundError("Familia no encontrada")
        with transaction(self.db, "actualización de paciente"):
            coalesce_update(paciente, data, CAMPOS_EDITABLES)
        return self.get(paciente_id)

    def soft_delete(self, paciente_id: int) -> None:
        paciente = self.get(paciente_id)
        with transaction(self.db, "baja de paciente"):
            paciente.activo = False
        logger.info("Paciente %s dado de baja", paciente_id)
