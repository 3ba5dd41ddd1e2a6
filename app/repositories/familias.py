"""Familia repository – households and their live member count."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select

from app.errors import NotFoundError
from app.models.aps import Familia, Paciente
from app.models.database import transaction
from app.repositories.base import Repository, coalesce_update, reject_blank, require_fields

logger = logging.getLogger(__name__)

CAMPOS_OBLIGATORIOS = ("apellido_principal", "direccion", "municipio", "creado_por_uid")
CAMPOS_BASICOS = (
    "apellido_principal",
    "direccion",
    "barrio_vereda",
    "municipio",
    "telefono_contacto",
)


def integrantes_count():
    """Correlated count of active patients, evaluated per family row at read time."""
    return (
        select(func.count(Paciente.paciente_id))
        .where(Paciente.familia_id == Familia.familia_id, Paciente.activo.is_(True))
        .correlate(Familia)
        .scalar_subquery()
        .label("integrantes_count")
    )


class FamiliaRepository(Repository):

    def list_all(self) -> list[tuple[Familia, int]]:
        rows = (
            self.db.query(Familia, integrantes_count())
            .order_by(Familia.apellido_principal, Familia.familia_id)
            .all()
        )
        return [(familia, count) for familia, count in rows]

    def get(self, familia_id: int) -> tuple[Familia, int]:
        row = (
            self.db.query(Familia, integrantes_count())
            .filter(Familia.familia_id == familia_id)
            .first()
        )
        if row is None:
            raise NotFoundError("Familia no encontrada")
        return row[0], row[1]

    def exists(self, familia_id: int) -> bool:
        return (
            self.db.query(Familia.familia_id).filter(Familia.familia_id == familia_id).first()
            is not None
        )

    def count_active_members(self, familia_id: int) -> int:
        return (
            self.db.query(func.count(Paciente.paciente_id))
            .filter(Paciente.familia_id == familia_id, Paciente.activo.is_(True))
            .scalar()
        )

    def create(self, data: dict[str, Any]) -> tuple[Familia, int]:
        require_fields(data, CAMPOS_OBLIGATORIOS)
        familia = Familia(
            apellido_principal=data["apellido_principal"],
            direccion=data["direccion"],
            barrio_vereda=data.get("barrio_vereda") or None,
            municipio=data["municipio"],
            telefono_contacto=data.get("telefono_contacto") or None,
            creado_por_uid=data["creado_por_uid"],
        )
        with transaction(self.db, "creación de familia"):
            self.db.add(familia)
            self.db.flush()
        logger.info("Familia %s creada", familia.familia_id)
        return self.get(familia.familia_id)

    def update(self, familia_id: int, data: dict[str, Any]) -> tuple[Familia, int]:
        reject_blank(data, CAMPOS_OBLIGATORIOS)
        familia, _ = self.get(familia_id)
        with transaction(self.db, "actualización de familia"):
            coalesce_update(familia, data, CAMPOS_BASICOS)
        return self.get(familia_id)
