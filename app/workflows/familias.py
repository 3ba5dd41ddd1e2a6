"""Guarded family deletion."""

from __future__ import annotations

import logging

from sqlalchemy import delete, exists
from sqlalchemy.orm import Session

from app.errors import ConflictError, NotFoundError
from app.models.aps import Familia, Paciente
from app.models.database import transaction
from app.repositories.familias import FamiliaRepository

logger = logging.getLogger(__name__)


def delete_family(db: Session, familia_id: int) -> None:
    """
    Hard-delete a family that has no active patients.

    The active-member count is checked first so the refusal happens before
    any write; the delete itself repeats the condition, so a patient added
    in between makes it a no-op instead of orphaning that patient.
    """
    repo = FamiliaRepository(db)
    if repo.count_active_members(familia_id) > 0:
        logger.info("Familia %s no eliminada: tiene pacientes activos", familia_id)
        raise ConflictError("No se puede eliminar: la familia tiene pacientes activos")

    activos = exists().where(Paciente.familia_id == familia_id, Paciente.activo.is_(True))
    with transaction(db, "eliminación de familia"):
        deleted = db.execute(
            delete(Familia)
            .where(Familia.familia_id == familia_id, ~activos)
            .execution_options(synchronize_session="fetch")
        ).rowcount
        if deleted == 0:
            if repo.exists(familia_id):
                raise ConflictError("No se puede eliminar: la familia tiene pacientes activos")
            raise NotFoundError("Familia no encontrada")
    logger.info("Familia %s eliminada", familia_id)
