"""Field activity log (bitácora) for care-team members."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from app.models.aps import Bitacora
from app.models.database import transaction
from app.repositories.base import require_fields

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    *,
    usuario_id: int | None,
    tipo_actividad: str | None,
    descripcion: str | None,
    ubicacion: str | None = None,
    observaciones: str | None = None,
) -> Bitacora:
    """Append one entry to the activity log."""
    require_fields(
        {"usuario_id": usuario_id, "tipo_actividad": tipo_actividad, "descripcion": descripcion},
        ("usuario_id", "tipo_actividad", "descripcion"),
    )
    entry = Bitacora(
        usuario_id=usuario_id,
        tipo_actividad=tipo_actividad,
        descripcion=descripcion,
        ubicacion=ubicacion or None,
        observaciones=observaciones or None,
    )
    with transaction(db, "registro de bitácora"):
        db.add(entry)
        db.flush()
    logger.info("BITACORA: usuario %s %s #%s", usuario_id, tipo_actividad, entry.bitacora_id)
    return entry


def search_activity(
    db: Session,
    *,
    usuario_id: int | None = None,
    tipo_actividad: str | None = None,
    fecha_desde: datetime | None = None,
    fecha_hasta: datetime | None = None,
) -> list[Bitacora]:
    """Entries newest first; each filter applies only when given."""
    query = db.query(Bitacora)
    if usuario_id:
        query = query.filter(Bitacora.usuario_id == usuario_id)
    if tipo_actividad:
        query = query.filter(Bitacora.tipo_actividad == tipo_actividad)
    if fecha_desde:
        query = query.filter(Bitacora.fecha_registro >= fecha_desde)
    if fecha_hasta:
        query = query.filter(Bitacora.fecha_registro <= fecha_hasta)
    return query.order_by(Bitacora.fecha_registro.desc(), Bitacora.bitacora_id.desc()).all()
