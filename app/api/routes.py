"""
FastAPI routes – the APS record-keeping API surface.

One router, mounted by ``app.main`` under both ``/api`` and ``/api/v1``.
Handlers stay thin: parse the body, call a repository or workflow with the
request's session, shape the result with a presenter. Errors propagate as
``APSError`` subclasses and are translated by the handlers in ``app.main``.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Any

from fastapi import APIRouter, Body, Depends, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import ValidationError
from app.models.database import get_db
from app.presenters import (
    bitacora_payload,
    demanda_payload,
    familia_payload,
    family_characterization,
    historia_payload,
    paciente_payload,
    plan_payload,
    usuario_payload,
)
from app.repositories.demandas import DemandaInducidaRepository
from app.repositories.familias import FamiliaRepository
from app.repositories.historias import HistoriaClinicaRepository, RecetaRepository
from app.repositories.legacy import LegacyRepository
from app.repositories.pacientes import PacienteRepository
from app.repositories.planes import PlanCuidadoRepository
from app.repositories.usuarios import UsuarioRepository
from app.schemas.api import (
    BitacoraCreate,
    BitacoraResponse,
    CambioEstado,
    CaracterizacionFamiliarResponse,
    CaracterizacionResult,
    DemandaCreada,
    DemandaCreate,
    DemandaResponse,
    DemandaUpdate,
    EncuestaVivienda,
    EquipoResponse,
    FamiliaCreate,
    FamiliaResponse,
    FamiliaUpdate,
    HealthResponse,
    HistoriaClinicaCreate,
    HistoriaClinicaResponse,
    OrdenLaboratorioCreate,
    PacienteCreate,
    PacienteResponse,
    PacienteUpdate,
    PlanCreado,
    PlanCuidadoCreate,
    PlanCuidadoResponse,
    PlanCuidadoSimple,
    PlanCuidadoUpdate,
    RecetaCreate,
    RolResponse,
    UsuarioResponse,
)
from app.services.bitacora import log_activity, search_activity
from app.workflows.caracterizacion import replace_family_characterization
from app.workflows.familias import delete_family

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse)
def health_check(db: Session = Depends(get_db)):
    """Basic health endpoint – verifies DB connectivity."""
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError as exc:
        logger.warning("Health check: base de datos no disponible: %s", exc)
        db_status = "disconnected"
    return HealthResponse(environment=settings.ENVIRONMENT, database=db_status)


# ---------------------------------------------------------------------------
# Familias
# ---------------------------------------------------------------------------

@router.get("/familias", response_model=list[FamiliaResponse])
def list_families(db: Session = Depends(get_db)):
    return [familia_payload(f, count) for f, count in FamiliaRepository(db).list_all()]


@router.get("/familias/{familia_id}", response_model=FamiliaResponse)
def get_family(familia_id: int, db: Session = Depends(get_db)):
    return familia_payload(*FamiliaRepository(db).get(familia_id))


@router.post("/familias", response_model=FamiliaResponse, status_code=status.HTTP_201_CREATED)
def create_family(body: FamiliaCreate, db: Session = Depends(get_db)):
    return familia_payload(*FamiliaRepository(db).create(body.fields()))


@router.put("/familias/{familia_id}", response_model=FamiliaResponse)
def update_family(familia_id: int, body: FamiliaUpdate, db: Session = Depends(get_db)):
    return familia_payload(*FamiliaRepository(db).update(familia_id, body.fields()))


@router.delete("/familias/{familia_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_family(familia_id: int, db: Session = Depends(get_db)):
    """Hard delete, refused with 400 while the family has active patients."""
    delete_family(db, familia_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/familias/{familia_id}/pacientes", response_model=list[PacienteResponse])
def list_family_patients(
    familia_id: int, incluir_inactivos: bool = False, db: Session = Depends(get_db)
):
    pacientes = PacienteRepository(db).list_by_family(familia_id, include_inactive=incluir_inactivos)
    return [paciente_payload(p) for p in pacientes]


# ---------------------------------------------------------------------------
# Pacientes
# ---------------------------------------------------------------------------

@router.get("/pacientes/{paciente_id}", response_model=PacienteResponse)
def get_patient(paciente_id: int, db: Session = Depends(get_db)):
    return paciente_payload(PacienteRepository(db).get(paciente_id))


@router.post("/pacientes", response_model=PacienteResponse, status_code=status.HTTP_201_CREATED)
def create_patient(body: PacienteCreate, db: Session = Depends(get_db)):
    return paciente_payload(PacienteRepository(db).create(body.fields()))


@router.put("/pacientes/{paciente_id}", response_model=PacienteResponse)
def update_patient(paciente_id: int, body: PacienteUpdate, db: Session = Depends(get_db)):
    return paciente_payload(PacienteRepository(db).update(paciente_id, body.fields()))


@router.delete("/pacientes/{paciente_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_patient(paciente_id: int, db: Session = Depends(get_db)):
    """Logical delete: the row stays, with ``activo`` false."""
    PacienteRepository(db).soft_delete(paciente_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Caracterización familiar
# ---------------------------------------------------------------------------

@router.post(
    "/caracterizaciones",
    response_model=CaracterizacionResult,
    status_code=status.HTTP_201_CREATED,
)
def characterize_family(payload: dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    """
    Replace a family's characterization and every member characterization.

    The body is validated against the characterization JSON schema rather
    than a pydantic model so that unknown survey keys pass through.
    """
    return replace_family_characterization(db, payload)


@router.get(
    "/familias/{familia_id}/caracterizacion",
    response_model=CaracterizacionFamiliarResponse,
)
def get_family_characterization(familia_id: int, db: Session = Depends(get_db)):
    return family_characterization(db, familia_id)


# Legacy characterization-lite

@router.post("/familias/{familia_id}/caracterizacion", status_code=status.HTTP_201_CREATED)
def create_survey(familia_id: int, body: EncuestaVivienda, db: Session = Depends(get_db)):
    encuesta = LegacyRepository(db).create_survey(familia_id, body.fields())
    return {"caracterizacion_id": encuesta.caracterizacion_id}


@router.put("/caracterizaciones/{caracterizacion_id}")
def update_survey(caracterizacion_id: int, body: EncuestaVivienda, db: Session = Depends(get_db)):
    encuesta = LegacyRepository(db).update_survey(caracterizacion_id, body.fields())
    return {"caracterizacion_id": encuesta.caracterizacion_id}


@router.post("/familias/{familia_id}/plan-cuidado", status_code=status.HTTP_201_CREATED)
def create_simple_care_plan(familia_id: int, body: PlanCuidadoSimple, db: Session = Depends(get_db)):
    plan = LegacyRepository(db).create_care_plan(familia_id, body.fields())
    return {"plan_cuidado_id": plan.plan_cuidado_id}


# ---------------------------------------------------------------------------
# Planes de cuidado familiar
# ---------------------------------------------------------------------------

@router.get("/pacientes/{paciente_id}/planes-cuidado", response_model=list[PlanCuidadoResponse])
def list_patient_care_plans(paciente_id: int, db: Session = Depends(get_db)):
    return [plan_payload(p) for p in PlanCuidadoRepository(db).list_by_patient(paciente_id)]


@router.get("/familias/{familia_id}/planes-cuidado", response_model=list[PlanCuidadoResponse])
def list_family_care_plans(familia_id: int, db: Session = Depends(get_db)):
    return [plan_payload(p) for p in PlanCuidadoRepository(db).list_by_family(familia_id)]


@router.post("/planes-cuidado", response_model=PlanCreado, status_code=status.HTTP_201_CREATED)
def create_care_plan(body: PlanCuidadoCreate, db: Session = Depends(get_db)):
    plan = PlanCuidadoRepository(db).create(body.fields())
    return PlanCreado(plan_id=plan.plan_id)


@router.put("/planes-cuidado/{plan_id}", response_model=PlanCuidadoResponse)
def update_care_plan(plan_id: int, body: PlanCuidadoUpdate, db: Session = Depends(get_db)):
    return plan_payload(PlanCuidadoRepository(db).update(plan_id, body.fields()))


# ---------------------------------------------------------------------------
# Demandas inducidas
# ---------------------------------------------------------------------------

@router.get("/pacientes/{paciente_id}/demandas-inducidas", response_model=list[DemandaResponse])
def list_patient_demands(paciente_id: int, db: Session = Depends(get_db)):
    return [demanda_payload(d) for d in DemandaInducidaRepository(db).list_by_patient(paciente_id)]


@router.post("/demandas-inducidas", response_model=DemandaCreada, status_code=status.HTTP_201_CREATED)
def create_demand(body: DemandaCreate, db: Session = Depends(get_db)):
    demanda = DemandaInducidaRepository(db).create(body.fields())
    return DemandaCreada(demanda_id=demanda.demanda_id)


@router.put("/demandas-inducidas/{demanda_id}", response_model=DemandaResponse)
def update_demand(demanda_id: int, body: DemandaUpdate, db: Session = Depends(get_db)):
    """Edit form data; status only changes through the ``/estado`` route."""
    return demanda_payload(DemandaInducidaRepository(db).update(demanda_id, body.fields()))


@router.put("/demandas-inducidas/{demanda_id}/estado", response_model=DemandaResponse)
def change_demand_status(demanda_id: int, body: CambioEstado, db: Session = Depends(get_db)):
    repo = DemandaInducidaRepository(db)
    if not body.estado:
        repo.get(demanda_id)
        raise ValidationError.missing(["estado"])
    demanda = repo.change_status(demanda_id, body.estado, body.asignado_a_uid)
    return demanda_payload(demanda)


@router.get("/usuarios/{usuario_id}/demandas-asignadas", response_model=list[DemandaResponse])
def list_assigned_demands(usuario_id: int, db: Session = Depends(get_db)):
    return [demanda_payload(d) for d in DemandaInducidaRepository(db).list_assigned_to(usuario_id)]


# ---------------------------------------------------------------------------
# Historias clínicas
# ---------------------------------------------------------------------------

@router.post("/demandas-inducidas/{demanda_id}/historia-clinica", status_code=status.HTTP_201_CREATED)
def record_visit(demanda_id: int, body: HistoriaClinicaCreate, db: Session = Depends(get_db)):
    """Log the clinical visit that attends an induced demand."""
    demanda = DemandaInducidaRepository(db).get(demanda_id)
    data = body.fields()
    if not data.get("paciente_id"):
        data["paciente_id"] = demanda.paciente_id
    historia = HistoriaClinicaRepository(db).create(data, demanda_id=demanda_id)
    return {"historia_clinica_id": historia.historia_clinica_id}


@router.get("/pacientes/{paciente_id}/historias-clinicas", response_model=list[HistoriaClinicaResponse])
def list_patient_visits(paciente_id: int, db: Session = Depends(get_db)):
    return [historia_payload(h) for h in HistoriaClinicaRepository(db).list_by_patient(paciente_id)]


@router.post("/historias-clinicas/{historia_clinica_id}/orden-lab", status_code=status.HTTP_201_CREATED)
def order_lab(historia_clinica_id: int, body: OrdenLaboratorioCreate, db: Session = Depends(get_db)):
    orden = HistoriaClinicaRepository(db).order_lab(historia_clinica_id, body.fields())
    return {"orden_lab_id": orden.orden_lab_id}


@router.post("/pacientes/{paciente_id}/receta", status_code=status.HTTP_201_CREATED)
def prescribe(paciente_id: int, body: RecetaCreate, db: Session = Depends(get_db)):
    receta = RecetaRepository(db).create(paciente_id, body.fields())
    return {"receta_id": receta.receta_id}


# ---------------------------------------------------------------------------
# Bitácoras
# ---------------------------------------------------------------------------

@router.post("/bitacoras", status_code=status.HTTP_201_CREATED)
def create_log_entry(body: BitacoraCreate, db: Session = Depends(get_db)):
    entry = log_activity(db, **body.model_dump())
    return {"bitacora_id": entry.bitacora_id}


@router.get("/bitacoras", response_model=list[BitacoraResponse])
def list_log_entries(
    usuario_id: int | None = None,
    tipo_actividad: str | None = None,
    fecha_desde: date | None = None,
    fecha_hasta: date | None = None,
    db: Session = Depends(get_db),
):
    """Date filters are whole days: ``fecha_hasta`` includes that entire day."""
    entries = search_activity(
        db,
        usuario_id=usuario_id,
        tipo_actividad=tipo_actividad,
        fecha_desde=datetime.combine(fecha_desde, time.min) if fecha_desde else None,
        fecha_hasta=datetime.combine(fecha_hasta, time.max) if fecha_hasta else None,
    )
    return [bitacora_payload(e) for e in entries]


# ---------------------------------------------------------------------------
# Equipo de cuidado
# ---------------------------------------------------------------------------

@router.get("/usuarios", response_model=list[UsuarioResponse])
def list_users(db: Session = Depends(get_db)):
    return [usuario_payload(u) for u in UsuarioRepository(db).list_active()]


@router.get("/usuarios/rol/{nombre_rol}", response_model=list[UsuarioResponse])
def list_users_by_role(nombre_rol: str, db: Session = Depends(get_db)):
    return [usuario_payload(u) for u in UsuarioRepository(db).list_by_role(nombre_rol)]


@router.get("/usuarios/{usuario_id}", response_model=UsuarioResponse)
def get_user(usuario_id: int, db: Session = Depends(get_db)):
    return usuario_payload(UsuarioRepository(db).get(usuario_id))


@router.get("/roles", response_model=list[RolResponse])
def list_roles(db: Session = Depends(get_db)):
    return UsuarioRepository(db).roles()


@router.get("/equipos", response_model=list[EquipoResponse])
def list_teams(db: Session = Depends(get_db)):
    return UsuarioRepository(db).teams()


@router.get("/equipos/{equipo_id}/usuarios", response_model=list[UsuarioResponse])
def list_team_users(equipo_id: int, db: Session = Depends(get_db)):
    return [usuario_payload(u) for u in UsuarioRepository(db).list_by_team(equipo_id)]
