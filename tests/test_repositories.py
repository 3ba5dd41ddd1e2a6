"""Repository tests: counts, soft delete, coalesce updates and required fields."""

from datetime import date, datetime, timedelta

import pytest

from app.errors import ConflictError, NotFoundError, ValidationError
from app.models.aps import DemandaInducida, Familia, OrdenLaboratorio, Paciente, Receta
from app.repositories.demandas import DemandaInducidaRepository
from app.repositories.familias import FamiliaRepository
from app.repositories.historias import HistoriaClinicaRepository, RecetaRepository
from app.repositories.legacy import LegacyRepository
from app.repositories.pacientes import PacienteRepository
from app.repositories.planes import PlanCuidadoRepository
from app.repositories.usuarios import UsuarioRepository
from app.services.bitacora import log_activity, search_activity
from app.workflows.familias import delete_family


# ---------------------------------------------------------------------------
# Familias
# ---------------------------------------------------------------------------

def test_create_family_requires_fields(db):
    with pytest.raises(ValidationError, match="direccion, municipio") as info:
        FamiliaRepository(db).create({"apellido_principal": "Lopez", "direccion": "", "creado_por_uid": 1})
    assert info.value.details == ["direccion", "municipio"]
    assert db.query(Familia).count() == 0


def test_member_count_ignores_inactive_patients(db, familia, pacientes):
    repo = FamiliaRepository(db)
    _, count = repo.get(familia.familia_id)
    assert count == 2

    PacienteRepository(db).soft_delete(pacientes[0].paciente_id)
    _, count = repo.get(familia.familia_id)
    assert count == 1
    assert [(f.apellido_principal, c) for f, c in repo.list_all()] == [("Lopez", 1)]


def test_family_update_keeps_omitted_and_null_fields(db, familia):
    repo = FamiliaRepository(db)
    updated, _ = repo.update(familia.familia_id, {"municipio": "Ipiales", "direccion": None})
    assert updated.municipio == "Ipiales"
    assert updated.direccion == "Cl 1 # 2-3"


def test_missing_family_is_not_found(db):
    with pytest.raises(NotFoundError, match="Familia no encontrada"):
        FamiliaRepository(db).get(999)


# ---------------------------------------------------------------------------
# Guarded family deletion
# ---------------------------------------------------------------------------

def test_delete_refused_while_family_has_active_patients(db, familia, pacientes):
    with pytest.raises(ConflictError, match="pacientes activos"):
        delete_family(db, familia.familia_id)
    assert db.get(Familia, familia.familia_id) is not None


def test_delete_after_members_are_deactivated(db, familia, pacientes):
    repo = PacienteRepository(db)
    for paciente in pacientes:
        repo.soft_delete(paciente.paciente_id)

    delete_family(db, familia.familia_id)
    assert not FamiliaRepository(db).exists(familia.familia_id)
    assert db.query(Paciente).filter(Paciente.activo.is_(True)).count() == 0
    assert db.query(Paciente).count() == 3
    assert not Paciente.__table__.c.familia_id.foreign_keys


def test_delete_missing_family(db):
    with pytest.raises(NotFoundError):
        delete_family(db, 42)


# ---------------------------------------------------------------------------
# Pacientes
# ---------------------------------------------------------------------------

def test_family_listing_shows_only_active_members_by_name(db, familia, pacientes):
    repo = PacienteRepository(db)
    assert [p.primer_nombre for p in repo.list_by_family(familia.familia_id)] == ["Ana", "Carlos"]
    assert len(repo.list_by_family(familia.familia_id, include_inactive=True)) == 3
    assert repo.ids_in_family(familia.familia_id) == {p.paciente_id for p in pacientes}


def test_patient_in_unknown_family(db):
    with pytest.raises(NotFoundError):
        PacienteRepository(db).create(
            {
                "familia_id": 5,
                "tipo_documento": "CC",
                "numero_documento": "77",
                "primer_nombre": "Rosa",
                "primer_apellido": "Diaz",
            }
        )


def test_patient_can_be_reactivated_through_update(db, pacientes):
    repo = PacienteRepository(db)
    beto = pacientes[2]
    reactivated = repo.update(beto.paciente_id, {"activo": True, "telefono": "3001234567"})
    assert reactivated.activo is True
    assert reactivated.primer_nombre == "Beto"


def test_patient_cannot_move_to_unknown_family(db, familia, pacientes):
    repo = PacienteRepository(db)
    carlos = pacientes[0]
    with pytest.raises(NotFoundError, match="Familia no encontrada"):
        repo.update(carlos.paciente_id, {"familia_id": 9999, "telefono": "3001234567"})

    db.expire_all()
    stored = db.get(Paciente, carlos.paciente_id)
    assert (stored.familia_id, stored.telefono) == (familia.familia_id, None)
    _, count = FamiliaRepository(db).get(familia.familia_id)
    assert count == 2


def test_patient_moves_to_existing_family(db, familia, pacientes):
    otra, _ = FamiliaRepository(db).create(
        {"apellido_principal": "Diaz", "direccion": "Cr 9", "municipio": "Pasto", "creado_por_uid": 1}
    )
    moved = PacienteRepository(db).update(pacientes[0].paciente_id, {"familia_id": otra.familia_id})
    assert moved.familia_id == otra.familia_id


def test_blank_required_field_on_update_is_rejected(db, familia, pacientes):
    with pytest.raises(ValidationError, match="primer_nombre") as info:
        PacienteRepository(db).update(pacientes[0].paciente_id, {"primer_nombre": "", "telefono": "300"})
    assert info.value.details == ["primer_nombre"]
    with pytest.raises(ValidationError, match="direccion"):
        FamiliaRepository(db).update(familia.familia_id, {"direccion": ""})

    db.expire_all()
    assert db.get(Paciente, pacientes[0].paciente_id).primer_nombre == "Carlos"
    assert db.get(Familia, familia.familia_id).direccion == "Cl 1 # 2-3"


# ---------------------------------------------------------------------------
# Planes de cuidado y demandas
# ---------------------------------------------------------------------------

def _plan(db, familia, paciente):
    return PlanCuidadoRepository(db).create(
        {
            "familia_id": familia.familia_id,
            "paciente_principal_id": paciente.paciente_id,
            "fecha_entrega": date(2024, 4, 1),
            "plan_asociado": ["Hipertensión"],
            "condicion_identificada": "HTA no controlada",
            "creado_por_uid": 1,
        }
    )


def _demanda(db, paciente, **overrides):
    data = {
        "paciente_id": paciente.paciente_id,
        "fecha_demanda": date(2024, 4, 2),
        "remision_a": ["Medicina general"],
        "solicitado_por_uid": 1,
    }
    data.update(overrides)
    return DemandaInducidaRepository(db).create(data)


def test_plan_defaults(db, familia, pacientes):
    plan = _plan(db, familia, pacientes[0])
    assert plan.estado == "Activo"
    assert plan.plan_asociado == ["Hipertensión"]

    updated = PlanCuidadoRepository(db).update(plan.plan_id, {"estado": "Cerrado", "logro_salud": None})
    assert updated.estado == "Cerrado"
    assert updated.condicion_identificada == "HTA no controlada"


def test_demand_without_requester_inserts_nothing(db, pacientes):
    with pytest.raises(ValidationError, match="solicitado_por_uid"):
        _demanda(db, pacientes[0], solicitado_por_uid=None)
    assert db.query(DemandaInducida).count() == 0


def test_demand_starts_pending_with_empty_structures(db, familia, pacientes):
    plan = _plan(db, familia, pacientes[0])
    demanda = _demanda(db, pacientes[0], plan_id=plan.plan_id)
    assert demanda.estado == "Pendiente"
    assert demanda.diligenciamiento == []
    assert demanda.seguimiento == {}
    assert demanda.fecha_asignacion is None
    assert demanda.plan.condicion_identificada == "HTA no controlada"


def test_demand_lifecycle(db, pacientes):
    repo = DemandaInducidaRepository(db)
    demanda = _demanda(db, pacientes[0])

    with pytest.raises(ConflictError, match="Pendiente -> Completada"):
        repo.change_status(demanda.demanda_id, "Completada")
    with pytest.raises(ValidationError, match="asignado_a_uid"):
        repo.change_status(demanda.demanda_id, "Asignada")
    with pytest.raises(ValidationError, match="Estado de demanda inválido"):
        repo.change_status(demanda.demanda_id, "Perdida")

    asignada = repo.change_status(demanda.demanda_id, "Asignada", asignado_a_uid=2)
    assert asignada.asignado_a_uid == 2
    assert asignada.fecha_asignacion == date.today()
    assert [d.demanda_id for d in repo.list_assigned_to(2)] == [demanda.demanda_id]

    completada = repo.change_status(demanda.demanda_id, "Completada")
    assert completada.estado == "Completada"
    assert repo.list_assigned_to(2) == []

    with pytest.raises(ConflictError):
        repo.change_status(demanda.demanda_id, "Cancelada")


def test_demand_created_with_assignee_is_stamped(db, pacientes):
    demanda = _demanda(db, pacientes[0], estado="Asignada", asignado_a_uid=2)
    assert demanda.fecha_asignacion == date.today()
    assert demanda.asignado.nombre_completo == "Luis Gomez"


def test_new_demand_cannot_skip_the_lifecycle(db, pacientes):
    with pytest.raises(ValidationError, match="asignado_a_uid"):
        _demanda(db, pacientes[0], estado="Asignada")
    for estado in ("Completada", "Cancelada"):
        with pytest.raises(ConflictError, match=f"estado {estado}"):
            _demanda(db, pacientes[0], estado=estado, asignado_a_uid=2)
    assert db.query(DemandaInducida).count() == 0


# ---------------------------------------------------------------------------
# Equipo de cuidado, bitácora y tablas legacy
# ---------------------------------------------------------------------------

def test_user_lookups(db):
    repo = UsuarioRepository(db)
    assert [u.nombre_completo for u in repo.list_active()] == ["Ana Torres", "Luis Gomez"]
    assert [u.usuario_id for u in repo.list_by_role("Enfermero")] == [2]
    assert [u.usuario_id for u in repo.list_by_team(1)] == [1, 2]
    assert repo.get(1).rol.nombre_rol == "Medico"
    with pytest.raises(NotFoundError):
        repo.get(99)


def test_activity_log_filters(db):
    log_activity(db, usuario_id=1, tipo_actividad="Visita", descripcion="Visita domiciliaria")
    log_activity(db, usuario_id=2, tipo_actividad="Jornada", descripcion="Vacunación")

    assert len(search_activity(db)) == 2
    assert [e.usuario_id for e in search_activity(db, tipo_actividad="Jornada")] == [2]
    manana = datetime.now() + timedelta(days=1)
    assert search_activity(db, fecha_desde=manana) == []

    with pytest.raises(ValidationError, match="descripcion"):
        log_activity(db, usuario_id=1, tipo_actividad="Visita", descripcion="")


def test_legacy_survey_and_plan(db, familia):
    repo = LegacyRepository(db)
    encuesta = repo.create_survey(familia.familia_id, {"tipo_vivienda": "Casa", "numero_personas": 4})
    actualizada = repo.update_survey(encuesta.caracterizacion_id, {"numero_personas": 5, "tipo_vivienda": None})
    assert (actualizada.tipo_vivienda, actualizada.numero_personas) == ("Casa", 5)

    with pytest.raises(ValidationError, match="actividades"):
        repo.create_care_plan(familia.familia_id, {"objetivo": "Control"})
    with pytest.raises(NotFoundError):
        repo.create_survey(999, {})


# ---------------------------------------------------------------------------
# Órdenes de laboratorio y recetas
# ---------------------------------------------------------------------------

def _historia(db, paciente):
    return HistoriaClinicaRepository(db).create(
        {"paciente_id": paciente.paciente_id, "tipo_consulta": "Control", "motivo_consulta": "Glucemia"}
    )


def test_lab_order_starts_pending(db, pacientes):
    historia = _historia(db, pacientes[0])
    repo = HistoriaClinicaRepository(db)
    orden = repo.order_lab(
        historia.historia_clinica_id,
        {"tipo_examen": "Hemograma", "descripcion": "Control anual", "fecha_requerida": date(2024, 6, 1)},
    )
    assert orden.estado == "pendiente"
    assert orden.fecha_creacion is not None
    assert orden.instrucciones is None

    with pytest.raises(ValidationError, match="descripcion"):
        repo.order_lab(historia.historia_clinica_id, {"tipo_examen": "Hemograma"})
    with pytest.raises(NotFoundError, match="Historia clínica no encontrada"):
        repo.order_lab(999, {"tipo_examen": "Hemograma", "descripcion": "Control"})
    assert db.query(OrdenLaboratorio).count() == 1


def test_prescription_stores_medications_as_structured_list(db, pacientes):
    repo = RecetaRepository(db)
    medicamentos = [{"nombre": "Metformina", "dosis": "850 mg"}, "Losartán 50 mg"]
    receta = repo.create(pacientes[0].paciente_id, {"profesional_id": 2, "medicamentos": medicamentos})
    db.expire_all()

    stored = db.get(Receta, receta.receta_id)
    assert stored.medicamentos == medicamentos
    assert stored.activa is True
    assert stored.profesional.nombre_completo == "Luis Gomez"

    with pytest.raises(ValidationError, match="medicamentos"):
        repo.create(pacientes[0].paciente_id, {"profesional_id": 2, "medicamentos": []})
    with pytest.raises(ValidationError, match="profesional_id"):
        repo.create(pacientes[0].paciente_id, {"medicamentos": ["Acetaminofén"]})
    with pytest.raises(NotFoundError, match="Paciente no encontrado"):
        repo.create(999, {"profesional_id": 2, "medicamentos": ["Acetaminofén"]})
    assert db.query(Receta).count() == 1
