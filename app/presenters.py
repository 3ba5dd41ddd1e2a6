"""
Shape ORM rows into response payloads.

Structured columns are already decoded by ``JSONText``; here they are
copied as lists/maps, and descriptive names (creator, role, team, requester,
assignee) are joined in by reference instead of being stored.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from app.models.aps import (
    Bitacora,
    CaracterizacionPaciente,
    DemandaInducida,
    Familia,
    HistoriaClinica,
    Paciente,
    PlanCuidadoFamiliar,
    Usuario,
)
from app.repositories.familias import FamiliaRepository
from app.repositories.pacientes import PacienteRepository

CAMPOS_FAMILIA = (
    "familia_id",
    "apellido_principal",
    "direccion",
    "barrio_vereda",
    "municipio",
    "telefono_contacto",
    "creado_por_uid",
    "fecha_creacion",
    "numero_ficha",
    "zona",
    "territorio",
    "estrato",
    "tipo_familia",
    "riesgo_familiar",
    "fecha_caracterizacion",
)
ESTRUCTURADOS_FAMILIA = {
    "info_vivienda": dict,
    "situaciones_proteccion": list,
    "condiciones_salud_publica": list,
    "practicas_cuidado": dict,
}
CAMPOS_PACIENTE = (
    "paciente_id",
    "familia_id",
    "tipo_documento",
    "numero_documento",
    "primer_nombre",
    "segundo_nombre",
    "primer_apellido",
    "segundo_apellido",
    "fecha_nacimiento",
    "genero",
    "telefono",
    "email",
    "activo",
)
CAMPOS_CARACTERIZACION = (
    "caracterizacion_paciente_id",
    "fecha_caracterizacion",
    "rol_familiar",
    "ocupacion",
    "nivel_educativo",
    "grupo_poblacional",
    "regimen_afiliacion",
    "pertenencia_etnica",
    "victima_violencia",
    "creado_por_uid",
)
ESTRUCTURADOS_CARACTERIZACION = {"discapacidad": list, "datos_pyp": dict, "datos_salud": dict}


def _columns(obj: Any, names: tuple[str, ...]) -> dict[str, Any]:
    return {name: getattr(obj, name) for name in names}


def _structured(obj: Any, shapes: dict[str, type]) -> dict[str, Any]:
    # Copies, so callers can mutate a payload without touching the ORM state.
    return {name: shape(getattr(obj, name) or shape()) for name, shape in shapes.items()}


def _nombre(usuario: Usuario | None) -> str | None:
    return usuario.nombre_completo if usuario else None


def familia_payload(familia: Familia, integrantes_count: int) -> dict[str, Any]:
    return {
        **_columns(familia, CAMPOS_FAMILIA),
        **_structured(familia, ESTRUCTURADOS_FAMILIA),
        "creado_por": _nombre(familia.creador),
        "integrantes_count": integrantes_count,
    }


def paciente_payload(paciente: Paciente) -> dict[str, Any]:
    return _columns(paciente, CAMPOS_PACIENTE)


def integrante_payload(paciente: Paciente) -> dict[str, Any]:
    """Patient fields plus its characterization, or nulls and empty structures."""
    caracterizacion: CaracterizacionPaciente | None = paciente.caracterizacion
    payload = paciente_payload(paciente)
    if caracterizacion is None:
        payload.update({name: None for name in CAMPOS_CARACTERIZACION})
        payload["victima_violencia"] = False
        payload.update({name: shape() for name, shape in ESTRUCTURADOS_CARACTERIZACION.items()})
    else:
        payload.update(_columns(caracterizacion, CAMPOS_CARACTERIZACION))
        payload.update(_structured(caracterizacion, ESTRUCTURADOS_CARACTERIZACION))
    return payload


def family_characterization(db: Session, familia_id: int) -> dict[str, Any]:
    familia, count = FamiliaRepository(db).get(familia_id)
    integrantes = PacienteRepository(db).list_by_family(familia_id)
    familia_data = familia_payload(familia, count)
    familia_data["creado_por_nombre"] = familia_data["creado_por"]
    return {
        "familia": familia_data,
        "integrantes": [integrante_payload(p) for p in integrantes],
        "tiene_caracterizacion": familia.fecha_caracterizacion is not None,
    }


def plan_payload(plan: PlanCuidadoFamiliar) -> dict[str, Any]:
    paciente = plan.paciente_principal
    return {
        "plan_id": plan.plan_id,
        "familia_id": plan.familia_id,
        "paciente_principal_id": plan.paciente_principal_id,
        "fecha_entrega": plan.fecha_entrega,
        "plan_asociado": list(plan.plan_asociado or []),
        "condicion_identificada": plan.condicion_identificada,
        "logro_salud": plan.logro_salud,
        "cuidados_salud": plan.cuidados_salud,
        "demandas_inducidas_desc": plan.demandas_inducidas_desc,
        "educacion_salud": plan.educacion_salud,
        "estado": plan.estado,
        "creado_por_uid": plan.creado_por_uid,
        "fecha_aceptacion": plan.fecha_aceptacion,
        "creado_por_nombre": _nombre(plan.creador),
        "apellido_principal": plan.familia.apellido_principal if plan.familia else None,
        "primer_nombre": paciente.primer_nombre if paciente else None,
        "primer_apellido": paciente.primer_apellido if paciente else None,
    }


def demanda_payload(demanda: DemandaInducida) -> dict[str, Any]:
    paciente = demanda.paciente
    return {
        "demanda_id": demanda.demanda_id,
        "plan_id": demanda.plan_id,
        "paciente_id": demanda.paciente_id,
        "numero_formulario": demanda.numero_formulario,
        "fecha_demanda": demanda.fecha_demanda,
        "diligenciamiento": list(demanda.diligenciamiento or []),
        "remision_a": list(demanda.remision_a or []),
        "estado": demanda.estado,
        "asignado_a_uid": demanda.asignado_a_uid,
        "solicitado_por_uid": demanda.solicitado_por_uid,
        "seguimiento": dict(demanda.seguimiento or {}),
        "fecha_creacion": demanda.fecha_creacion,
        "fecha_asignacion": demanda.fecha_asignacion,
        "observaciones": demanda.observaciones,
        "condicion_identificada": demanda.plan.condicion_identificada if demanda.plan else None,
        "solicitado_por_nombre": _nombre(demanda.solicitante),
        "asignado_a_nombre": _nombre(demanda.asignado),
        "primer_nombre": paciente.primer_nombre if paciente else None,
        "primer_apellido": paciente.primer_apellido if paciente else None,
        "numero_documento": paciente.numero_documento if paciente else None,
    }


def usuario_payload(usuario: Usuario) -> dict[str, Any]:
    return {
        "usuario_id": usuario.usuario_id,
        "nombre_completo": usuario.nombre_completo,
        "email": usuario.email,
        "numero_documento": usuario.numero_documento,
        "telefono": usuario.telefono,
        "rol_id": usuario.rol_id,
        "nombre_rol": usuario.rol.nombre_rol if usuario.rol else None,
        "equipo_id": usuario.equipo_id,
        "nombre_equipo": usuario.equipo.nombre_equipo if usuario.equipo else None,
        "zona_cobertura": usuario.equipo.zona_cobertura if usuario.equipo else None,
    }


def historia_payload(historia: HistoriaClinica) -> dict[str, Any]:
    return {
        "historia_clinica_id": historia.historia_clinica_id,
        "paciente_id": historia.paciente_id,
        "demanda_id": historia.demanda_id,
        "tipo_consulta": historia.tipo_consulta,
        "motivo_consulta": historia.motivo_consulta,
        "sintomas": historia.sintomas,
        "diagnostico": historia.diagnostico,
        "tratamiento": historia.tratamiento,
        "observaciones": historia.observaciones,
        "fecha_consulta": historia.fecha_consulta,
        "profesional_nombre": _nombre(historia.profesional),
    }


def bitacora_payload(entry: Bitacora) -> dict[str, Any]:
    return {
        "bitacora_id": entry.bitacora_id,
        "usuario_id": entry.usuario_id,
        "tipo_actividad": entry.tipo_actividad,
        "descripcion": entry.descripcion,
        "ubicacion": entry.ubicacion,
        "observaciones": entry.observaciones,
        "fecha_registro": entry.fecha_registro,
        "usuario_nombre": _nombre(entry.usuario),
    }
