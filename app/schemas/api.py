"""Pydantic models for API request/response serialization."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class Payload(BaseModel):
    """
    Request bodies: every field optional at this layer.

    Required-field checks live in the repositories so that the HTTP routes and
    direct callers share one rule (missing, null and blank all count as absent).
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    def fields(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


# ---------------------------------------------------------------------------
# Familias y pacientes
# ---------------------------------------------------------------------------

class FamiliaUpdate(Payload):
    apellido_principal: str | None = None
    direccion: str | None = None
    barrio_vereda: str | None = None
    municipio: str | None = None
    telefono_contacto: str | None = None


class FamiliaCreate(FamiliaUpdate):
    creado_por_uid: int | None = None


class FamiliaResponse(BaseModel):
    familia_id: int
    apellido_principal: str
    direccion: str
    barrio_vereda: str | None = None
    municipio: str
    telefono_contacto: str | None = None
    creado_por_uid: int
    creado_por: str | None = None
    fecha_creacion: datetime | None = None
    numero_ficha: str | None = None
    zona: str | None = None
    territorio: str | None = None
    estrato: str | None = None
    tipo_familia: str | None = None
    riesgo_familiar: str | None = None
    fecha_caracterizacion: date | None = None
    info_vivienda: dict[str, Any] = {}
    situaciones_proteccion: list[Any] = []
    condiciones_salud_publica: list[Any] = []
    practicas_cuidado: dict[str, Any] = {}
    integrantes_count: int


class PacienteUpdate(Payload):
    familia_id: int | None = None
    tipo_documento: str | None = None
    numero_documento: str | None = None
    primer_nombre: str | None = None
    segundo_nombre: str | None = None
    primer_apellido: str | None = None
    segundo_apellido: str | None = None
    fecha_nacimiento: date | None = None
    genero: str | None = None
    telefono: str | None = None
    email: str | None = None
    activo: bool | None = None


class PacienteCreate(PacienteUpdate):
    pass


class PacienteResponse(BaseModel):
    paciente_id: int
    familia_id: int
    tipo_documento: str
    numero_documento: str
    primer_nombre: str
    segundo_nombre: str | None = None
    primer_apellido: str
    segundo_apellido: str | None = None
    fecha_nacimiento: date | None = None
    genero: str | None = None
    telefono: str | None = None
    email: str | None = None
    activo: bool


# ---------------------------------------------------------------------------
# Caracterización familiar
# ---------------------------------------------------------------------------

class IntegranteResponse(PacienteResponse):
    caracterizacion_paciente_id: int | None = None
    fecha_caracterizacion: date | None = None
    rol_familiar: str | None = None
    ocupacion: str | None = None
    nivel_educativo: str | None = None
    grupo_poblacional: str | None = None
    regimen_afiliacion: str | None = None
    pertenencia_etnica: str | None = None
    discapacidad: list[Any] = []
    victima_violencia: bool = False
    datos_pyp: dict[str, Any] = {}
    datos_salud: dict[str, Any] = {}
    creado_por_uid: int | None = None


class FamiliaCaracterizadaResponse(FamiliaResponse):
    creado_por_nombre: str | None = None


class CaracterizacionFamiliarResponse(BaseModel):
    familia: FamiliaCaracterizadaResponse
    integrantes: list[IntegranteResponse]
    tiene_caracterizacion: bool


class CaracterizacionResult(BaseModel):
    success: bool
    message: str
    familia_id: int
    integrantes_procesados: int


# ---------------------------------------------------------------------------
# Planes de cuidado y demandas inducidas
# ---------------------------------------------------------------------------

class PlanCuidadoUpdate(Payload):
    fecha_entrega: date | None = None
    plan_asociado: list[Any] | None = None
    condicion_identificada: str | None = None
    logro_salud: str | None = None
    cuidados_salud: str | None = None
    demandas_inducidas_desc: str | None = None
    educacion_salud: str | None = None
    estado: str | None = None
    fecha_aceptacion: date | None = None


class PlanCuidadoCreate(PlanCuidadoUpdate):
    familia_id: int | None = None
    paciente_principal_id: int | None = None
    creado_por_uid: int | None = None


class PlanCuidadoResponse(BaseModel):
    plan_id: int
    familia_id: int
    paciente_principal_id: int
    fecha_entrega: date
    plan_asociado: list[Any] = []
    condicion_identificada: str | None = None
    logro_salud: str | None = None
    cuidados_salud: str | None = None
    demandas_inducidas_desc: str | None = None
    educacion_salud: str | None = None
    estado: str
    creado_por_uid: int
    fecha_aceptacion: date | None = None
    creado_por_nombre: str | None = None
    apellido_principal: str | None = None
    primer_nombre: str | None = None
    primer_apellido: str | None = None


class PlanCreado(BaseModel):
    success: bool = True
    plan_id: int
    message: str = "Plan de cuidado creado exitosamente"


class DemandaUpdate(Payload):
    numero_formulario: str | None = None
    fecha_demanda: date | None = None
    diligenciamiento: list[Any] | None = None
    remision_a: list[Any] | None = None
    seguimiento: dict[str, Any] | None = None
    observaciones: str | None = None


class DemandaCreate(DemandaUpdate):
    paciente_id: int | None = None
    plan_id: int | None = None
    estado: str | None = None
    asignado_a_uid: int | None = None
    solicitado_por_uid: int | None = None


class CambioEstado(Payload):
    estado: str | None = None
    asignado_a_uid: int | None = None


class DemandaResponse(BaseModel):
    demanda_id: int
    plan_id: int | None = None
    paciente_id: int
    numero_formulario: str | None = None
    fecha_demanda: date
    diligenciamiento: list[Any] = []
    remision_a: list[Any] = []
    estado: str
    asignado_a_uid: int | None = None
    solicitado_por_uid: int
    seguimiento: dict[str, Any] = {}
    fecha_creacion: datetime
    fecha_asignacion: date | None = None
    observaciones: str | None = None
    condicion_identificada: str | None = None
    solicitado_por_nombre: str | None = None
    asignado_a_nombre: str | None = None
    primer_nombre: str | None = None
    primer_apellido: str | None = None
    numero_documento: str | None = None


class DemandaCreada(BaseModel):
    success: bool = True
    demanda_id: int
    message: str = "Demanda inducida creada exitosamente"


# ---------------------------------------------------------------------------
# Historias clínicas y bitácoras
# ---------------------------------------------------------------------------

class HistoriaClinicaCreate(Payload):
    paciente_id: int | None = None
    profesional_id: int | None = None
    tipo_consulta: str | None = None
    motivo_consulta: str | None = None
    sintomas: str | None = None
    diagnostico: str | None = None
    tratamiento: str | None = None
    observaciones: str | None = None


class HistoriaClinicaResponse(BaseModel):
    historia_clinica_id: int
    paciente_id: int
    demanda_id: int | None = None
    tipo_consulta: str
    motivo_consulta: str
    sintomas: str | None = None
    diagnostico: str | None = None
    tratamiento: str | None = None
    observaciones: str | None = None
    fecha_consulta: datetime
    profesional_nombre: str | None = None


class OrdenLaboratorioCreate(Payload):
    tipo_examen: str | None = None
    descripcion: str | None = None
    instrucciones: str | None = None
    fecha_requerida: date | None = None


class RecetaCreate(Payload):
    profesional_id: int | None = None
    medicamentos: list[Any] | None = None
    instrucciones: str | None = None
    fecha_vencimiento: date | None = None


class BitacoraCreate(Payload):
    usuario_id: int | None = None
    tipo_actividad: str | None = None
    descripcion: str | None = None
    ubicacion: str | None = None
    observaciones: str | None = None


class BitacoraResponse(BaseModel):
    bitacora_id: int
    usuario_id: int
    tipo_actividad: str
    descripcion: str
    ubicacion: str | None = None
    observaciones: str | None = None
    fecha_registro: datetime
    usuario_nombre: str | None = None


# ---------------------------------------------------------------------------
# Legacy characterization-lite
# ---------------------------------------------------------------------------

class EncuestaVivienda(Payload):
    tipo_vivienda: str | None = None
    material_paredes: str | None = None
    material_piso: str | None = None
    servicios_publicos: str | None = None
    numero_habitaciones: int | None = None
    numero_personas: int | None = None
    ingresos_mensuales: int | None = None
    observaciones: str | None = None


class PlanCuidadoSimple(Payload):
    objetivo: str | None = None
    actividades: str | None = None
    responsable: str | None = None
    fecha_inicio: date | None = None
    fecha_fin: date | None = None
    observaciones: str | None = None


# ---------------------------------------------------------------------------
# Equipo de cuidado
# ---------------------------------------------------------------------------

class UsuarioResponse(BaseModel):
    usuario_id: int
    nombre_completo: str
    email: str | None = None
    numero_documento: str | None = None
    telefono: str | None = None
    rol_id: int
    nombre_rol: str | None = None
    equipo_id: int | None = None
    nombre_equipo: str | None = None
    zona_cobertura: str | None = None


class RolResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rol_id: int
    nombre_rol: str


class EquipoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    equipo_id: int
    nombre_equipo: str
    zona_cobertura: str | None = None


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: str = "healthy"
    environment: str
    database: str = "connected"
