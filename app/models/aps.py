"""
Data model for the primary-care (APS) record-keeping domain.

Households (Familias) own patients; patients carry a replaceable
characterization snapshot; care plans and induced demands track follow-up
work. Deletion is logical (``activo``) everywhere except Familia, which is
removed only when it has no active patients. References to a family are
plain columns without a database constraint, so a deleted family may still be
named by inactive patients and by historical plans and surveys.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from app.models.database import Base
from app.models.types import JSONList, JSONMap


def _now() -> datetime:
    return datetime.now()


# ---------------------------------------------------------------------------
# Care team – users, roles and basic teams (lookups)
# ---------------------------------------------------------------------------
class Rol(Base):
    __tablename__ = "roles"

    rol_id = Column(Integer, primary_key=True)
    nombre_rol = Column(String(64), nullable=False, unique=True)


class EquipoBasico(Base):
    __tablename__ = "equipos_basicos"

    equipo_id = Column(Integer, primary_key=True)
    nombre_equipo = Column(String(128), nullable=False)
    zona_cobertura = Column(String(128))


class Usuario(Base):
    __tablename__ = "usuarios"

    usuario_id = Column(Integer, primary_key=True)
    nombre_completo = Column(String(255), nullable=False)
    email = Column(String(255), unique=True)
    numero_documento = Column(String(32))
    telefono = Column(String(32))
    rol_id = Column(Integer, ForeignKey("roles.rol_id"), nullable=False)
    equipo_id = Column(Integer, ForeignKey("equipos_basicos.equipo_id"), nullable=True)
    activo = Column(Boolean, default=True, nullable=False)

    rol = relationship("Rol", lazy="joined")
    equipo = relationship("EquipoBasico", lazy="joined")


# ---------------------------------------------------------------------------
# Familia – household, with its characterization snapshot
# ---------------------------------------------------------------------------
class Familia(Base):
    __tablename__ = "familias"

    familia_id = Column(Integer, primary_key=True)
    apellido_principal = Column(String(128), nullable=False)
    direccion = Column(String(255), nullable=False)
    barrio_vereda = Column(String(128))
    municipio = Column(String(128), nullable=False)
    telefono_contacto = Column(String(32))
    creado_por_uid = Column(Integer, ForeignKey("usuarios.usuario_id"), nullable=False)
    fecha_creacion = Column(DateTime, default=_now)

    numero_ficha = Column(String(64))
    zona = Column(String(64))
    territorio = Column(String(128))
    estrato = Column(String(16))
    tipo_familia = Column(String(64))
    riesgo_familiar = Column(String(64))
    fecha_caracterizacion = Column(Date)
    info_vivienda = Column(JSONMap("familias.info_vivienda"), default=dict)
    situaciones_proteccion = Column(JSONList("familias.situaciones_proteccion"), default=list)
    condiciones_salud_publica = Column(JSONList("familias.condiciones_salud_publica"), default=list)
    practicas_cuidado = Column(JSONMap("familias.practicas_cuidado"), default=dict)

    creador = relationship("Usuario", lazy="joined")


# ---------------------------------------------------------------------------
# Paciente – household member (soft delete)
# ---------------------------------------------------------------------------
class Paciente(Base):
    __tablename__ = "pacientes"

    paciente_id = Column(Integer, primary_key=True)
    familia_id = Column(Integer, nullable=False)
    tipo_documento = Column(String(16), nullable=False)
    numero_documento = Column(String(32), nullable=False)
    primer_nombre = Column(String(64), nullable=False)
    segundo_nombre = Column(String(64))
    primer_apellido = Column(String(64), nullable=False)
    segundo_apellido = Column(String(64))
    fecha_nacimiento = Column(Date)
    genero = Column(String(16))
    telefono = Column(String(32))
    email = Column(String(255))
    activo = Column(Boolean, default=True, nullable=False)

    caracterizacion = relationship(
        "CaracterizacionPaciente", uselist=False, lazy="selectin", viewonly=True
    )

    __table_args__ = (Index("ix_pacientes_familia_activo", "familia_id", "activo"),)


class CaracterizacionPaciente(Base):
    __tablename__ = "caracterizacion_paciente"

    caracterizacion_paciente_id = Column(Integer, primary_key=True)
    paciente_id = Column(Integer, ForeignKey("pacientes.paciente_id"), nullable=False, unique=True)
    fecha_caracterizacion = Column(Date)
    rol_familiar = Column(String(64))
    ocupacion = Column(String(128))
    nivel_educativo = Column(String(64))
    grupo_poblacional = Column(String(64))
    regimen_afiliacion = Column(String(64))
    pertenencia_etnica = Column(String(64))
    discapacidad = Column(JSONList("caracterizacion_paciente.discapacidad"), default=list)
    victima_violencia = Column(Boolean, default=False, nullable=False)
    datos_pyp = Column(JSONMap("caracterizacion_paciente.datos_pyp"), default=dict)
    datos_salud = Column(JSONMap("caracterizacion_paciente.datos_salud"), default=dict)
    creado_por_uid = Column(Integer, ForeignKey("usuarios.usuario_id"))


# ---------------------------------------------------------------------------
# Plan de cuidado familiar and induced demands
# ---------------------------------------------------------------------------
class PlanCuidadoFamiliar(Base):
    __tablename__ = "planes_cuidado_familiar"

    plan_id = Column(Integer, primary_key=True)
    familia_id = Column(Integer, nullable=False, index=True)
    paciente_principal_id = Column(Integer, ForeignKey("pacientes.paciente_id"), nullable=False)
    fecha_entrega = Column(Date, nullable=False)
    plan_asociado = Column(JSONList("planes_cuidado_familiar.plan_asociado"), default=list)
    condicion_identificada = Column(Text)
    logro_salud = Column(Text)
    cuidados_salud = Column(Text)
    demandas_inducidas_desc = Column(Text)
    educacion_salud = Column(Text)
    estado = Column(String(32), default="Activo", nullable=False)
    creado_por_uid = Column(Integer, ForeignKey("usuarios.usuario_id"), nullable=False)
    fecha_aceptacion = Column(Date)

    creador = relationship("Usuario", lazy="joined")
    familia = relationship(
        "Familia",
        primaryjoin="foreign(PlanCuidadoFamiliar.familia_id) == Familia.familia_id",
        lazy="joined",
        viewonly=True,
    )
    paciente_principal = relationship("Paciente", lazy="joined")

    __table_args__ = (Index("ix_planes_paciente", "paciente_principal_id"),)


ESTADOS_DEMANDA = ("Pendiente", "Asignada", "Completada", "Cancelada")


class DemandaInducida(Base):
    __tablename__ = "demandas_inducidas"

    demanda_id = Column(Integer, primary_key=True)
    plan_id = Column(Integer, ForeignKey("planes_cuidado_familiar.plan_id"), nullable=True)
    paciente_id = Column(Integer, ForeignKey("pacientes.paciente_id"), nullable=False)
    numero_formulario = Column(String(64))
    fecha_demanda = Column(Date, nullable=False)
    diligenciamiento = Column(JSONList("demandas_inducidas.diligenciamiento"), default=list)
    remision_a = Column(JSONList("demandas_inducidas.remision_a"), default=list)
    estado = Column(String(32), default="Pendiente", nullable=False)
    asignado_a_uid = Column(Integer, ForeignKey("usuarios.usuario_id"))
    solicitado_por_uid = Column(Integer, ForeignKey("usuarios.usuario_id"), nullable=False)
    seguimiento = Column(JSONMap("demandas_inducidas.seguimiento"), default=dict)
    fecha_creacion = Column(DateTime, default=_now, nullable=False)
    fecha_asignacion = Column(Date)
    observaciones = Column(Text)

    plan = relationship("PlanCuidadoFamiliar", lazy="joined")
    paciente = relationship("Paciente", lazy="joined")
    solicitante = relationship("Usuario", foreign_keys=[solicitado_por_uid], lazy="joined")
    asignado = relationship("Usuario", foreign_keys=[asignado_a_uid], lazy="joined")

    __table_args__ = (
        Index("ix_demandas_paciente", "paciente_id"),
        Index("ix_demandas_asignado_estado", "asignado_a_uid", "estado"),
    )


# ---------------------------------------------------------------------------
# Clinical visits and field activity log
# ---------------------------------------------------------------------------
class HistoriaClinica(Base):
    __tablename__ = "historias_clinicas"

    historia_clinica_id = Column(Integer, primary_key=True)
    paciente_id = Column(Integer, ForeignKey("pacientes.paciente_id"), nullable=False)
    demanda_id = Column(Integer, ForeignKey("demandas_inducidas.demanda_id"))
    profesional_id = Column(Integer, ForeignKey("usuarios.usuario_id"))
    tipo_consulta = Column(String(64), nullable=False)
    motivo_consulta = Column(Text, nullable=False)
    sintomas = Column(Text)
    diagnostico = Column(Text)
    tratamiento = Column(Text)
    observaciones = Column(Text)
    fecha_consulta = Column(DateTime, default=_now, nullable=False)

    profesional = relationship("Usuario", lazy="joined")


class OrdenLaboratorio(Base):
    __tablename__ = "ordenes_laboratorio"

    orden_lab_id = Column(Integer, primary_key=True)
    historia_clinica_id = Column(
        Integer, ForeignKey("historias_clinicas.historia_clinica_id"), nullable=False, index=True
    )
    tipo_examen = Column(String(128), nullable=False)
    descripcion = Column(Text, nullable=False)
    instrucciones = Column(Text)
    fecha_requerida = Column(Date)
    fecha_creacion = Column(DateTime, default=_now, nullable=False)
    estado = Column(String(32), default="pendiente", nullable=False)


class Receta(Base):
    __tablename__ = "recetas"

    receta_id = Column(Integer, primary_key=True)
    paciente_id = Column(Integer, ForeignKey("pacientes.paciente_id"), nullable=False, index=True)
    profesional_id = Column(Integer, ForeignKey("usuarios.usuario_id"), nullable=False)
    medicamentos = Column(JSONList("recetas.medicamentos"), nullable=False)
    instrucciones = Column(Text)
    fecha_vencimiento = Column(Date)
    fecha_emision = Column(DateTime, default=_now, nullable=False)
    activa = Column(Boolean, default=True, nullable=False)

    profesional = relationship("Usuario", lazy="joined")


class Bitacora(Base):
    __tablename__ = "bitacoras"

    bitacora_id = Column(Integer, primary_key=True)
    usuario_id = Column(Integer, ForeignKey("usuarios.usuario_id"), nullable=False)
    tipo_actividad = Column(String(64), nullable=False)
    descripcion = Column(Text, nullable=False)
    ubicacion = Column(String(255))
    observaciones = Column(Text)
    fecha_registro = Column(DateTime, default=_now, nullable=False)

    usuario = relationship("Usuario", lazy="joined")

    __table_args__ = (Index("ix_bitacoras_fecha", "fecha_registro"),)


# ---------------------------------------------------------------------------
# Legacy characterization-lite tables (old API surface only)
# ---------------------------------------------------------------------------
class Caracterizacion(Base):
    __tablename__ = "caracterizaciones"

    caracterizacion_id = Column(Integer, primary_key=True)
    familia_id = Column(Integer, nullable=False, index=True)
    tipo_vivienda = Column(String(64))
    material_paredes = Column(String(64))
    material_piso = Column(String(64))
    servicios_publicos = Column(Text)
    numero_habitaciones = Column(Integer)
    numero_personas = Column(Integer)
    ingresos_mensuales = Column(Integer)
    observaciones = Column(Text)
    fecha_caracterizacion = Column(DateTime, default=_now)


class PlanCuidado(Base):
    __tablename__ = "planes_cuidado"

    plan_cuidado_id = Column(Integer, primary_key=True)
    familia_id = Column(Integer, nullable=False, index=True)
    objetivo = Column(Text, nullable=False)
    actividades = Column(Text, nullable=False)
    responsable = Column(String(255))
    fecha_inicio = Column(Date)
    fecha_fin = Column(Date)
    observaciones = Column(Text)
    fecha_creacion = Column(DateTime, default=_now)
