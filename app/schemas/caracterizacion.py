"""
JSON schemas for the family characterization payload.

The survey forms evolve faster than the API, so only the structure the
write protocol depends on is pinned: identifiers, the shape of every
structured field (list vs. object) and ISO dates. Unknown keys are allowed.
"""

_ISO_DATE = {"type": ["string", "null"], "pattern": "^\\d{4}-\\d{2}-\\d{2}$", "format": "date"}
_TEXT = {"type": ["string", "number", "null"]}
_ID = {"type": ["integer", "string"], "pattern": "^[1-9]\\d*$", "minimum": 1}

DATOS_FAMILIA_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "numero_ficha": _TEXT,
        "zona": _TEXT,
        "territorio": _TEXT,
        "estrato": _TEXT,
        "tipo_familia": _TEXT,
        "riesgo_familiar": _TEXT,
        "fecha_caracterizacion": _ISO_DATE,
        "info_vivienda": {"type": ["object", "null"]},
        "situaciones_proteccion": {"type": ["array", "null"]},
        "condiciones_salud_publica": {"type": ["array", "null"]},
        "practicas_cuidado": {"type": ["object", "null"]},
    },
}

INTEGRANTE_SCHEMA: dict = {
    "type": "object",
    "required": ["paciente_id"],
    "properties": {
        "paciente_id": _ID,
        "fecha_caracterizacion": _ISO_DATE,
        "rol_familiar": _TEXT,
        "ocupacion": _TEXT,
        "nivel_educativo": _TEXT,
        "grupo_poblacional": _TEXT,
        "regimen_afiliacion": _TEXT,
        "pertenencia_etnica": _TEXT,
        "discapacidad": {"type": ["array", "null"]},
        "victima_violencia": {"type": ["boolean", "null"]},
        "datos_pyp": {"type": ["object", "null"]},
        "datos_salud": {"type": ["object", "null"]},
        "creado_por_uid": {"type": ["integer", "null"]},
    },
}

CARACTERIZACION_FAMILIAR_SCHEMA: dict = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Caracterización familiar",
    "description": "Family survey plus one characterization per household member.",
    "type": "object",
    "required": ["familia_id", "datos_familia"],
    "properties": {
        "familia_id": _ID,
        "datos_familia": DATOS_FAMILIA_SCHEMA,
        "integrantes": {
            "type": ["array", "null"],
            "items": INTEGRANTE_SCHEMA,
        },
    },
}
