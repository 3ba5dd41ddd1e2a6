"""Shared fixtures: a fresh in-memory database per test, seeded with a small care team."""

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.models.aps import EquipoBasico, Familia, Paciente, Rol, Usuario
from app.models.database import Base, get_db


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enforce_foreign_keys(dbapi_connection, connection_record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    session.add_all(
        [
            Rol(rol_id=1, nombre_rol="Medico"),
            Rol(rol_id=2, nombre_rol="Enfermero"),
            EquipoBasico(equipo_id=1, nombre_equipo="Equipo Norte", zona_cobertura="Zona 1"),
            Usuario(usuario_id=1, nombre_completo="Ana Torres", email="ana@aps.co", rol_id=1, equipo_id=1),
            Usuario(usuario_id=2, nombre_completo="Luis Gomez", email="luis@aps.co", rol_id=2, equipo_id=1),
            Usuario(usuario_id=3, nombre_completo="Marta Ruiz", email="marta@aps.co", rol_id=2, activo=False),
        ]
    )
    session.commit()
    yield session
    session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def familia(db):
    familia = Familia(
        apellido_principal="Lopez",
        direccion="Cl 1 # 2-3",
        municipio="Pasto",
        creado_por_uid=1,
    )
    db.add(familia)
    db.commit()
    return familia


@pytest.fixture
def pacientes(db, familia):
    """Two active members and one inactive member of ``familia``."""
    rows = [
        Paciente(
            familia_id=familia.familia_id,
            tipo_documento="CC",
            numero_documento="1001",
            primer_nombre="Carlos",
            primer_apellido="Lopez",
            fecha_nacimiento=date(1980, 5, 4),
        ),
        Paciente(
            familia_id=familia.familia_id,
            tipo_documento="TI",
            numero_documento="1002",
            primer_nombre="Ana",
            primer_apellido="Lopez",
        ),
        Paciente(
            familia_id=familia.familia_id,
            tipo_documento="CC",
            numero_documento="1003",
            primer_nombre="Beto",
            primer_apellido="Lopez",
            activo=False,
        ),
    ]
    db.add_all(rows)
    db.commit()
    return rows
