"""Fixtures compartidas por los tests de Day Tracker."""

import os

# Nada de ficheros .db en los tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import accounts
import charts
from database import build_engine, get_db, init_db
from main import app
from models import ChartType

VALID_PASSWORD = "ValidPass123"


@pytest.fixture
def engine():
    """Motor SQLite en memoria que comparten todas las sesiones de un test"""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    """Sesión de SQLAlchemy para llamar a los servicios directamente"""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client_factory(session_factory):
    """Crea clientes de la API que hablan con la BD en memoria.

    Cada cliente guarda sus propias cookies: dos clientes son como dos
    navegadores distintos.
    """
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    # https para que se reenvíe la cookie Secure
    yield lambda: TestClient(app, base_url="https://testserver")

    app.dependency_overrides.clear()


@pytest.fixture
def client(client_factory):
    return client_factory()


def sign_up(client, name="alice", password="Abcdef123x"):
    """Registro a través de la API; el cliente se queda con la cookie de sesión"""
    response = client.post("/Api/Users/SignUp", json={"name": name, "password": password})
    assert response.status_code == 201, response.text
    return response.json()["id"]


@pytest.fixture
def alice(client):
    """Cliente con la sesión de 'alice' iniciada"""
    sign_up(client, "alice")
    return client


@pytest.fixture
def bob(client_factory):
    """Un segundo cliente, independiente, con la sesión de 'bob'"""
    other = client_factory()
    sign_up(other, "bob")
    return other


@pytest.fixture
def user_id(db):
    """Usuario creado desde la capa de servicios"""
    result = accounts.sign_up(db, "tester", VALID_PASSWORD)
    return result.value


@pytest.fixture
def other_user_id(db):
    result = accounts.sign_up(db, "intruder", VALID_PASSWORD)
    return result.value


@pytest.fixture
def counter_chart(db, user_id):
    """Gráfica Counter de `user_id`"""
    return charts.create_chart(db, user_id, "Sleep", ChartType.Counter).value
