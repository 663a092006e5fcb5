# tests/conftest.py
import os
import uuid

# Debe configurarse antes de importar la app: BD en memoria y bcrypt rápido
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"

import pytest
from fastapi.testclient import TestClient

from expense_service.db import Base, engine
from expense_service.main import app

TEST_PASSWORD = "password123"


@pytest.fixture(autouse=True)
def clean_db():
    """Cada prueba arranca con tablas vacías."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def register_user(client):
    """Registra un usuario único y devuelve sus datos de login."""
    def _register(name="Test User", email=None, password=TEST_PASSWORD):
        email = email or f"testuser_{uuid.uuid4()}@example.com"
        r = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert r.status_code == 201, r.text
        return {"name": name, "email": email, "password": password}
    return _register


@pytest.fixture
def login_user(client, register_user):
    """Registra e inicia sesión. Devuelve el usuario, el token y las cabeceras."""
    def _login(**kwargs):
        user = register_user(**kwargs)
        r = client.post("/api/auth/login", json={"email": user["email"], "password": user["password"]})
        assert r.status_code == 200, r.text
        body = r.json()
        return {
            **user,
            "id": body["user"]["id"],
            "token": body["token"],
            "headers": {"Authorization": f"Bearer {body['token']}"},
        }
    return _login


@pytest.fixture
def auth_headers(login_user):
    return login_user()["headers"]
