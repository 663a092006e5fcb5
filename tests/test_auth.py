# tests/test_auth.py
import time
from datetime import timedelta

from jose import jwt

from expense_service.utils import ALGORITHM, authenticate, create_access_token, decode_token
from expense_service.errors import Unauthorized

import pytest


def test_register_returns_message(client):
    r = client.post("/api/auth/register", json={"name": "A", "email": "a@x.com", "password": "p"})

    assert r.status_code == 201
    assert r.json() == {"message": "User registered successfully"}


def test_register_duplicate_email(client, register_user):
    """
    Verifica que no se puede registrar un usuario con un email existente.
    """
    user = register_user()
    r = client.post("/api/auth/register", json={"name": "Other", "email": user["email"], "password": "newpassword"})

    assert r.status_code == 400, f"Esperado 400 pero se obtuvo {r.status_code}"
    assert r.json() == {"error": "User already exists"}


def test_register_requires_all_fields(client):
    r = client.post("/api/auth/register", json={"email": "nobody@example.com", "password": "x"})

    assert r.status_code == 400
    assert "name" in r.json()["error"]


def test_login_returns_token_and_public_user(client, register_user):
    user = register_user(name="Ana")
    r = client.post("/api/auth/login", json={"email": user["email"], "password": user["password"]})

    assert r.status_code == 200
    body = r.json()
    assert set(body["user"]) == {"id", "name", "email"}
    assert body["user"]["name"] == "Ana"
    assert body["user"]["email"] == user["email"]
    assert decode_token(body["token"])["sub"] == str(body["user"]["id"])


def test_token_expires_after_one_hour(client, register_user):
    user = register_user()
    r = client.post("/api/auth/login", json={"email": user["email"], "password": user["password"]})
    payload = jwt.get_unverified_claims(r.json()["token"])

    assert 3600 - 10 <= payload["exp"] - time.time() <= 3600


def test_login_invalid_credentials(client, register_user):
    """
    Verifica que el login falla con contraseña incorrecta.
    """
    user = register_user()
    r = client.post("/api/auth/login", json={"email": user["email"], "password": "wrongpassword"})

    assert r.status_code == 400
    assert r.json() == {"error": "Invalid credentials"}


def test_login_unknown_email_is_indistinguishable(client):
    r = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "whatever"})

    assert r.status_code == 400
    assert r.json() == {"error": "Invalid credentials"}


def test_password_is_not_stored_in_plaintext(client):
    from expense_service.db import SessionLocal
    from expense_service.models import User

    client.post("/api/auth/register", json={"name": "A", "email": "plain@x.com", "password": "secret"})
    db = SessionLocal()
    try:
        stored = db.query(User).filter(User.email == "plain@x.com").one()
        assert stored.hashed_password != "secret"
        assert stored.hashed_password.startswith("$2")
    finally:
        db.close()


def test_missing_token_is_rejected(client):
    r = client.get("/api/expenses")

    assert r.status_code == 401
    assert r.json() == {"error": "Access denied"}


def test_expired_token_is_rejected(client, login_user):
    user = login_user()
    expired = create_access_token({"sub": str(user["id"])}, expires_delta=timedelta(seconds=-10))

    r = client.get("/api/expenses", headers={"Authorization": f"Bearer {expired}"})

    assert r.status_code == 401
    assert r.json() == {"error": "Invalid token"}


def test_token_signed_with_other_key_is_rejected(client, login_user):
    user = login_user()
    forged = jwt.encode({"sub": str(user["id"])}, "not-the-server-key", algorithm=ALGORITHM)

    r = client.get("/api/expenses", headers={"Authorization": f"Bearer {forged}"})

    assert r.status_code == 401


def test_token_without_bearer_scheme_is_rejected(client, login_user):
    user = login_user()

    r = client.get("/api/expenses", headers={"Authorization": user["token"]})

    assert r.status_code == 401


def test_authenticate_returns_user_id():
    token = create_access_token({"sub": "42"})

    assert authenticate(f"Bearer {token}") == 42


@pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer not-a-jwt", "Basic abc"])
def test_authenticate_rejects_bad_headers(header):
    with pytest.raises(Unauthorized):
        authenticate(header)


def test_authenticate_rejects_non_numeric_subject():
    token = create_access_token({"sub": "admin"})

    with pytest.raises(Unauthorized):
        authenticate(f"Bearer {token}")
