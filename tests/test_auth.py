from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from groupchat import config
from groupchat.errors import AuthError, ConflictError, StoreError, ValidationError
from groupchat.models import Users
from groupchat.security import JWTError, create_access_token, decode_access_token
from groupchat.services import auth as auth_service

from .conftest import auth_header, register


def test_register_returns_token_and_user(client):
    resp = register(client)
    assert resp.status_code == 200
    body = resp.json()
    assert body["token"]
    assert body["user"]["username"] == "alice"
    assert body["user"]["email"] == "alice@x.com"
    assert "hashed_password" not in body["user"]
    assert "password" not in body["user"]


def test_register_stores_a_salted_hash(db):
    auth_service.register(db, "alice", "alice@x.com", "secret1")
    auth_service.register(db, "bobby", "bob@x.com", "secret1")
    alice = db.query(Users).filter(Users.username == "alice").one()
    bob = db.query(Users).filter(Users.username == "bobby").one()
    assert alice.hashed_password != "secret1"
    assert alice.hashed_password != bob.hashed_password


@pytest.mark.parametrize(
    "payload",
    [
        {"username": "al", "email": "al@x.com", "password": "secret1"},
        {"username": "alice", "email": "not-an-email", "password": "secret1"},
        {"username": "alice", "email": "alice@x.com", "password": "12345"},
        {"email": "alice@x.com", "password": "secret1"},
    ],
)
def test_register_validation_is_400(client, payload):
    resp = client.post("/api/auth/register", json=payload)
    assert resp.status_code == 400
    assert resp.json()["detail"]


@pytest.mark.parametrize(
    "first, second",
    [
        (("alice", "alice@x.com"), ("alice2", "alice@x.com")),
        (("alice2", "alice@x.com"), ("alice", "alice@x.com")),
        (("alice", "alice@x.com"), ("alice", "other@x.com")),
        (("alice", "other@x.com"), ("alice", "alice@x.com")),
    ],
)
def test_duplicate_email_or_username_conflicts(client, first, second):
    assert register(client, *first).status_code == 200
    resp = register(client, *second)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "User already exists"


def test_usernames_are_case_sensitive(client):
    assert register(client, "alice", "alice@x.com").status_code == 200
    assert register(client, "Alice", "alice2@x.com").status_code == 200


def test_service_register_raises_typed_errors(db):
    with pytest.raises(ValidationError):
        auth_service.register(db, "al", "al@x.com", "secret1")
    auth_service.register(db, "alice", "alice@x.com", "secret1")
    with pytest.raises(ConflictError):
        auth_service.register(db, "alice", "fresh@x.com", "secret1")
    assert db.query(Users).filter(Users.username == "alice").count() == 1


def test_login_succeeds_with_matching_password(client):
    register(client)
    resp = client.post("/api/auth/login", json={"email": "alice@x.com", "password": "secret1"})
    assert resp.status_code == 200
    claims = decode_access_token(resp.json()["token"])
    assert claims["username"] == "alice"
    assert claims["email"] == "alice@x.com"


def test_wrong_password_and_unknown_email_look_the_same(client):
    register(client)
    wrong = client.post("/api/auth/login", json={"email": "alice@x.com", "password": "nope123"})
    unknown = client.post("/api/auth/login", json={"email": "ghost@x.com", "password": "secret1"})
    assert wrong.status_code == unknown.status_code == 400
    assert wrong.json() == unknown.json() == {"detail": "Invalid credentials"}


def test_login_requires_password(client):
    resp = client.post("/api/auth/login", json={"email": "alice@x.com"})
    assert resp.status_code == 400


def test_service_login_raises_auth_error(db):
    auth_service.register(db, "alice", "alice@x.com", "secret1")
    with pytest.raises(AuthError) as exc_info:
        auth_service.login(db, "alice@x.com", "wrong-password")
    assert exc_info.value.status_code == 400
    assert auth_service.login(db, "alice@x.com", "secret1").user.username == "alice"


def test_seeded_authors_cannot_log_in(db):
    anonymous = db.get(Users, 1)
    assert anonymous.hashed_password is None
    with pytest.raises(AuthError):
        auth_service.login(db, "anonymous@x.com", "secret1")


def test_tokens_expire_after_24_hours():
    token = create_access_token(user_id=7, username="alice", email="alice@x.com")
    remaining = decode_access_token(token)["exp"] - datetime.now(timezone.utc).timestamp()
    assert 24 * 3600 - 60 < remaining <= 24 * 3600


def test_me_returns_current_user(client):
    token = register(client).json()["token"]
    resp = client.get("/api/auth/me", headers=auth_header(token))
    assert resp.status_code == 200
    assert resp.json()["username"] == "alice"
    assert "hashed_password" not in resp.json()


def test_me_without_token_is_401(client):
    resp = client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Not authenticated"


def test_me_with_expired_token_is_401(client):
    user = register(client).json()["user"]
    token = create_access_token(user["id"], user["username"], user["email"], expires_delta=timedelta(seconds=-5))
    assert client.get("/api/auth/me", headers=auth_header(token)).status_code == 401


def test_me_with_forged_token_is_401(client):
    forged = jwt.encode({"uid": 1, "username": "alice", "email": "alice@x.com"}, "not-the-secret", algorithm="HS256")
    assert client.get("/api/auth/me", headers=auth_header(forged)).status_code == 401
    assert client.get("/api/auth/me", headers=auth_header("garbage")).status_code == 401


def test_verify_token_rejects_missing_claims():
    token = jwt.encode({"sub": "alice@x.com"}, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)
    with pytest.raises(AuthError):
        auth_service.verify_token(token)
    with pytest.raises(AuthError):
        auth_service.verify_token(None)


def test_verify_token_returns_embedded_principal():
    token = create_access_token(user_id=3, username="carol", email="carol@x.com")
    principal = auth_service.verify_token(token)
    assert (principal.id, principal.username, principal.email) == (3, "carol", "carol@x.com")


def test_token_signing_failure_is_a_500(client, monkeypatch):
    def broken(**kwargs):
        raise JWTError("signing failed")

    monkeypatch.setattr(auth_service, "create_access_token", broken)
    resp = register(client)
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Server error"}


def test_token_signing_failure_raises_store_error(db, monkeypatch):
    auth_service.register(db, "alice", "alice@x.com", "secret1")

    def broken(**kwargs):
        raise JWTError("signing failed")

    monkeypatch.setattr(auth_service, "create_access_token", broken)
    with pytest.raises(StoreError):
        auth_service.login(db, "alice@x.com", "secret1")


def test_long_username_and_password_are_accepted(client):
    resp = register(client, username="a" * 31, email="long@x.com", password="p" * 130)
    assert resp.status_code == 200
    assert resp.json()["user"]["username"] == "a" * 31
