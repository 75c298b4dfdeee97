import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from groupchat.database import get_db, init_db, make_engine
from groupchat.main import app


@pytest.fixture()
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(eng, seed=True)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, future=True)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def override_db(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides.clear()


@pytest.fixture()
def client(override_db):
    # no context manager: the lifespan would initialise the configured database
    return TestClient(app)


def register(client, username="alice", email="alice@x.com", password="secret1"):
    return client.post(
        "/api/auth/register",
        json={"username": username, "email": email, "password": password},
    )


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}
