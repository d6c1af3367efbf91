import os

os.environ.setdefault("APP_ENV", "test")

import pytest  # noqa: E402

from api import create_app  # noqa: E402
from models import storage  # noqa: E402
from models.session_store import MemorySessionStore  # noqa: E402

PASSWORD = "s3cret-pass"


@pytest.fixture
def session_store():
    return MemorySessionStore()


@pytest.fixture
def app(session_store):
    app = create_app("testing", session_store=session_store)
    yield app
    storage.close()


@pytest.fixture
def client(app):
    return app.test_client()


def register(client, username="alice", email="alice@example.com", password=PASSWORD):
    return client.post(
        "/api/user/register",
        json={"username": username, "email": email, "password": password},
    )


def login(client, username="alice", password=PASSWORD):
    return client.post("/api/user/login", json={"username": username, "password": password})


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user(client):
    """A registered user; returns its public document."""
    resp = register(client)
    assert resp.status_code == 201
    return resp.get_json()["data"]


@pytest.fixture
def tokens(client, user):
    """accessToken/refreshToken/userId of a logged-in user"""
    resp = login(client)
    assert resp.status_code == 200
    return resp.get_json()
