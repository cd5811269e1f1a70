import pytest
from fastapi.testclient import TestClient

from duelroom.core.db import dispose_engine, init_db
from duelroom.main import app
from duelroom.providers import get_provider
from duelroom.providers.mock_provider import MockProvider

PASSWORD = "open-sesame"


@pytest.fixture()
def env(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{(tmp_path / 'app.db').as_posix()}")
    monkeypatch.setenv("STORAGE_ROOT", str(tmp_path / "storage"))
    monkeypatch.setenv("GENERATOR_PROVIDER", "mock")
    monkeypatch.setenv("ROOM_PASSWORD_SALT", "test-salt")
    dispose_engine()
    init_db()
    yield tmp_path
    dispose_engine()


@pytest.fixture()
def provider():
    return MockProvider()


@pytest.fixture()
def client(env, provider):
    app.dependency_overrides[get_provider] = lambda: provider
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_room(client):
    def _make(**overrides):
        body = {"roomName": "arena", "password": PASSWORD}
        body.update(overrides)
        res = client.post("/rooms/create", json=body)
        assert res.status_code == 200, res.text
        return res.json()["roomCode"]

    return _make


@pytest.fixture()
def claim(client):
    def _claim(code, token=None, password=PASSWORD):
        res = client.post(f"/rooms/{code}/claim", json={"password": password, "token": token})
        assert res.status_code == 200, res.text
        return res.json()

    return _claim


@pytest.fixture()
def submit(client):
    def _submit(code, slot, token, name="Ember", description="a fox knight with a lantern", force=False,
                password=PASSWORD):
        return client.post(
            f"/rooms/{code}/submit",
            json={
                "password": password,
                "slot": slot,
                "token": token,
                "name": name,
                "description": description,
                "force": force,
            },
        )

    return _submit


@pytest.fixture()
def ready_room(make_room, claim, submit):
    """A room with both slots claimed and both characters submitted."""
    code = make_room(charLimit=50, storyMin=300, storyMax=500)
    p1 = claim(code)
    p2 = claim(code)
    r1 = submit(code, 1, p1["token"], name="Ember", description="a fox knight with a lantern")
    r2 = submit(code, 2, p2["token"], name="Tide", description="a tidal golem made of shells")
    assert r1.status_code == 200, r1.text
    assert r2.status_code == 200, r2.text
    return {"code": code, "tokens": {1: p1["token"], 2: p2["token"]}}
