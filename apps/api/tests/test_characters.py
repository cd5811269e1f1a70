import json

import pytest

from duelroom.constants import STAT_KEYS
from duelroom.core.storage import LocalBlobStore
from duelroom.main import app
from duelroom.providers import ProviderError, get_provider
from duelroom.providers.mock_provider import MockProvider

PASSWORD = "open-sesame"


class GarbledAnalyzer(MockProvider):
    def analyze_portrait(self, *, image, description):
        return "what a lovely drawing"


class BrokenAnalyzer(MockProvider):
    def analyze_portrait(self, *, image, description):
        raise ProviderError("analyzer timed out")


class BrokenRenderer(MockProvider):
    def render_portrait(self, *, description, style):
        raise ProviderError("image model unavailable")


def _path_of(url):
    return url[len("/media/"):]


def _status(client, code, token=None):
    res = client.post(f"/rooms/{code}/status", json={"password": PASSWORD, "token": token})
    assert res.status_code == 200, res.text
    return res.json()


@pytest.fixture()
def seated(make_room, claim):
    code = make_room(charLimit=50)
    return code, claim(code)["token"], claim(code)["token"]


def test_submit_creates_character_with_artifact(client, seated, submit):
    code, t1, _ = seated
    res = submit(code, 1, t1, name="  Ember ", description="a fox knight   with a lantern")
    assert res.status_code == 200, res.text
    player = res.json()["player"]
    assert player["slot"] == 1
    assert player["name"] == "Ember"
    assert player["description"] == "a fox knight with a lantern"
    assert player["styleId"]
    assert player["isEditing"] is False
    assert sum(player[k] for k in STAT_KEYS) == 100
    assert player["imageUrl"].startswith(f"/media/characters/{code}/slot-1-")
    assert LocalBlobStore().exists(_path_of(player["imageUrl"]))


def test_second_submit_without_force_conflicts(client, seated, submit):
    code, t1, _ = seated
    first = submit(code, 1, t1).json()["player"]
    res = submit(code, 1, t1, name="Other", description="something else")
    assert res.status_code == 409
    assert res.json()["error"] == "conflict"

    mine = _status(client, code, t1)["players"][0]
    assert mine["id"] == first["id"]
    assert mine["name"] == "Ember"
    assert LocalBlobStore().exists(_path_of(first["imageUrl"]))


def test_forced_submit_replaces_row_and_artifact(client, seated, submit):
    code, t1, _ = seated
    first = submit(code, 1, t1).json()["player"]
    res = submit(code, 1, t1, name="Ember II", description="an older fox knight", force=True)
    assert res.status_code == 200, res.text
    second = res.json()["player"]

    assert second["id"] != first["id"]
    assert second["name"] == "Ember II"
    store = LocalBlobStore()
    assert not store.exists(_path_of(first["imageUrl"]))
    assert store.exists(_path_of(second["imageUrl"]))
    assert len(_status(client, code, t1)["players"]) == 1


@pytest.mark.parametrize("provider_cls", [GarbledAnalyzer, BrokenAnalyzer])
def test_analyzer_failure_falls_back_to_flat_stats(client, seated, submit, provider_cls):
    app.dependency_overrides[get_provider] = lambda: provider_cls()
    code, t1, _ = seated
    res = submit(code, 1, t1, description="a fox knight with a lantern")
    assert res.status_code == 200, res.text
    player = res.json()["player"]
    assert [player[k] for k in STAT_KEYS] == [20, 20, 20, 20, 20]
    assert player["summary"] == "a fox knight with a lantern"


def test_render_failure_creates_nothing(client, seated, submit, env):
    app.dependency_overrides[get_provider] = lambda: BrokenRenderer()
    code, t1, _ = seated
    res = submit(code, 1, t1)
    assert res.status_code == 500
    body = res.json()
    assert body["error"] == "upstream_failure"
    assert "image model unavailable" in json.dumps(body["details"])
    assert _status(client, code, t1)["players"] == []
    assert not (env / "storage" / "characters").exists()


def test_submit_authorization(client, seated, submit):
    code, t1, t2 = seated
    assert submit(code, 1, t2).status_code == 403
    assert submit(code, 1, None).status_code == 403
    assert submit(code, 1, t1, password="wrong").status_code == 401
    assert submit(code, 3, t1).status_code == 400
    assert submit("ZZZZZZ", 1, t1).status_code == 404


def test_submit_validation(client, seated, submit):
    code, t1, _ = seated
    assert submit(code, 1, t1, name="", description="x").status_code == 400
    res = submit(code, 1, t1, description="x" * 51)
    assert res.status_code == 400
    assert res.json()["details"] == {"max": 50, "length": 51}


def _edit(client, code, slot, token, **fields):
    body = {"password": PASSWORD, "slot": slot, "token": token}
    body.update(fields)
    return client.post(f"/rooms/{code}/edit", json=body)


def test_edit_flag_hides_image_and_rename_clears_it(client, seated, submit):
    code, t1, t2 = seated
    original = submit(code, 1, t1).json()["player"]

    res = _edit(client, code, 1, t1, editing=True)
    assert res.status_code == 200
    assert res.json()["player"]["isEditing"] is True

    for token in (t1, t2):
        view = _status(client, code, token)["players"][0]
        assert view["imageUrl"] is None

    res = _edit(client, code, 1, t1, name="Ember Prime", description="a fox knight with two lanterns")
    assert res.status_code == 200
    renamed = res.json()["player"]
    assert renamed["isEditing"] is False
    assert renamed["name"] == "Ember Prime"
    assert renamed["id"] == original["id"]
    assert renamed["imageUrl"] == original["imageUrl"]
    assert [renamed[k] for k in STAT_KEYS] == [original[k] for k in STAT_KEYS]


def test_edit_errors(client, seated, submit):
    code, t1, t2 = seated
    submit(code, 1, t1)
    assert _edit(client, code, 1, t1).status_code == 400
    assert _edit(client, code, 1, t2, editing=True).status_code == 403
    assert _edit(client, code, 2, t2, editing=True).status_code == 404
    assert _edit(client, code, 1, t1, name="A", description="y" * 51).status_code == 400


def test_gallery_lists_newest_first(client, seated, submit):
    code, t1, t2 = seated
    submit(code, 1, t1, name="Ember")
    submit(code, 2, t2, name="Tide", description="a tidal golem made of shells")

    res = client.get("/gallery", params={"limit": 1})
    assert res.status_code == 200
    body = res.json()
    assert body["total"] == 2
    assert body["hasMore"] is True
    assert [i["name"] for i in body["items"]] == ["Tide"]
    assert body["items"][0]["roomCode"] == code

    body = client.get("/gallery", params={"limit": 0, "offset": 1}).json()
    assert [i["name"] for i in body["items"]] == ["Ember"]
    assert body["hasMore"] is False


def test_hide_toggle_ignores_unapplied_description(client, seated, submit):
    code, t1, _ = seated
    original = submit(code, 1, t1).json()["player"]
    res = _edit(client, code, 1, t1, editing=True, description="z" * 51)
    assert res.status_code == 200, res.text
    player = res.json()["player"]
    assert player["isEditing"] is True
    assert player["description"] == original["description"]
