PASSWORD = "open-sesame"


def _status(client, code, token=None):
    res = client.post(f"/rooms/{code}/status", json={"password": PASSWORD, "token": token})
    assert res.status_code == 200, res.text
    return res.json()


def _slot(status, n):
    return next(p for p in status["players"] if p["slot"] == n)


def test_opponent_is_concealed_until_both_are_ready(client, make_room, claim, submit):
    code = make_room()
    t1 = claim(code)["token"]
    t2 = claim(code)["token"]
    submit(code, 1, t1, name="Ember")

    own = _status(client, code, t1)
    assert own["viewerSlot"] == 1
    assert own["spectator"] is False
    assert _slot(own, 1)["name"] == "Ember"
    assert _slot(own, 1)["imageUrl"]

    other = _status(client, code, t2)
    assert other["viewerSlot"] == 2
    hidden = _slot(other, 1)
    assert hidden["id"] == _slot(own, 1)["id"]
    assert hidden["name"] is None
    assert hidden["imageUrl"] is None
    assert hidden["attack"] is None

    submit(code, 2, t2, name="Tide", description="a tidal golem made of shells")
    revealed = _status(client, code, t2)
    assert _slot(revealed, 1)["name"] == "Ember"
    assert _slot(revealed, 2)["name"] == "Tide"


def test_spectator_sees_everything_once_slots_are_full(client, make_room, claim, submit):
    code = make_room()
    t1 = claim(code)["token"]

    lurker = _status(client, code)
    assert lurker["spectator"] is False
    assert lurker["viewerSlot"] is None

    submit(code, 1, t1, name="Ember")
    assert _slot(_status(client, code), 1)["name"] is None

    claim(code)
    spectator = _status(client, code, token="not-a-seat")
    assert spectator["spectator"] is True
    assert _slot(spectator, 1)["name"] == "Ember"


def test_snapshot_shape(client, ready_room):
    code = ready_room["code"]
    status = _status(client, code, ready_room["tokens"][1])
    assert status["room"]["code"] == code
    assert status["room"]["charLimit"] == 50
    assert [s["slot"] for s in status["slots"]] == [1, 2]
    assert all(s["createdAt"] for s in status["slots"])
    assert [p["slot"] for p in status["players"]] == [1, 2]
    assert status["battleStatus"] == "idle"
    assert status["battle"] is None


def test_status_requires_password(client, make_room):
    code = make_room()
    res = client.post(f"/rooms/{code}/status", json={"password": "wrong"})
    assert res.status_code == 401
    assert res.json()["error"] == "unauthorized"
