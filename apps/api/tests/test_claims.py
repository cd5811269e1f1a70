import threading

from fastapi.testclient import TestClient

from duelroom.main import app

PASSWORD = "open-sesame"


def test_first_come_first_served(make_room, claim):
    code = make_room()
    first = claim(code)
    second = claim(code)
    third = claim(code)
    assert (first["slot"], second["slot"]) == (1, 2)
    assert first["token"] != second["token"]
    assert third == {"spectator": True}


def test_reclaim_with_held_token_is_idempotent(make_room, claim):
    code = make_room()
    first = claim(code)
    again = claim(code, token=first["token"])
    assert again == {"slot": 1, "token": first["token"], "spectator": False}
    # the retry did not burn slot 2
    assert claim(code)["slot"] == 2


def test_unknown_token_gets_a_fresh_slot(make_room, claim):
    code = make_room()
    res = claim(code, token="not-a-real-token")
    assert res["slot"] == 1
    assert res["token"] != "not-a-real-token"


def test_claim_requires_password(client, make_room):
    code = make_room()
    res = client.post(f"/rooms/{code}/claim", json={"password": "wrong"})
    assert res.status_code == 401


def test_concurrent_claims_get_distinct_slots(client, make_room):
    code = make_room()
    barrier = threading.Barrier(4)
    results = []
    lock = threading.Lock()

    def worker():
        c = TestClient(app)
        barrier.wait()
        res = c.post(f"/rooms/{code}/claim", json={"password": PASSWORD})
        with lock:
            results.append(res.json())

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    slots = sorted(r["slot"] for r in results if not r["spectator"])
    assert slots == [1, 2]
    assert sum(1 for r in results if r["spectator"]) == 2
