"""
Battle generation behind a room-scoped lock.

The lock is the (battle_status, battle_started_at) pair on the room row:
- acquire: one conditional UPDATE (compare-and-swap), committed before any
  generator call; zero affected rows means another caller holds it
- release: runs in `finally` on every path after acquisition, and only clears
  the lock this call wrote (matched by its stamp)
- clear: unconditional, only on an explicit force over a stuck lock

There is no expiry and no in-process mutex; handlers are stateless.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from duelroom.core.db import get_engine, new_ulid, now_iso
from duelroom.core.errors import Conflict, PreconditionFailed, UpstreamFailure
from duelroom.core.logs import emit
from duelroom.core.storage import LocalBlobStore, StorageError, extension_for_mime, mime_for_path
from duelroom.modules.characters.service import list_characters
from duelroom.modules.rooms.service import LOCK_GENERATING, require_room
from duelroom.providers import GeneratedImage, GeneratorProvider, ProviderError

from .verdict import resolve_verdict

STATUS_IDLE = "idle"
STATUS_GENERATING = "generating"
STATUS_DONE = "done"


def battle_view(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "winner_slot": int(row["winner_slot"]),
        "story": row["story"],
        "battle_image_url": row["battle_image_url"],
        "result_image_url": row["result_image_url"],
        "created_at": row["created_at"],
    }


def get_battle(conn: Connection, room_id: str) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        text("SELECT * FROM battles WHERE room_id = :room_id LIMIT 1"),
        {"room_id": room_id},
    ).mappings().first()
    return dict(row) if row else None


# --- lock primitives ---
def acquire_battle_lock(room_id: str) -> Optional[str]:
    """Returns the lock stamp on success, None if someone else holds the lock."""
    stamp = now_iso()
    with get_engine().begin() as conn:
        res = conn.execute(
            text(
                "UPDATE rooms SET battle_status = :generating, battle_started_at = :stamp "
                "WHERE id = :id AND (battle_status IS NULL OR battle_status <> :generating)"
            ),
            {"generating": LOCK_GENERATING, "stamp": stamp, "id": room_id},
        )
    return stamp if res.rowcount == 1 else None


def release_battle_lock(room_id: str, stamp: str) -> bool:
    with get_engine().begin() as conn:
        res = conn.execute(
            text(
                "UPDATE rooms SET battle_status = NULL, battle_started_at = NULL "
                "WHERE id = :id AND battle_status = :generating AND battle_started_at = :stamp"
            ),
            {"generating": LOCK_GENERATING, "stamp": stamp, "id": room_id},
        )
    return res.rowcount == 1


def clear_battle_lock(room_id: str) -> None:
    with get_engine().begin() as conn:
        conn.execute(
            text("UPDATE rooms SET battle_status = NULL, battle_started_at = NULL WHERE id = :id"),
            {"id": room_id},
        )


def _done(row: Dict[str, Any]) -> Dict[str, Any]:
    return {"battle_status": STATUS_DONE, "battle": battle_view(row)}


def _generating() -> Dict[str, Any]:
    return {"battle_status": STATUS_GENERATING, "battle": None}


def _delete_battle(row: Dict[str, Any], store: LocalBlobStore) -> None:
    store.delete(row.get("battle_image_path"))
    store.delete(row.get("result_image_path"))
    with get_engine().begin() as conn:
        conn.execute(text("DELETE FROM battles WHERE id = :id"), {"id": row["id"]})


def _load_image(store: LocalBlobStore, path: str) -> GeneratedImage:
    return GeneratedImage(data=store.read(path), mime_type=mime_for_path(path))


def _run_battle(
    room: Dict[str, Any],
    force: bool,
    provider: GeneratorProvider,
    store: LocalBlobStore,
    request_id: Optional[str],
) -> Dict[str, Any]:
    room_id = room["id"]
    with get_engine().connect() as conn:
        prior = get_battle(conn, room_id)
        players = {int(c["slot"]): c for c in list_characters(conn, room_id)}

    if prior and not force:
        # a racing caller finished between our first read and the lock
        return _done(prior)
    if prior:
        try:
            _delete_battle(prior, store)
        except (StorageError, SQLAlchemyError) as e:
            raise UpstreamFailure("failed to remove previous battle", {"type": type(e).__name__, "error": str(e)})
        emit("info", "battle.replaced", "previous battle removed for rematch", request_id, __name__,
             room_id=room_id, battle_id=prior["id"])

    a, b = players.get(1), players.get(2)
    if not a or not b or not a.get("image_path") or not b.get("image_path"):
        raise PreconditionFailed("both players are required", {"slots": sorted(players.keys())})

    try:
        image_a = _load_image(store, a["image_path"])
        image_b = _load_image(store, b["image_path"])
    except StorageError as e:
        raise UpstreamFailure("failed to load character images", {"error": str(e)})

    try:
        raw = provider.judge_battle(
            image_a=image_a,
            image_b=image_b,
            story_min=int(room["story_min_length"]),
            story_max=int(room["story_max_length"]),
        )
        verdict = resolve_verdict(raw, a["player_name"], b["player_name"], int(room["story_max_length"]))
        if verdict.from_fallback:
            emit("warning", "battle.verdict_fallback", "judge output not valid JSON; slot 1 wins by default",
                 request_id, __name__, room_id=room_id)
        battle_img = provider.render_battle_scene(image_a=image_a, image_b=image_b)
        result_img = provider.render_victory_scene(image_a=image_a, image_b=image_b, winner_slot=verdict.winner_slot)
    except ProviderError as e:
        raise UpstreamFailure("battle generation failed", {"provider": provider.name, "error": str(e)})

    battle_path = f"battles/{room['code']}/battle-{new_ulid()}.{extension_for_mime(battle_img.mime_type)}"
    result_path = f"battles/{room['code']}/result-{new_ulid()}.{extension_for_mime(result_img.mime_type)}"
    winner = a if verdict.winner_slot == 1 else b
    row = {
        "id": new_ulid(),
        "room_id": room_id,
        "winner_slot": verdict.winner_slot,
        "winner_character_id": winner["id"],
        "story": verdict.story,
        "battle_image_path": battle_path,
        "battle_image_url": store.public_url(battle_path),
        "result_image_path": result_path,
        "result_image_url": store.public_url(result_path),
        "created_at": now_iso(),
    }
    try:
        store.put(battle_path, battle_img.data)
        store.put(result_path, result_img.data)
        with get_engine().begin() as conn:
            conn.execute(
                text(
                    "INSERT INTO battles (id, room_id, winner_slot, winner_character_id, story, battle_image_path, "
                    "battle_image_url, result_image_path, result_image_url, created_at) VALUES (:id, :room_id, "
                    ":winner_slot, :winner_character_id, :story, :battle_image_path, :battle_image_url, "
                    ":result_image_path, :result_image_url, :created_at)"
                ),
                row,
            )
    except IntegrityError:
        raise Conflict("battle already recorded for this room")
    except (StorageError, SQLAlchemyError) as e:
        raise UpstreamFailure("failed to save battle", {"type": type(e).__name__, "error": str(e)})

    emit("info", "battle.completed", f"slot {verdict.winner_slot} wins", request_id, __name__,
         room_id=room_id, battle_id=row["id"], winner_slot=verdict.winner_slot)
    return _done(row)


def start_battle(
    code: str,
    password: str,
    force: bool,
    provider: GeneratorProvider,
    store: LocalBlobStore,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Returns {"battle_status": "done", "battle": {...}} or
    {"battle_status": "generating", "battle": None}.
    """
    with get_engine().connect() as conn:
        room = require_room(conn, code, password)
        existing = get_battle(conn, room["id"])
    room_id = room["id"]

    if existing and not force:
        return _done(existing)

    if room.get("battle_status") == LOCK_GENERATING:
        if not force:
            return _generating()
        clear_battle_lock(room_id)
        emit("warning", "battle.lock_cleared", "generation lock force-cleared", request_id, __name__,
             room_id=room_id, stale_since=room.get("battle_started_at"))

    stamp = acquire_battle_lock(room_id)
    if stamp is None:
        emit("info", "battle.lock_contended", "generation already in progress", request_id, __name__, room_id=room_id)
        return _generating()
    emit("info", "battle.lock_acquired", "generation lock acquired", request_id, __name__,
         room_id=room_id, stamp=stamp, force=force)

    try:
        return _run_battle(room, force, provider, store, request_id)
    except Exception as e:
        emit("error", "battle.failed", str(e), request_id, __name__, room_id=room_id, type=type(e).__name__)
        raise
    finally:
        released = release_battle_lock(room_id, stamp)
        emit("info", "battle.lock_released", "generation lock released", request_id, __name__,
             room_id=room_id, stamp=stamp, released=released)
