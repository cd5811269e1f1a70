from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from duelroom.constants import STYLE_POOL
from duelroom.core.db import get_engine, new_ulid, now_iso
from duelroom.core.errors import Conflict, NotFound, UpstreamFailure, ValidationFailed
from duelroom.core.logs import emit
from duelroom.core.security import clean_text, pick_random
from duelroom.core.storage import LocalBlobStore, StorageError, extension_for_mime
from duelroom.modules.rooms.service import require_room
from duelroom.modules.slots.service import SLOTS, require_slot_owner
from duelroom.providers import GeneratorProvider, ProviderError

from .stats import NormalizedStats, normalize_stats, parse_analysis

_CHARACTER_COLUMNS = (
    "id, room_id, slot, player_name, description, style_id, style_label, image_path, image_url, "
    "attack, defense, magic, mana, speed, summary, is_editing, created_at, updated_at"
)


def _parse_slot(raw: Any) -> int:
    try:
        slot = int(raw)
    except (TypeError, ValueError):
        slot = 0
    if slot not in SLOTS:
        raise ValidationFailed("invalid slot", {"slot": raw})
    return slot


def player_view(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "slot": int(row["slot"]),
        "name": row["player_name"],
        "description": row["description"],
        "style_id": row["style_id"],
        "style_label": row["style_label"],
        "image_url": row.get("image_url"),
        "attack": row.get("attack"),
        "defense": row.get("defense"),
        "magic": row.get("magic"),
        "mana": row.get("mana"),
        "speed": row.get("speed"),
        "summary": row.get("summary"),
        "is_editing": bool(row.get("is_editing")),
        "created_at": row.get("created_at"),
    }


def get_character(conn: Connection, room_id: str, slot: int) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        text(f"SELECT {_CHARACTER_COLUMNS} FROM characters WHERE room_id = :room_id AND slot = :slot LIMIT 1"),
        {"room_id": room_id, "slot": slot},
    ).mappings().first()
    return dict(row) if row else None


def list_characters(conn: Connection, room_id: str) -> List[Dict[str, Any]]:
    rows = conn.execute(
        text(f"SELECT {_CHARACTER_COLUMNS} FROM characters WHERE room_id = :room_id ORDER BY slot ASC"),
        {"room_id": room_id},
    ).mappings().all()
    return [dict(r) for r in rows]


def _analyze(provider: GeneratorProvider, image, description: str, request_id: Optional[str]) -> NormalizedStats:
    try:
        raw = provider.analyze_portrait(image=image, description=description)
    except ProviderError as e:
        emit(
            "warning", "character.analysis_fallback", "analyzer call failed; using fallback stats",
            request_id, __name__, error=str(e),
        )
        return normalize_stats(None, description)

    parsed = parse_analysis(raw)
    if parsed is None:
        emit(
            "warning", "character.analysis_fallback", "analyzer output not a JSON object; using fallback stats",
            request_id, __name__, raw=str(raw)[:200],
        )
    return normalize_stats(parsed, description)


def submit_character(
    code: str,
    password: str,
    slot: Any,
    token: Any,
    name: Any,
    description: Any,
    force: bool,
    provider: GeneratorProvider,
    store: LocalBlobStore,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    slot_no = _parse_slot(slot)
    player_name = clean_text(name)
    desc = clean_text(description)

    with get_engine().connect() as conn:
        room = require_room(conn, code, password)
        require_slot_owner(conn, room["id"], slot_no, token)
        if not player_name or not desc:
            raise ValidationFailed("name and description required")
        if len(desc) > int(room["max_char_length"]):
            raise ValidationFailed("description too long", {"max": int(room["max_char_length"]), "length": len(desc)})
        existing = get_character(conn, room["id"], slot_no)

    if existing and not force:
        raise Conflict("slot already taken", {"slot": slot_no})

    if existing and force:
        try:
            store.delete(existing.get("image_path"))
            with get_engine().begin() as conn:
                conn.execute(text("DELETE FROM characters WHERE id = :id"), {"id": existing["id"]})
        except (StorageError, SQLAlchemyError) as e:
            raise UpstreamFailure("failed to remove previous character", {"type": type(e).__name__, "error": str(e)})
        emit("info", "character.replaced", f"slot {slot_no} cleared for resubmission", request_id, __name__,
             room_id=room["id"], slot=slot_no, previous_id=existing["id"])

    style = pick_random(STYLE_POOL)
    try:
        image = provider.render_portrait(description=desc, style=style)
    except ProviderError as e:
        raise UpstreamFailure("character image generation failed", {"provider": provider.name, "error": str(e)})

    stats = _analyze(provider, image, desc, request_id)

    path = f"characters/{room['code']}/slot-{slot_no}-{new_ulid()}.{extension_for_mime(image.mime_type)}"
    now = now_iso()
    row = {
        "id": new_ulid(),
        "room_id": room["id"],
        "slot": slot_no,
        "player_name": player_name,
        "description": desc,
        "style_id": style.id,
        "style_label": style.label,
        "image_path": path,
        "image_url": store.public_url(path),
        **stats.as_dict(),
        "is_editing": 0,
        "created_at": now,
        "updated_at": now,
    }
    try:
        store.put(path, image.data)
        with get_engine().begin() as conn:
            conn.execute(
                text(
                    f"INSERT INTO characters ({_CHARACTER_COLUMNS}) VALUES ("
                    ":id, :room_id, :slot, :player_name, :description, :style_id, :style_label, :image_path, "
                    ":image_url, :attack, :defense, :magic, :mana, :speed, :summary, :is_editing, "
                    ":created_at, :updated_at)"
                ),
                row,
            )
    except IntegrityError:
        # a concurrent submit for the same slot landed first
        raise Conflict("slot already taken", {"slot": slot_no})
    except (StorageError, SQLAlchemyError) as e:
        raise UpstreamFailure("failed to save character", {"type": type(e).__name__, "error": str(e)})

    emit("info", "character.submitted", f"slot {slot_no} character created", request_id, __name__,
         room_id=room["id"], slot=slot_no, character_id=row["id"], style=style.id)
    return player_view(row)


def edit_character(
    code: str,
    password: str,
    slot: Any,
    token: Any,
    editing: Optional[bool] = None,
    name: Any = None,
    description: Any = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    editing alone toggles the hide flag; name+description renames in place and
    clears the flag. Artifact and stats are never touched.
    """
    slot_no = _parse_slot(slot)
    player_name = clean_text(name)
    desc = clean_text(description)
    rename = bool(player_name and desc)

    with get_engine().begin() as conn:
        room = require_room(conn, code, password)
        require_slot_owner(conn, room["id"], slot_no, token)
        if editing is None and not rename:
            raise ValidationFailed("name and description required")
        if rename and len(desc) > int(room["max_char_length"]):
            raise ValidationFailed("description too long", {"max": int(room["max_char_length"]), "length": len(desc)})

        sets: List[str] = []
        args: Dict[str, Any] = {"room_id": room["id"], "slot": slot_no, "now": now_iso()}
        if editing is not None:
            sets.append("is_editing = :is_editing")
            args["is_editing"] = 1 if editing else 0
        if rename:
            sets = ["player_name = :player_name", "description = :description", "is_editing = 0"]
            args["player_name"] = player_name
            args["description"] = desc
            args.pop("is_editing", None)
        sets.append("updated_at = :now")

        res = conn.execute(
            text(f"UPDATE characters SET {', '.join(sets)} WHERE room_id = :room_id AND slot = :slot"),
            args,
        )
        if res.rowcount == 0:
            raise NotFound("character not found", {"slot": slot_no})
        row = get_character(conn, room["id"], slot_no)

    emit("info", "character.edited", f"slot {slot_no} edited", request_id, __name__,
         room_id=room["id"], slot=slot_no, renamed=rename, editing=editing)
    return player_view(row)


def list_gallery(limit: int, offset: int) -> Tuple[List[Dict[str, Any]], int]:
    with get_engine().connect() as conn:
        total = conn.execute(
            text("SELECT COUNT(1) AS n FROM characters WHERE image_url IS NOT NULL")
        ).scalar_one()
        rows = conn.execute(
            text(
                "SELECT c.id, c.player_name, c.description, c.style_label, c.image_url, c.created_at, "
                "r.code AS room_code "
                "FROM characters c LEFT JOIN rooms r ON r.id = c.room_id "
                "WHERE c.image_url IS NOT NULL "
                "ORDER BY c.created_at DESC, c.id DESC LIMIT :limit OFFSET :offset"
            ),
            {"limit": limit, "offset": offset},
        ).mappings().all()
    items = [
        {
            "id": r["id"],
            "name": r["player_name"],
            "description": r["description"],
            "style_label": r["style_label"],
            "image_url": r["image_url"],
            "created_at": r["created_at"],
            "room_code": r["room_code"],
        }
        for r in rows
    ]
    return items, int(total)
