from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from duelroom.constants import DEFAULT_CHAR_LIMIT, DEFAULT_STORY_MAX, DEFAULT_STORY_MIN
from duelroom.core.db import get_engine, new_ulid, now_iso
from duelroom.core.errors import NotFound, Unauthorized, UpstreamFailure, ValidationFailed
from duelroom.core.logs import emit
from duelroom.core.security import (
    clamp_number,
    clean_text,
    generate_room_code,
    hash_password,
    verify_password,
)

MIN_PASSWORD_LENGTH = 4
CREATE_ATTEMPTS = 5

LOCK_GENERATING = "generating"


def _limit(raw: Any, default: int, lo: int, hi: int) -> int:
    # non-numeric / zero -> default, then clamp
    try:
        v = float(raw)
    except (TypeError, ValueError):
        v = 0
    if not v or v != v:
        v = default
    return int(clamp_number(v, lo, hi))


def room_view(room: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "code": room["code"],
        "name": room.get("name"),
        "char_limit": int(room["max_char_length"]),
        "story_min": int(room["story_min_length"]),
        "story_max": int(room["story_max_length"]),
    }


def get_room_by_code(conn: Connection, code: str) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        text("SELECT * FROM rooms WHERE code = :code LIMIT 1"),
        {"code": clean_text(code).upper()},
    ).mappings().first()
    return dict(row) if row else None


def require_room(conn: Connection, code: str, password: str) -> Dict[str, Any]:
    """Lookup + passphrase check shared by every room-scoped operation."""
    room = get_room_by_code(conn, code)
    if room is None:
        raise NotFound("room not found", {"room_code": clean_text(code).upper()})
    if not verify_password(clean_text(password), room["pass_hash"]):
        raise Unauthorized("invalid password")
    return room


def create_room(
    room_name: Optional[str],
    password: Any,
    char_limit: Any = None,
    story_min: Any = None,
    story_max: Any = None,
    request_id: Optional[str] = None,
) -> str:
    name = clean_text(room_name or "")
    pw = clean_text(password)
    if len(pw) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"password must be {MIN_PASSWORD_LENGTH}+ characters")

    limit = _limit(char_limit, DEFAULT_CHAR_LIMIT, 10, 80)
    smin = _limit(story_min, DEFAULT_STORY_MIN, 200, 4000)
    smax = _limit(story_max, DEFAULT_STORY_MAX, smin, 6000)
    pass_hash = hash_password(pw)

    for attempt in range(CREATE_ATTEMPTS):
        code = generate_room_code()
        try:
            with get_engine().begin() as conn:
                conn.execute(
                    text(
                        "INSERT INTO rooms (id, code, name, pass_hash, max_char_length, story_min_length, "
                        "story_max_length, battle_status, battle_started_at, created_at) "
                        "VALUES (:id, :code, :name, :pass_hash, :limit, :smin, :smax, NULL, NULL, :now)"
                    ),
                    {
                        "id": new_ulid(),
                        "code": code,
                        "name": name or None,
                        "pass_hash": pass_hash,
                        "limit": limit,
                        "smin": smin,
                        "smax": smax,
                        "now": now_iso(),
                    },
                )
        except IntegrityError:
            # code collision; draw again
            continue
        except SQLAlchemyError as e:
            raise UpstreamFailure("failed to create room", {"type": type(e).__name__, "error": str(e)})
        emit("info", "room.created", f"room {code} created", request_id, __name__, room_code=code, attempt=attempt + 1)
        return code

    raise UpstreamFailure("failed to create room, please retry", {"attempts": CREATE_ATTEMPTS})


def join_room(code: Any, password: Any) -> Dict[str, Any]:
    room_code = clean_text(code).upper()
    pw = clean_text(password)
    if not room_code or not pw:
        raise ValidationFailed("missing room code or password")
    with get_engine().connect() as conn:
        room = require_room(conn, room_code, pw)
    return room_view(room)
