from __future__ import annotations

from typing import Any, Dict, List, Optional, Set

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from duelroom.core.db import get_engine, new_ulid, now_iso
from duelroom.core.errors import Forbidden
from duelroom.core.logs import emit
from duelroom.core.security import clean_text, new_slot_token
from duelroom.modules.rooms.service import require_room

SLOTS = (1, 2)
CLAIM_ATTEMPTS = 3


def resolve_token_slot(conn: Connection, room_id: str, token: Any) -> Optional[int]:
    """Re-derive slot ownership from a bearer token. Never cached."""
    tok = clean_text(token)
    if not tok:
        return None
    row = conn.execute(
        text("SELECT slot FROM room_slots WHERE room_id = :room_id AND token = :token LIMIT 1"),
        {"room_id": room_id, "token": tok},
    ).mappings().first()
    return int(row["slot"]) if row else None


def require_slot_owner(conn: Connection, room_id: str, slot: int, token: Any) -> None:
    if not clean_text(token):
        raise Forbidden("missing slot token")
    owned = resolve_token_slot(conn, room_id, token)
    if owned is None or owned != slot:
        raise Forbidden("not allowed", {"slot": slot})


def occupied_slots(conn: Connection, room_id: str) -> Set[int]:
    # a character can exist without a claim row (pre-existing data)
    rows = conn.execute(
        text(
            "SELECT slot FROM room_slots WHERE room_id = :room_id "
            "UNION SELECT slot FROM characters WHERE room_id = :room_id"
        ),
        {"room_id": room_id},
    ).fetchall()
    return {int(r[0]) for r in rows}


def list_slot_claims(conn: Connection, room_id: str) -> List[Dict[str, Any]]:
    rows = conn.execute(
        text("SELECT slot, created_at FROM room_slots WHERE room_id = :room_id ORDER BY slot ASC"),
        {"room_id": room_id},
    ).mappings().all()
    return [{"slot": int(r["slot"]), "created_at": r["created_at"]} for r in rows]


def claim_slot(code: str, password: str, token: Any = None, request_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Returns {"slot", "token", "spectator": False} or {"spectator": True}.
    First come, first served; idempotent for a token that already holds a slot.
    """
    with get_engine().connect() as conn:
        room = require_room(conn, code, password)
        room_id = room["id"]

        held = resolve_token_slot(conn, room_id, token)
        if held is not None:
            return {"slot": held, "token": clean_text(token), "spectator": False}

    for _ in range(CLAIM_ATTEMPTS):
        fresh = new_slot_token()
        try:
            with get_engine().begin() as conn:
                taken = occupied_slots(conn, room_id)
                free = [s for s in SLOTS if s not in taken]
                if not free:
                    return {"spectator": True}
                slot = free[0]
                conn.execute(
                    text(
                        "INSERT INTO room_slots (id, room_id, slot, token, created_at) "
                        "VALUES (:id, :room_id, :slot, :token, :now)"
                    ),
                    {"id": new_ulid(), "room_id": room_id, "slot": slot, "token": fresh, "now": now_iso()},
                )
        except IntegrityError:
            # someone else got that slot; recompute occupancy
            emit("info", "slot.claim_raced", "slot claim lost a race, retrying", request_id, __name__, room_id=room_id)
            continue

        emit("info", "slot.claimed", f"slot {slot} claimed", request_id, __name__, room_id=room_id, slot=slot)
        return {"slot": slot, "token": fresh, "spectator": False}

    return {"spectator": True}
