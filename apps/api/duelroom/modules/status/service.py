"""
Read-only room snapshot for polling clients.

Visibility rules:
- the owner always sees their own slot
- the opponent is revealed once both characters exist, to spectators, or after a battle
- a character being edited never exposes its image
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from duelroom.core.db import get_engine
from duelroom.modules.battles.service import STATUS_DONE, STATUS_GENERATING, STATUS_IDLE, battle_view, get_battle
from duelroom.modules.characters.service import list_characters, player_view
from duelroom.modules.rooms.service import LOCK_GENERATING, require_room, room_view
from duelroom.modules.slots.service import SLOTS, list_slot_claims, occupied_slots, resolve_token_slot


def concealed_view(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "slot": int(row["slot"]),
        "is_editing": bool(row.get("is_editing")),
        "created_at": row.get("created_at"),
    }


def room_status(code: str, password: str, token: Any = None) -> Dict[str, Any]:
    with get_engine().connect() as conn:
        room = require_room(conn, code, password)
        room_id = room["id"]
        viewer_slot = resolve_token_slot(conn, room_id, token)
        occupied = occupied_slots(conn, room_id)
        slots = list_slot_claims(conn, room_id)
        characters = list_characters(conn, room_id)
        battle = get_battle(conn, room_id)

    spectator = viewer_slot is None and set(SLOTS).issubset(occupied)
    both_ready = set(SLOTS).issubset({int(c["slot"]) for c in characters})
    reveal_all = both_ready or spectator or battle is not None

    players = []
    for row in characters:
        if reveal_all or int(row["slot"]) == viewer_slot:
            view = player_view(row)
            if view["is_editing"]:
                view["image_url"] = None
        else:
            view = concealed_view(row)
        players.append(view)

    if room.get("battle_status") == LOCK_GENERATING:
        battle_status = STATUS_GENERATING
    elif battle is not None:
        battle_status = STATUS_DONE
    else:
        battle_status = STATUS_IDLE

    return {
        "room": room_view(room),
        "players": players,
        "slots": slots,
        "battle_status": battle_status,
        "battle": battle_view(battle) if battle is not None and battle_status != STATUS_GENERATING else None,
        "viewer_slot": viewer_slot,
        "spectator": spectator,
    }
