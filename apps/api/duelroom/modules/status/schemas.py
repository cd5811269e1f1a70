from __future__ import annotations

from typing import List, Literal, Optional

from duelroom.core.schemas import CamelModel
from duelroom.modules.battles.schemas import BattleOut
from duelroom.modules.characters.schemas import PlayerOut
from duelroom.modules.rooms.schemas import RoomOut
from duelroom.modules.slots.schemas import SlotClaimOut


class StatusIn(CamelModel):
    password: str = ""
    token: Optional[str] = None


class StatusOut(CamelModel):
    room: RoomOut
    players: List[PlayerOut]
    slots: List[SlotClaimOut]
    battle_status: Literal["idle", "generating", "done"]
    battle: Optional[BattleOut] = None
    viewer_slot: Optional[int] = None
    spectator: bool = False
