from __future__ import annotations

from typing import Literal, Optional

from duelroom.core.schemas import CamelModel


class BattleIn(CamelModel):
    password: str = ""
    force: bool = False


class BattleOut(CamelModel):
    id: str
    winner_slot: int
    story: str
    battle_image_url: Optional[str] = None
    result_image_url: Optional[str] = None
    created_at: str


class BattleEnvelopeOut(CamelModel):
    battle_status: Literal["generating", "done"]
    battle: Optional[BattleOut] = None
