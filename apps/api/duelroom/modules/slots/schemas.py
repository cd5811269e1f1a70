from __future__ import annotations

from typing import Optional

from duelroom.core.schemas import CamelModel


class ClaimIn(CamelModel):
    password: str = ""
    token: Optional[str] = None


class ClaimOut(CamelModel):
    slot: Optional[int] = None
    token: Optional[str] = None
    spectator: bool = False


class SlotClaimOut(CamelModel):
    slot: int
    created_at: Optional[str] = None
