from __future__ import annotations

from typing import Any, Optional

from duelroom.core.schemas import CamelModel


class RoomCreateIn(CamelModel):
    # lenient on purpose: limits are clamped in the service
    room_name: Optional[str] = None
    password: str = ""
    char_limit: Any = None
    story_min: Any = None
    story_max: Any = None


class RoomCreateOut(CamelModel):
    room_code: str


class RoomJoinIn(CamelModel):
    room_code: str = ""
    password: str = ""


class RoomOut(CamelModel):
    code: str
    name: Optional[str] = None
    char_limit: int
    story_min: int
    story_max: int


class RoomJoinOut(CamelModel):
    room: RoomOut
