from __future__ import annotations

from typing import Optional
from sqlmodel import SQLModel, Field


class Room(SQLModel, table=True):
    __tablename__ = "rooms"

    id: str = Field(primary_key=True)
    code: str = Field(unique=True, index=True)
    name: Optional[str] = Field(default=None)
    pass_hash: str
    max_char_length: int
    story_min_length: int
    story_max_length: int

    # battle lock: NULL = unlocked, "generating" = held
    battle_status: Optional[str] = Field(default=None)
    battle_started_at: Optional[str] = Field(default=None)

    created_at: str
