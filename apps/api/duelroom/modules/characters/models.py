from __future__ import annotations

from typing import Optional
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


# one row per (room, slot); artifact + stats are only written by INSERT
class Character(SQLModel, table=True):
    __tablename__ = "characters"
    __table_args__ = (UniqueConstraint("room_id", "slot", name="uq_characters_room_id_slot"),)

    id: str = Field(primary_key=True)
    room_id: str = Field(foreign_key="rooms.id", index=True)
    slot: int  # 1|2
    player_name: str
    description: str
    style_id: str
    style_label: str
    image_path: Optional[str] = Field(default=None)
    image_url: Optional[str] = Field(default=None)

    attack: int
    defense: int
    magic: int
    mana: int
    speed: int
    summary: str

    is_editing: int = Field(default=0)

    created_at: str = Field(index=True)
    updated_at: str
