from __future__ import annotations

from sqlmodel import SQLModel, Field


# at most one live row per room; replaced wholesale on forced rematch
class Battle(SQLModel, table=True):
    __tablename__ = "battles"

    id: str = Field(primary_key=True)
    room_id: str = Field(foreign_key="rooms.id", unique=True)
    winner_slot: int  # 1|2
    winner_character_id: str
    story: str
    battle_image_path: str
    battle_image_url: str
    result_image_path: str
    result_image_url: str
    created_at: str
