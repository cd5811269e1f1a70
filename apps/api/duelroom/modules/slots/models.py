from __future__ import annotations

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


# never updated, never deleted
class RoomSlot(SQLModel, table=True):
    __tablename__ = "room_slots"
    __table_args__ = (UniqueConstraint("room_id", "slot", name="uq_room_slots_room_id_slot"),)

    id: str = Field(primary_key=True)
    room_id: str = Field(foreign_key="rooms.id", index=True)
    slot: int  # 1|2
    token: str = Field(unique=True)
    created_at: str
