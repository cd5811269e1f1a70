from __future__ import annotations

from typing import Any, List, Optional

from duelroom.core.schemas import CamelModel


class SubmitIn(CamelModel):
    password: str = ""
    slot: Any = None
    token: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    force: bool = False


class EditIn(CamelModel):
    password: str = ""
    slot: Any = None
    token: Optional[str] = None
    editing: Optional[bool] = None
    name: Optional[str] = None
    description: Optional[str] = None


class PlayerOut(CamelModel):
    id: str
    slot: int
    name: Optional[str] = None
    description: Optional[str] = None
    style_id: Optional[str] = None
    style_label: Optional[str] = None
    image_url: Optional[str] = None
    attack: Optional[int] = None
    defense: Optional[int] = None
    magic: Optional[int] = None
    mana: Optional[int] = None
    speed: Optional[int] = None
    summary: Optional[str] = None
    is_editing: bool = False
    created_at: Optional[str] = None


class PlayerEnvelopeOut(CamelModel):
    player: PlayerOut


class GalleryItemOut(CamelModel):
    id: str
    name: str
    description: str
    style_label: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[str] = None
    room_code: Optional[str] = None


class GalleryOut(CamelModel):
    items: List[GalleryItemOut]
    total: int
    has_more: bool
