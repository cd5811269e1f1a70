from __future__ import annotations

from fastapi import APIRouter, Request

from .schemas import RoomCreateIn, RoomCreateOut, RoomJoinIn, RoomJoinOut
from .service import create_room, join_room

router = APIRouter(prefix="/rooms", tags=["rooms"])


def request_id_of(request: Request) -> str:
    rid = getattr(getattr(request, "state", None), "request_id", None)
    return str(rid) if rid else ""


@router.post("/create", response_model=RoomCreateOut)
def api_create_room(body: RoomCreateIn, request: Request) -> RoomCreateOut:
    code = create_room(
        room_name=body.room_name,
        password=body.password,
        char_limit=body.char_limit,
        story_min=body.story_min,
        story_max=body.story_max,
        request_id=request_id_of(request),
    )
    return RoomCreateOut(room_code=code)


@router.post("/join", response_model=RoomJoinOut)
def api_join_room(body: RoomJoinIn) -> RoomJoinOut:
    return RoomJoinOut(room=join_room(body.room_code, body.password))
