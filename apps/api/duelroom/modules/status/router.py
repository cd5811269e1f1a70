from __future__ import annotations

from fastapi import APIRouter

from .schemas import StatusIn, StatusOut
from .service import room_status

router = APIRouter(tags=["status"])


@router.post("/rooms/{room_code}/status", response_model=StatusOut)
def api_room_status(room_code: str, body: StatusIn) -> StatusOut:
    return StatusOut(**room_status(room_code, body.password, token=body.token))
