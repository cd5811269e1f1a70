from __future__ import annotations

from fastapi import APIRouter, Request

from duelroom.modules.rooms.router import request_id_of

from .schemas import ClaimIn, ClaimOut
from .service import claim_slot

router = APIRouter(prefix="/rooms", tags=["slots"])


@router.post("/{room_code}/claim", response_model=ClaimOut, response_model_exclude_none=True)
def api_claim_slot(room_code: str, body: ClaimIn, request: Request) -> ClaimOut:
    return ClaimOut(**claim_slot(room_code, body.password, body.token, request_id=request_id_of(request)))
