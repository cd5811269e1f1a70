from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from duelroom.core.storage import LocalBlobStore, get_blob_store
from duelroom.modules.rooms.router import request_id_of
from duelroom.providers import GeneratorProvider, get_provider

from .schemas import BattleEnvelopeOut, BattleIn
from .service import start_battle

router = APIRouter(tags=["battles"])


@router.post("/rooms/{room_code}/battle", response_model=BattleEnvelopeOut)
def api_start_battle(
    room_code: str,
    body: BattleIn,
    request: Request,
    provider: GeneratorProvider = Depends(get_provider),
    store: LocalBlobStore = Depends(get_blob_store),
) -> BattleEnvelopeOut:
    out = start_battle(
        room_code,
        body.password,
        force=body.force,
        provider=provider,
        store=store,
        request_id=request_id_of(request),
    )
    return BattleEnvelopeOut(**out)
