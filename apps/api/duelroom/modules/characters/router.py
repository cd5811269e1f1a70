from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from duelroom.core.storage import LocalBlobStore, get_blob_store
from duelroom.modules.rooms.router import request_id_of
from duelroom.providers import GeneratorProvider, get_provider

from .schemas import EditIn, GalleryOut, PlayerEnvelopeOut, SubmitIn
from .service import edit_character, list_gallery, submit_character

router = APIRouter(tags=["characters"])

GALLERY_DEFAULT_LIMIT = 48
GALLERY_MAX_LIMIT = 120


def _clamp_limit(raw: int | None) -> int:
    # default=48, max=120
    if raw is None:
        return GALLERY_DEFAULT_LIMIT
    try:
        v = int(raw)
    except Exception:
        return GALLERY_DEFAULT_LIMIT
    if v < 1:
        v = GALLERY_DEFAULT_LIMIT
    if v > GALLERY_MAX_LIMIT:
        v = GALLERY_MAX_LIMIT
    return v


def _clamp_offset(raw: int | None) -> int:
    if raw is None:
        return 0
    try:
        v = int(raw)
    except Exception:
        return 0
    return max(v, 0)


@router.post("/rooms/{room_code}/submit", response_model=PlayerEnvelopeOut)
def api_submit_character(
    room_code: str,
    body: SubmitIn,
    request: Request,
    provider: GeneratorProvider = Depends(get_provider),
    store: LocalBlobStore = Depends(get_blob_store),
) -> PlayerEnvelopeOut:
    player = submit_character(
        room_code,
        body.password,
        slot=body.slot,
        token=body.token,
        name=body.name,
        description=body.description,
        force=body.force,
        provider=provider,
        store=store,
        request_id=request_id_of(request),
    )
    return PlayerEnvelopeOut(player=player)


@router.post("/rooms/{room_code}/edit", response_model=PlayerEnvelopeOut)
def api_edit_character(room_code: str, body: EditIn, request: Request) -> PlayerEnvelopeOut:
    player = edit_character(
        room_code,
        body.password,
        slot=body.slot,
        token=body.token,
        editing=body.editing,
        name=body.name,
        description=body.description,
        request_id=request_id_of(request),
    )
    return PlayerEnvelopeOut(player=player)


@router.get("/gallery", response_model=GalleryOut)
def api_gallery(
    limit: int | None = Query(None, description="Max items to return (default 48, max 120)"),
    offset: int | None = Query(None, description="Offset from start (default 0)"),
) -> GalleryOut:
    lim = _clamp_limit(limit)
    off = _clamp_offset(offset)
    items, total = list_gallery(limit=lim, offset=off)
    return GalleryOut(items=items, total=total, has_more=(off + lim) < total)
