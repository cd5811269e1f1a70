from __future__ import annotations

import datetime
import json
import logging
from typing import Any, Dict, Optional

from duelroom.core.config import get_log_level

_log = logging.getLogger("duelroom")
if not _log.handlers:
    logging.basicConfig(level=get_log_level())


def _now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def emit(level: str, event: str, message: str, request_id: Optional[str], module: str, **extra: Any) -> None:
    """One JSON line per event on stdout (capturable in uvicorn log redirection)."""
    payload: Dict[str, Any] = {
        "ts": _now_iso(),
        "level": level.lower(),
        "message": message,
        "request_id": request_id,
        "event": event,
        "module": module,
    }
    payload.update(extra)
    print(json.dumps(payload, ensure_ascii=False, default=str), flush=True)
