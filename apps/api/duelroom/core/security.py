from __future__ import annotations

import hashlib
import hmac
import random
import re
import secrets
from typing import Any, Sequence, TypeVar

from duelroom.core.config import get_password_salt

T = TypeVar("T")

ROOM_CODE_LENGTH = 6
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

_WS = re.compile(r"\s+")


def clean_text(value: Any) -> str:
    """Collapse runs of whitespace and trim; non-strings become ""."""
    if not isinstance(value, str):
        return ""
    return _WS.sub(" ", value).strip()


def clamp_number(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def pick_random(items: Sequence[T]) -> T:
    return random.choice(items)


def generate_room_code(length: int = ROOM_CODE_LENGTH) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def new_slot_token() -> str:
    return secrets.token_urlsafe(32)


def hash_password(password: str) -> str:
    return hashlib.sha256(f"{get_password_salt()}:{password}".encode("utf-8")).hexdigest()


def verify_password(password: str, pass_hash: str) -> bool:
    if not password or not pass_hash:
        return False
    return hmac.compare_digest(hash_password(password), pass_hash)
