from __future__ import annotations

import hashlib
import json
import struct
import zlib
from typing import List

from duelroom.constants import STAT_KEYS, StyleOption

from .base import GeneratedImage

_FILLER: List[str] = [
    "The crowd held its breath as the first blow landed.",
    "Sparks of light danced across the arena floor.",
    "Neither fighter gave an inch, trading move for move.",
    "A sudden gust swept dust across the stands.",
    "Both paused, measured each other, and charged again.",
]


def _png_1x1(rgb: bytes) -> bytes:
    def chunk(tag: bytes, body: bytes) -> bytes:
        return struct.pack(">I", len(body)) + tag + body + struct.pack(">I", zlib.crc32(tag + body) & 0xFFFFFFFF)

    ihdr = struct.pack(">IIBBBBB", 1, 1, 8, 2, 0, 0, 0)
    raw = b"\x00" + rgb[:3]
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IDAT", zlib.compress(raw)) + chunk(b"IEND", b"")


def _digest(*parts: bytes) -> bytes:
    h = hashlib.sha256()
    for p in parts:
        h.update(p)
    return h.digest()


class MockProvider:
    """
    Deterministic offline provider for local runs and gates:
    - images are 1x1 PNGs colored from a digest of the inputs
    - analysis/judge outputs are well-formed JSON derived from the same digests
    """
    name = "mock"

    def render_portrait(self, *, description: str, style: StyleOption) -> GeneratedImage:
        d = _digest(style.id.encode("utf-8"), description.encode("utf-8"))
        return GeneratedImage(data=_png_1x1(d), mime_type="image/png")

    def analyze_portrait(self, *, image: GeneratedImage, description: str) -> str:
        d = _digest(image.data)
        stats = {k: 10 + d[i] % 60 for i, k in enumerate(STAT_KEYS)}
        stats["summary"] = description[:40]
        return json.dumps(stats, ensure_ascii=False)

    def judge_battle(
        self, *, image_a: GeneratedImage, image_b: GeneratedImage, story_min: int, story_max: int
    ) -> str:
        winner = "A" if _digest(image_a.data) >= _digest(image_b.data) else "B"
        target = (story_min + story_max) // 2
        parts = ["{A} and {B} stepped into the arena."]
        i = 0
        while sum(len(p) + 1 for p in parts) < target:
            parts.append(_FILLER[i % len(_FILLER)])
            i += 1
        story = " ".join(parts)[:target]
        return json.dumps({"winner": winner, "story": story}, ensure_ascii=False)

    def render_battle_scene(self, *, image_a: GeneratedImage, image_b: GeneratedImage) -> GeneratedImage:
        return GeneratedImage(data=_png_1x1(_digest(b"battle", image_a.data, image_b.data)))

    def render_victory_scene(
        self, *, image_a: GeneratedImage, image_b: GeneratedImage, winner_slot: int
    ) -> GeneratedImage:
        return GeneratedImage(data=_png_1x1(_digest(b"result", bytes([winner_slot]), image_a.data, image_b.data)))
