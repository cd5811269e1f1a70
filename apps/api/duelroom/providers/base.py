from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from duelroom.constants import StyleOption


@dataclass(frozen=True)
class GeneratedImage:
    """Raw image bytes as returned by a provider (not yet stored)."""
    data: bytes
    mime_type: str = "image/png"


class ProviderError(RuntimeError):
    """Any failure talking to the generative backend."""


class GeneratorProvider(Protocol):
    """
    Pluggable generative backend. Text-returning calls hand back the raw model
    output; decoding and normalization happen in the services.
    """
    name: str

    def render_portrait(self, *, description: str, style: StyleOption) -> GeneratedImage:
        ...

    def analyze_portrait(self, *, image: GeneratedImage, description: str) -> str:
        ...

    def judge_battle(
        self, *, image_a: GeneratedImage, image_b: GeneratedImage, story_min: int, story_max: int
    ) -> str:
        ...

    def render_battle_scene(self, *, image_a: GeneratedImage, image_b: GeneratedImage) -> GeneratedImage:
        ...

    def render_victory_scene(
        self, *, image_a: GeneratedImage, image_b: GeneratedImage, winner_slot: int
    ) -> GeneratedImage:
        ...
