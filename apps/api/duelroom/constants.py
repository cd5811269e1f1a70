from __future__ import annotations

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class StyleOption:
    id: str
    label: str
    prompt: str


STYLE_POOL: List[StyleOption] = [
    StyleOption(
        id="hardboiled",
        label="ハードボイルド",
        prompt="hard-boiled pulp illustration, cinematic lighting, gritty textures, dramatic shadows",
    ),
    StyleOption(
        id="deformed",
        label="デフォルメ",
        prompt="cute chibi proportions, big expressive eyes, rounded shapes, playful color palette",
    ),
    StyleOption(
        id="real",
        label="リアル",
        prompt="realistic fantasy portrait, detailed materials, lifelike lighting, high clarity",
    ),
    StyleOption(
        id="storybook",
        label="絵本",
        prompt="storybook illustration, soft brush strokes, warm pastel palette, gentle atmosphere",
    ),
    StyleOption(
        id="anime",
        label="アニメ",
        prompt="anime illustration, clean line art, vibrant highlights, dynamic pose",
    ),
    StyleOption(
        id="ink",
        label="水墨",
        prompt="ink wash painting style, sumi-e textures, flowing brush lines, restrained colors",
    ),
]

SAFE_CONTENT_RULES = (
    "Keep it safe for kids: no gore, no blood, no sexual content, no hate, no real-world violence. "
    "Avoid text or logos."
)

STAT_KEYS = ("attack", "defense", "magic", "mana", "speed")
STAT_TOTAL = 100
SUMMARY_MAX_LENGTH = 60

DEFAULT_CHAR_LIMIT = 50
DEFAULT_STORY_MIN = 300
DEFAULT_STORY_MAX = 500
