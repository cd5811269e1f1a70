from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Literal, Optional

from pydantic import BaseModel, ValidationError

from duelroom.modules.characters.stats import extract_json_object


class JudgeVerdict(BaseModel):
    winner: Literal["A", "B"]
    story: str


@dataclass(frozen=True)
class Verdict:
    winner_slot: int
    story: str
    from_fallback: bool = False


def parse_verdict(raw: Any) -> Optional[JudgeVerdict]:
    blob = extract_json_object(raw)
    if blob is None:
        return None
    try:
        return JudgeVerdict.model_validate(json.loads(blob))
    except (ValueError, RecursionError, ValidationError):
        return None


def resolve_verdict(raw: Any, name_a: str, name_b: str, story_max: int) -> Verdict:
    """
    Malformed judge output degrades to slot 1 winning with the raw text as the
    narrative. {A}/{B} placeholders are filled with the real names afterwards.
    """
    parsed = parse_verdict(raw)
    if parsed is None:
        story = raw.strip() if isinstance(raw, str) else ""
        winner_slot = 1
        fallback = True
    else:
        story = parsed.story
        winner_slot = 2 if parsed.winner == "B" else 1
        fallback = False

    story = story.replace("{A}", name_a).replace("{B}", name_b).strip()
    if story_max > 0:
        story = story[:story_max]
    return Verdict(winner_slot=winner_slot, story=story, from_fallback=fallback)
