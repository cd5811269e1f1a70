"""
Untrusted analyzer output -> bounded stat record.

Two steps, kept apart:
- parse_analysis: strict decode of the raw model text into StatAnalysis (or None)
- normalize_stats: total function from (StatAnalysis | None) to NormalizedStats
"""
from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from duelroom.constants import STAT_KEYS, STAT_TOTAL, SUMMARY_MAX_LENGTH
from duelroom.core.security import clean_text

STAT_DEFAULT = 50
STAT_FLAT = STAT_TOTAL // len(STAT_KEYS)

_FENCE_OPEN = re.compile(r"^```(json)?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"```$")
_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


class StatAnalysis(BaseModel):
    """Analyzer output as received. Every field is optional and unvalidated."""
    model_config = ConfigDict(extra="ignore")

    attack: Any = None
    defense: Any = None
    magic: Any = None
    mana: Any = None
    speed: Any = None
    summary: Any = None


@dataclass(frozen=True)
class NormalizedStats:
    attack: int
    defense: int
    magic: int
    mana: int
    speed: int
    summary: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "attack": self.attack,
            "defense": self.defense,
            "magic": self.magic,
            "mana": self.mana,
            "speed": self.speed,
            "summary": self.summary,
        }


def extract_json_object(raw: Any) -> Optional[str]:
    if not isinstance(raw, str):
        return None
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_OPEN.sub("", cleaned).strip()
        cleaned = _FENCE_CLOSE.sub("", cleaned).strip()
    match = _OBJECT.search(cleaned)
    return match.group(0) if match else None


def parse_analysis(raw: Any) -> Optional[StatAnalysis]:
    blob = extract_json_object(raw)
    if blob is None:
        return None
    try:
        data = json.loads(blob)
    except (ValueError, RecursionError):
        return None
    if not isinstance(data, dict):
        return None
    try:
        return StatAnalysis.model_validate(data)
    except ValidationError:
        return None


def _coerce(value: Any) -> float:
    # bools are not numbers here
    if isinstance(value, bool):
        return STAT_DEFAULT
    if not isinstance(value, (int, float, str)):
        return STAT_DEFAULT
    try:
        v = float(value.strip() if isinstance(value, str) else value)
    except (OverflowError, ValueError):
        # ints wider than a double, non-numeric strings
        return STAT_DEFAULT
    if not math.isfinite(v):
        return STAT_DEFAULT
    return max(0.0, min(float(STAT_TOTAL), v))


def distribute(values: List[float], total: int = STAT_TOTAL) -> List[int]:
    """Largest-remainder rescale of non-negative values to integers summing to total."""
    s = sum(values)
    if s <= 0:
        base = total // len(values)
        out = [base] * len(values)
        for i in range(total - base * len(values)):
            out[i] += 1
        return out

    scaled = [v * total / s for v in values]
    floors = [int(math.floor(x)) for x in scaled]
    remaining = max(0, total - sum(floors))
    order = sorted(range(len(values)), key=lambda i: (-(scaled[i] - floors[i]), i))
    for i in order[:remaining]:
        floors[i] += 1
    return floors


def normalize_summary(summary: Any, fallback_text: Any) -> str:
    text = clean_text(summary) if isinstance(summary, str) else ""
    if not text:
        text = clean_text(fallback_text)
    return text[:SUMMARY_MAX_LENGTH]


def normalize_stats(analysis: Optional[StatAnalysis], fallback_text: Any = "") -> NormalizedStats:
    """Never raises: sits between an untrusted generator and a strict invariant."""
    if analysis is None:
        analysis = StatAnalysis()
    values = [_coerce(getattr(analysis, k)) for k in STAT_KEYS]
    ints = distribute(values)
    return NormalizedStats(*ints, summary=normalize_summary(analysis.summary, fallback_text))
