from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from duelroom.constants import SAFE_CONTENT_RULES, StyleOption
from duelroom.core import config

from .base import GeneratedImage, ProviderError

logger = logging.getLogger(__name__)

_SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
]

_IDENTITY_ONLY = (
    "The first reference image is Character A and the second reference image is Character B. "
    "Use the reference images only for character identity (colors, clothing, species, silhouettes) "
    "and ignore their original pose or facial expression; choose fresh poses and expressions that fit the scene."
)


def _extract_candidate_text(payload: Dict[str, Any]) -> str:
    candidates = payload.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(p.get("text", "") for p in parts if isinstance(p.get("text"), str))


def _extract_candidate_image(payload: Dict[str, Any]) -> Optional[GeneratedImage]:
    candidates = payload.get("candidates") or []
    if not candidates:
        return None
    parts = (candidates[0].get("content") or {}).get("parts") or []
    for part in parts:
        inline = part.get("inlineData") or part.get("inline_data")
        if inline and inline.get("data"):
            mime = inline.get("mimeType") or inline.get("mime_type") or "image/png"
            try:
                return GeneratedImage(data=base64.b64decode(inline["data"]), mime_type=mime)
            except (ValueError, TypeError) as e:
                raise ProviderError(f"Gemini returned undecodable image data: {e}") from e
    return None


class GeminiProvider:
    """Gemini generateContent REST API (text + image modalities)."""
    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else config.get_gemini_api_key()
        self.base_url = base_url or config.get_gemini_base_url()
        self.timeout = timeout or config.get_gemini_timeout_seconds()
        self.session = session or requests.Session()

    # --- transport ---
    def _call(self, model: str, body: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise ProviderError("GEMINI_API_KEY is not set")

        url = f"{self.base_url}/models/{model}:generateContent"
        try:
            resp = self.session.post(
                url,
                params={"key": self.api_key},
                json={"safetySettings": _SAFETY_SETTINGS, **body},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.exception("Gemini request failed")
            raise ProviderError(f"Gemini request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not resp.ok:
            message = ((data or {}).get("error") or {}).get("message") or f"Gemini API error (HTTP {resp.status_code})"
            raise ProviderError(message)
        return data

    @staticmethod
    def _parts(prompt: str, images: Sequence[GeneratedImage]) -> List[Dict[str, Any]]:
        parts: List[Dict[str, Any]] = [{"text": prompt}]
        for img in images:
            parts.append({"inlineData": {"mimeType": img.mime_type, "data": base64.b64encode(img.data).decode("ascii")}})
        return parts

    def _generate_text(self, model: str, prompt: str, images: Sequence[GeneratedImage] = ()) -> str:
        data = self._call(
            model,
            {
                "contents": [{"role": "user", "parts": self._parts(prompt, images)}],
                "generationConfig": {"temperature": 0.8},
            },
        )
        return _extract_candidate_text(data).strip()

    def _generate_image(self, model: str, prompt: str, images: Sequence[GeneratedImage] = ()) -> GeneratedImage:
        data = self._call(
            model,
            {
                "contents": [{"role": "user", "parts": self._parts(prompt, images)}],
                "generationConfig": {"temperature": 0.7, "responseModalities": ["IMAGE", "TEXT"]},
            },
        )
        image = _extract_candidate_image(data)
        if image is None:
            candidates = data.get("candidates") or [{}]
            finish = candidates[0].get("finishReason") or candidates[0].get("finish_reason")
            text = _extract_candidate_text(data)
            detail = ["Gemini image response missing image data"]
            if finish:
                detail.append(f"finishReason={finish}")
            if text:
                detail.append(f"text={text[:200]}")
            raise ProviderError(" | ".join(detail))
        return image

    # --- GeneratorProvider ---
    def render_portrait(self, *, description: str, style: StyleOption) -> GeneratedImage:
        prompt = (
            "Create a single character portrait for a fantasy battle game. "
            f"{SAFE_CONTENT_RULES} Style keywords: {style.prompt}. "
            f"Character description: {description}. "
            "Do not render any text or letters. Keep the background clean."
        )
        return self._generate_image(config.get_gemini_image_model(), prompt)

    def analyze_portrait(self, *, image: GeneratedImage, description: str) -> str:
        prompt = (
            "You are a game designer rating a fantasy battle character from its portrait. "
            "Output strict JSON only with integer keys attack, defense, magic, mana, speed (each 0-100, "
            "together summing to 100) and a key summary: one short Japanese sentence of at most 60 characters "
            f"describing the character. Player's description for reference: {description}. {SAFE_CONTENT_RULES}"
        )
        return self._generate_text(config.get_gemini_text_model(), prompt, [image])

    def judge_battle(
        self, *, image_a: GeneratedImage, image_b: GeneratedImage, story_min: int, story_max: int
    ) -> str:
        prompt = (
            "You are an impartial battle judge. Use only the visuals from the two images. "
            "Do not invent names or use any text hints. "
            'Output strict JSON in Japanese with keys: {"winner":"A"|"B","story":"..."}. '
            f"The story must be {story_min}-{story_max} Japanese characters, use placeholders {{A}} and {{B}} "
            f"for names, and must be safe for elementary school kids. {SAFE_CONTENT_RULES}"
        )
        return self._generate_text(config.get_gemini_text_model(), prompt, [image_a, image_b])

    def render_battle_scene(self, *, image_a: GeneratedImage, image_b: GeneratedImage) -> GeneratedImage:
        prompt = (
            "Create a dynamic, close and evenly matched battle scene featuring the two provided characters. "
            f"{_IDENTITY_ONLY} Neither character should look clearly winning yet; make it a tight clash "
            f"with both pushing back. Keep it kid-safe. {SAFE_CONTENT_RULES} Both characters must be visible."
        )
        return self._generate_image(config.get_gemini_battle_image_model(), prompt, [image_a, image_b])

    def render_victory_scene(
        self, *, image_a: GeneratedImage, image_b: GeneratedImage, winner_slot: int
    ) -> GeneratedImage:
        winner, loser = ("A", "B") if winner_slot == 1 else ("B", "A")
        prompt = (
            "Create a decisive victory scene featuring the two provided characters. "
            f"{_IDENTITY_ONLY} Character {winner} must be the winner, centered and triumphant. "
            f"Character {loser} must look clearly defeated (staggered, disarmed, or on the ground) while "
            f"remaining kid-safe. {SAFE_CONTENT_RULES} Both characters must be visible."
        )
        return self._generate_image(config.get_gemini_battle_image_model(), prompt, [image_a, image_b])
