"""
Environment-driven settings.

Every value is read at call time so tests can monkeypatch the environment
without reloading modules.
"""
from __future__ import annotations

import os


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() not in ("0", "false", "no", "off", "")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_app_version() -> str:
    return os.getenv("APP_VERSION", "0.1.0")


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO")


def auto_create_tables() -> bool:
    return _env_bool("AUTO_CREATE_TABLES", True)


def get_password_salt() -> str:
    return os.getenv("ROOM_PASSWORD_SALT", "dev-salt")


def get_provider_name() -> str:
    return os.getenv("GENERATOR_PROVIDER", "mock").strip().lower() or "mock"


def get_gemini_api_key() -> str:
    return os.getenv("GEMINI_API_KEY", "")


def get_gemini_base_url() -> str:
    return os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta").rstrip("/")


def get_gemini_text_model() -> str:
    return os.getenv("GEMINI_TEXT_MODEL", "gemini-2.5-flash")


def get_gemini_image_model() -> str:
    return os.getenv("GEMINI_IMAGE_MODEL", "gemini-2.5-flash-image")


def get_gemini_battle_image_model() -> str:
    return os.getenv("GEMINI_BATTLE_IMAGE_MODEL", "gemini-2.5-flash-image")


def get_gemini_timeout_seconds() -> int:
    return _env_int("GEMINI_TIMEOUT_SECONDS", 60)
