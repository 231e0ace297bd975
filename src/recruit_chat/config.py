"""Environment configuration."""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

import structlog

logger = structlog.get_logger()


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("invalid_setting", name=name, value=raw, default=default)
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("invalid_setting", name=name, value=raw, default=default)
        return default


@dataclass(frozen=True)
class Settings:
    rate_limit: int
    rate_window: int
    typing_delay: float
    idle_timeout: float
    cors_origins: Tuple[str, ...]


def load_settings() -> Settings:
    origins = _get_env("RECRUIT_CHAT_CORS_ORIGINS", "*")
    return Settings(
        rate_limit=_get_env_int("RECRUIT_CHAT_RATE_LIMIT", 100),
        rate_window=_get_env_int("RECRUIT_CHAT_RATE_WINDOW", 60),
        typing_delay=_get_env_float("RECRUIT_CHAT_TYPING_DELAY", 0.0),
        idle_timeout=_get_env_float("RECRUIT_CHAT_IDLE_TIMEOUT", 3600.0),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()) or ("*",),
    )
