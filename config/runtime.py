from __future__ import annotations

# config/runtime.py
import os


def get_port(default: int = 10000) -> int:
    """
    Returns the port for the aiohttp health server.
    Hosting platforms provide $PORT; locally we fall back to 10000.
    """
    try:
        return int(os.getenv("PORT", str(default)))
    except ValueError:
        return default


def get_env_name(default: str = "dev") -> str:
    return os.getenv("ENV_NAME", default)


def get_bot_name(default: str = "SimDemocracy-CFC") -> str:
    return os.getenv("BOT_NAME", default)


def get_log_level(default: str = "INFO") -> str:
    raw = (os.getenv("LOG_LEVEL") or "").strip().upper()
    return raw or default
