"""Runtime configuration helpers for the CFC relay bot."""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional

from config import runtime as _runtime
from shared.redaction import mask_secret, sanitize_text

__all__ = [
    "reload_config",
    "get_env_name",
    "get_bot_name",
    "get_discord_token",
    "get_cfc_webhook_url",
    "get_cfc_webhook_name",
    "get_cfc_state_path",
    "get_cfc_form_timeout_sec",
]

log = logging.getLogger("simdem.config")

# ===== Config Schema (authoritative) =====
_REQUIRED_ENV = ("DISCORD_TOKEN",)

DEFAULT_WEBHOOK_NAME = "SimDemocracy Bot"
DEFAULT_STATE_PATH = "data/cfc_state.json"
DEFAULT_FORM_TIMEOUT_SEC = 3600


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if value is None or str(value).strip() == "":
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


for _name in _REQUIRED_ENV:
    _require_env(_name)

_MISSING_VALUE = "-"

_CONFIG: Dict[str, object] = {}

_SECRET_KEYS = {
    "DISCORD_TOKEN",
    "CFC_WEBHOOK_URL",
}


def _redact_value(key: str, value: object) -> str:
    """Best-effort redaction for import-time logging."""

    key_upper = str(key).upper()

    if key_upper in _SECRET_KEYS or "TOKEN" in key_upper or "WEBHOOK_URL" in key_upper:
        if value in (None, "", [], (), {}):
            return _MISSING_VALUE
        text = str(value)
        stripped = text.strip()
        if not stripped:
            return _MISSING_VALUE
        masked = sanitize_text(text)
        if isinstance(masked, str) and masked != text:
            return masked
        return mask_secret(stripped)

    if value in (None, "", [], (), {}):
        return _MISSING_VALUE

    redacted = sanitize_text(value)
    return str(redacted)


def _int_env(
    key: str,
    default: int,
    *,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    """Parse an optional integer environment variable defensively."""

    raw = os.getenv(key)
    if raw is None:
        return default

    text = str(raw).strip()
    if not text:
        return default

    try:
        value = int(text)
    except ValueError:
        logging.warning("config: %s='%s' invalid; using default %s", key, text, default)
        return default

    if min_value is not None and value < min_value:
        logging.warning("config: %s=%s < min %s; clamping", key, value, min_value)
        value = min_value

    if max_value is not None and value > max_value:
        logging.warning("config: %s=%s > max %s; clamping", key, value, max_value)
        value = max_value

    return value


def _log_snapshot(snapshot: Dict[str, object]) -> None:
    redacted = {key: _redact_value(key, value) for key, value in snapshot.items()}
    log.info("config loaded", extra={"config": redacted})


def _load_config() -> Dict[str, object]:
    config: Dict[str, object] = {
        "PORT": _runtime.get_port(),
        "BOT_NAME": _runtime.get_bot_name(),
        "ENV_NAME": _runtime.get_env_name(),
        "BOT_VERSION": os.getenv("BOT_VERSION", "dev"),
        "LOG_LEVEL": _runtime.get_log_level(),
        "DISCORD_TOKEN": os.getenv("DISCORD_TOKEN", ""),
        "CFC_WEBHOOK_URL": (os.getenv("CFC_WEBHOOK_URL") or "").strip(),
        "CFC_WEBHOOK_NAME": (os.getenv("CFC_WEBHOOK_NAME") or "").strip()
        or DEFAULT_WEBHOOK_NAME,
        "CFC_STATE_PATH": (os.getenv("CFC_STATE_PATH") or "").strip() or DEFAULT_STATE_PATH,
        "CFC_FORM_TIMEOUT_SEC": _int_env(
            "CFC_FORM_TIMEOUT_SEC", DEFAULT_FORM_TIMEOUT_SEC, min_value=1
        ),
    }
    return config


def reload_config() -> Dict[str, object]:
    """Reload configuration from environment and return a snapshot."""

    for _name in _REQUIRED_ENV:
        _require_env(_name)

    snapshot = _load_config()

    global _CONFIG
    _CONFIG = snapshot
    _log_snapshot(snapshot)
    return dict(_CONFIG)


reload_config()


def get_env_name(default: str = "dev") -> str:
    return str(_CONFIG.get("ENV_NAME") or default)


def get_bot_name(default: str = "SimDemocracy-CFC") -> str:
    return str(_CONFIG.get("BOT_NAME") or default)


def get_discord_token() -> str:
    token = _CONFIG.get("DISCORD_TOKEN", "")
    return str(token)


def get_cfc_webhook_url() -> Optional[str]:
    """Initial relay webhook URL, used until one is persisted by the bot."""

    value = str(_CONFIG.get("CFC_WEBHOOK_URL") or "").strip()
    return value or None


def get_cfc_webhook_name() -> str:
    return str(_CONFIG.get("CFC_WEBHOOK_NAME") or DEFAULT_WEBHOOK_NAME)


def get_cfc_state_path() -> str:
    return str(_CONFIG.get("CFC_STATE_PATH") or DEFAULT_STATE_PATH)


def get_cfc_form_timeout_sec() -> int:
    value = _CONFIG.get("CFC_FORM_TIMEOUT_SEC", DEFAULT_FORM_TIMEOUT_SEC)
    try:
        return max(1, int(value))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return DEFAULT_FORM_TIMEOUT_SEC

