"""Human-friendly labels for log lines."""

from __future__ import annotations

from typing import Optional

import discord

__all__ = ["human_reason", "user_label"]


def _clean_name(name: Optional[str], default: str) -> str:
    if not name:
        return default
    text = str(name).strip()
    return text or default


def user_label(guild: Optional[discord.Guild], uid: Optional[int]) -> str:
    """Return ``display name (id)`` for a guild member, or just the id."""

    if uid is None:
        return "unknown"
    getter = getattr(guild, "get_member", None) if guild is not None else None
    member = getter(uid) if callable(getter) else None
    if member is None:
        return str(uid)
    display = _clean_name(getattr(member, "display_name", None), "unknown")
    return f"{display} ({uid})"


_HTTP_ERROR_CODES = {
    10008: "Unknown Message",
    10015: "Unknown Webhook",
    30007: "Maximum Webhooks Reached",
    50001: "Missing Access",
    50007: "Cannot Send Messages to This User",
    50013: "Missing Permissions",
    50035: "Invalid Form Body",
}


def human_reason(exc_or_msg: object) -> str:
    """Normalize Discord HTTP errors to human-friendly text."""

    if exc_or_msg is None:
        return "-"
    if isinstance(exc_or_msg, str):
        text = " ".join(exc_or_msg.split())
        return text or "-"
    if isinstance(exc_or_msg, discord.HTTPException):
        status = getattr(exc_or_msg, "status", None)
        code = getattr(exc_or_msg, "code", None)
        base = _HTTP_ERROR_CODES.get(code, exc_or_msg.__class__.__name__)
        suffix = ""
        if status or code:
            suffix = f" ({status or '?'}" + (f"/{code}" if code else "") + ")"
        detail = " ".join(str(getattr(exc_or_msg, "text", "")).split())
        if detail:
            return f"{base}{suffix}: {detail}"
        return f"{base}{suffix}".strip()
    if isinstance(exc_or_msg, BaseException):
        cause = exc_or_msg.__cause__
        if isinstance(cause, discord.HTTPException):
            return human_reason(cause)
        text = " ".join(str(exc_or_msg).split())
        label = exc_or_msg.__class__.__name__
        return f"{label}: {text}" if text else label
    return "-"
