"""Predicate deciding whether a button press should open the CFC form."""

from __future__ import annotations

import re

import discord

__all__ = ["NO_DESTINATION", "is_cfc_trigger", "should_collect"]

# Destination id meaning "no call for candidates is running".
NO_DESTINATION = 1

_U32_MAX = 0xFFFFFFFF
_DIGITS_RE = re.compile(r"[0-9]+")


def is_cfc_trigger(custom_id: object) -> bool:
    """Return ``True`` when ``custom_id`` is the term number of an announcement button."""

    if not isinstance(custom_id, str):
        return False
    if not _DIGITS_RE.fullmatch(custom_id):
        return False
    return int(custom_id) <= _U32_MAX


def should_collect(interaction: discord.Interaction, destination_id: int) -> bool:
    """Return ``True`` for component interactions tied to an active CFC round."""

    if getattr(interaction, "type", None) != discord.InteractionType.component:
        return False
    if destination_id == NO_DESTINATION:
        return False
    data = getattr(interaction, "data", None) or {}
    return is_cfc_trigger(data.get("custom_id"))
