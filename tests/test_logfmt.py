from types import SimpleNamespace
from unittest.mock import MagicMock

import discord
import pytest

from modules.cfc.errors import TransportError
from shared.logfmt import human_reason, user_label
from shared.utils.humanize import ordinal


@pytest.mark.parametrize(
    "value, expected",
    [
        (1, "1st"),
        (2, "2nd"),
        (3, "3rd"),
        (4, "4th"),
        (11, "11th"),
        (12, "12th"),
        (13, "13th"),
        (21, "21st"),
        (102, "102nd"),
        (111, "111th"),
        (0, "0th"),
    ],
)
def test_ordinal(value, expected):
    assert ordinal(value) == expected


def test_user_label_prefers_member_display_name():
    members = {42: SimpleNamespace(display_name="Alice")}
    guild = SimpleNamespace(get_member=members.get)
    assert user_label(guild, 42) == "Alice (42)"
    assert user_label(guild, 43) == "43"
    assert user_label(None, 42) == "42"
    assert user_label(guild, None) == "unknown"


def test_human_reason_unwraps_http_cause():
    forbidden = discord.Forbidden(
        MagicMock(status=403, reason="Forbidden"),
        {"code": 50013, "message": "Missing Permissions"},
    )
    wrapped = TransportError("webhook send failed")
    wrapped.__cause__ = forbidden

    assert human_reason(forbidden).startswith("Missing Permissions (403/50013)")
    assert human_reason(wrapped) == human_reason(forbidden)
    assert human_reason(TransportError("dm closed")) == "TransportError: dm closed"
    assert human_reason("  spaced   out ") == "spaced out"
    assert human_reason(None) == "-"
