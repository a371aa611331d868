"""CFC submission payload, its text rendering, and the stored binary encoding."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .errors import FormParseError

__all__ = [
    "FIELD_LABELS",
    "NO_HANDLE_FALLBACK",
    "Submission",
    "Submitter",
    "decode_submission",
    "encode_submission",
    "parse_fields",
]

NO_HANDLE_FALLBACK = "No Reddit Account"

# Modal order: handle, party, statement.
FIELD_LABELS: Tuple[str, str, str] = (
    "Reddit Username (with u/)",
    "Political Party/Coalition",
    "CFC Statement",
)

_MAGIC = b"CFC1"
_LEN = struct.Struct(">I")
_FLAG = struct.Struct(">B")


@dataclass(frozen=True)
class Submission:
    """A captured CFC form: optional Reddit handle, party and statement."""

    handle: Optional[str]
    party: str
    statement: str

    def is_empty(self) -> bool:
        return not (self.handle or self.party or self.statement)

    def render(self) -> str:
        handle = self.handle or NO_HANDLE_FALLBACK
        return f"/{handle} | {self.party}\n\n{self.statement}"

    def __str__(self) -> str:
        return self.render()


def parse_fields(fields: Sequence[Tuple[str, str]]) -> Submission:
    """Map the ordered ``(label, value)`` pairs of a modal into a submission.

    Fields are matched by label first and fall back to position. Exactly three
    fields are expected; anything else raises :class:`FormParseError`.
    """

    if len(fields) != len(FIELD_LABELS):
        raise FormParseError(
            f"expected {len(FIELD_LABELS)} form fields, got {len(fields)}"
        )
    by_label = {}
    for label, value in fields:
        if value is not None and not isinstance(value, str):
            raise FormParseError(f"field {label!r} is not text")
        by_label[str(label)] = value
    values = []
    for index, label in enumerate(FIELD_LABELS):
        if label in by_label:
            values.append(by_label[label])
        else:
            values.append(fields[index][1])
    handle, party, statement = values
    handle = (handle or "").strip() or None
    return Submission(
        handle=handle,
        party=(party or "").strip(),
        statement=(statement or "").strip(),
    )


def _pack_text(value: str) -> bytes:
    data = value.encode("utf-8")
    return _LEN.pack(len(data)) + data


def encode_submission(submission: Submission) -> bytes:
    """Return the compact binary form stored per submitter."""

    parts = [_MAGIC]
    if submission.handle is None:
        parts.append(_FLAG.pack(0))
    else:
        parts.append(_FLAG.pack(1))
        parts.append(_pack_text(submission.handle))
    parts.append(_pack_text(submission.party))
    parts.append(_pack_text(submission.statement))
    return b"".join(parts)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._offset = 0

    def take(self, size: int) -> bytes:
        end = self._offset + size
        if end > len(self._data):
            raise FormParseError("stored CFC payload is truncated")
        chunk = self._data[self._offset:end]
        self._offset = end
        return chunk

    def text(self) -> str:
        (length,) = _LEN.unpack(self.take(_LEN.size))
        try:
            return self.take(length).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FormParseError("stored CFC payload is not valid UTF-8") from exc

    def done(self) -> bool:
        return self._offset == len(self._data)


def decode_submission(data: bytes) -> Submission:
    """Decode bytes produced by :func:`encode_submission`."""

    reader = _Reader(bytes(data))
    if reader.take(len(_MAGIC)) != _MAGIC:
        raise FormParseError("unknown CFC payload format")
    (flag,) = _FLAG.unpack(reader.take(_FLAG.size))
    if flag not in (0, 1):
        raise FormParseError(f"invalid handle flag {flag}")
    handle = reader.text() if flag == 1 else None
    party = reader.text()
    statement = reader.text()
    if not reader.done():
        raise FormParseError("trailing bytes after CFC payload")
    return Submission(handle=handle, party=party, statement=statement)


@dataclass(frozen=True)
class Submitter:
    """The member behind a CFC interaction, as used for webhook attribution."""

    id: int
    display_name: str
    avatar_url: Optional[str] = None

    @classmethod
    def from_user(cls, user: object) -> "Submitter":
        avatar = getattr(user, "display_avatar", None)
        avatar_url = getattr(avatar, "url", None) if avatar is not None else None
        name = getattr(user, "display_name", None) or getattr(user, "name", None)
        return cls(
            id=int(getattr(user, "id")),
            display_name=str(name or getattr(user, "id")),
            avatar_url=str(avatar_url) if avatar_url else None,
        )

    @property
    def mention(self) -> str:
        return f"<@{self.id}>"
