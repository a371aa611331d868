"""In-memory store for the last CFC submission of each member."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

__all__ = ["SubmissionRecord", "SubmissionStore"]


@dataclass
class SubmissionRecord:
    """Encoded payload and webhook message id of a member's latest CFC.

    ``destination_id`` is the thread of the round the message was posted in;
    a record only counts as a prior submission within that round.
    """

    encoded_payload: bytes
    published_message_id: int
    destination_id: int


class SubmissionStore:
    """Process-lifetime map of submitter id to their :class:`SubmissionRecord`."""

    def __init__(self) -> None:
        self._records: Dict[int, SubmissionRecord] = {}

    def get(
        self, submitter_id: int, destination_id: Optional[int] = None
    ) -> SubmissionRecord | None:
        """Return the record for ``submitter_id``.

        With ``destination_id`` a record left over from another round is
        treated as absent.
        """

        record = self._records.get(int(submitter_id))
        if record is None:
            return None
        if destination_id is not None and record.destination_id != int(destination_id):
            return None
        return record

    def put(
        self,
        submitter_id: int,
        encoded_payload: bytes,
        published_message_id: int,
        destination_id: int,
    ) -> SubmissionRecord:
        """Insert or overwrite the record for ``submitter_id``."""

        key = int(submitter_id)
        record = self._records.get(key)
        if record is None:
            record = SubmissionRecord(
                bytes(encoded_payload), int(published_message_id), int(destination_id)
            )
            self._records[key] = record
        else:
            record.encoded_payload = bytes(encoded_payload)
            record.published_message_id = int(published_message_id)
            record.destination_id = int(destination_id)
        return record

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, submitter_id: object) -> bool:
        try:
            return int(submitter_id) in self._records  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return False
