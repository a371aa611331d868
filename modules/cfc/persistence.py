"""JSON-backed persistence for the relay webhook URL."""

from __future__ import annotations

import datetime as dt
import json
import logging
from pathlib import Path
from typing import Mapping

from shared.config import get_cfc_state_path

__all__ = ["WebhookStateStore"]

log = logging.getLogger("simdem.cfc.persistence")


class WebhookStateStore:
    """Simple JSON file that survives restarts and remembers the relay webhook."""

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path or get_cfc_state_path())
        self._data = self._load()

    def _load(self) -> dict:
        if not self.path.exists():
            return {"webhook_url": None, "updated_at": None}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, ValueError):
            log.exception("Failed to load cfc state file; starting without a webhook.")
            return {"webhook_url": None, "updated_at": None}
        return self._normalize(payload)

    @staticmethod
    def _normalize(payload: object) -> dict:
        if not isinstance(payload, Mapping):
            return {"webhook_url": None, "updated_at": None}
        url = str(payload.get("webhook_url") or "").strip() or None
        return {"webhook_url": url, "updated_at": payload.get("updated_at")}

    @property
    def webhook_url(self) -> str | None:
        return self._data.get("webhook_url")

    def save_webhook_url(self, url: str) -> None:
        self._data["webhook_url"] = url
        self._data["updated_at"] = dt.datetime.now(dt.timezone.utc).isoformat(
            timespec="seconds"
        )
        self.save()

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as handle:
            json.dump(self._data, handle, indent=2, sort_keys=True)
            handle.write("\n")
