"""Shared runtime state for the CFC relay: active round, records and webhook cache."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from .store import SubmissionStore
from .trigger import NO_DESTINATION

__all__ = ["CFCState", "SingleFlight"]

log = logging.getLogger("simdem.cfc.state")

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Memoize the result of one async resolve-or-create call.

    Concurrent callers that arrive before the first result is known wait on the
    same lock and receive the value produced by whichever call ran first. A
    failed resolution leaves the slot empty so a later caller can try again.
    """

    def __init__(self) -> None:
        self._value: Optional[T] = None
        self._lock = asyncio.Lock()

    @property
    def value(self) -> Optional[T]:
        return self._value

    def reset(self) -> None:
        self._value = None

    async def get(self, factory: Callable[[], Awaitable[T]]) -> T:
        if self._value is not None:
            return self._value
        async with self._lock:
            if self._value is None:
                self._value = await factory()
            return self._value


class CFCState:
    """Process-wide CFC state owned by the relay cog and injected into the flow.

    Writes are plain attribute updates with no awaits in between, so a reader
    on the event loop never sees a half-applied change.
    """

    def __init__(
        self,
        *,
        webhook_url: str | None = None,
        on_webhook_url: Callable[[str], None] | None = None,
    ) -> None:
        self._destination_id = NO_DESTINATION
        self._webhook_url = (webhook_url or "").strip() or None
        self._on_webhook_url = on_webhook_url
        self.store = SubmissionStore()
        self.endpoint: SingleFlight = SingleFlight()

    @property
    def destination_id(self) -> int:
        return self._destination_id

    @property
    def is_collecting(self) -> bool:
        return self._destination_id != NO_DESTINATION

    def set_destination(self, thread_id: int) -> None:
        self._destination_id = int(thread_id)
        log.info("cfc destination set", extra={"thread_id": self._destination_id})

    def clear_destination(self) -> None:
        self._destination_id = NO_DESTINATION
        log.info("cfc destination cleared")

    @property
    def webhook_url(self) -> str | None:
        return self._webhook_url

    def remember_webhook_url(self, url: str) -> None:
        """Cache ``url`` for this process and hand it to the durable config writer."""

        self._webhook_url = url
        if self._on_webhook_url is None:
            return
        try:
            self._on_webhook_url(url)
        except OSError:
            log.warning("failed to persist cfc webhook url", exc_info=True)
