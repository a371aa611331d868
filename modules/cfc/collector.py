"""Open the CFC modal and wait for the same member to submit it."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

import discord

from shared.config import get_cfc_form_timeout_sec

from .errors import FormSuperseded, TransportError
from .submission import FIELD_LABELS, Submission, decode_submission, parse_fields

__all__ = ["CFCModal", "FormCollector", "FormSubmission", "correlation_id"]

log = logging.getLogger("simdem.cfc.collector")

MODAL_TITLE = "CFC Application"


def correlation_id(submitter_id: int) -> str:
    """Return the modal custom id used to match a member's submission."""

    return f"{int(submitter_id)}_cfc"


@dataclass
class FormSubmission:
    """A submitted modal: its custom id, ordered fields and the submit interaction."""

    correlation_id: str
    fields: List[Tuple[str, str]]
    interaction: discord.Interaction


class CFCModal(discord.ui.Modal):
    """The three-field CFC application form."""

    def __init__(
        self,
        *,
        custom_id: str,
        defaults: Submission | None = None,
        timeout: float | None = None,
        on_submit: Callable[[FormSubmission], object] | None = None,
    ) -> None:
        super().__init__(title=MODAL_TITLE, custom_id=custom_id, timeout=timeout)
        self.submit_callback = on_submit
        handle_label, party_label, statement_label = FIELD_LABELS
        self.handle = discord.ui.TextInput(
            label=handle_label,
            placeholder="u/username",
            default=(defaults.handle or None) if defaults else None,
            required=False,
            max_length=64,
        )
        self.party = discord.ui.TextInput(
            label=party_label,
            default=defaults.party if defaults else None,
            required=True,
            max_length=100,
        )
        self.statement = discord.ui.TextInput(
            label=statement_label,
            style=discord.TextStyle.long,
            default=defaults.statement if defaults else None,
            required=True,
            max_length=1700,
        )
        self.add_item(self.handle)
        self.add_item(self.party)
        self.add_item(self.statement)

    def field_values(self) -> List[Tuple[str, str]]:
        return [
            (child.label, child.value)
            for child in self.children
            if isinstance(child, discord.ui.TextInput)
        ]

    async def on_submit(self, interaction: discord.Interaction) -> None:
        if self.submit_callback is None:
            return
        result = self.submit_callback(
            FormSubmission(
                correlation_id=self.custom_id,
                fields=self.field_values(),
                interaction=interaction,
            )
        )
        if asyncio.iscoroutine(result):
            await result


class FormCollector:
    """Registration table of outstanding CFC modals keyed by correlation id.

    ``collect`` registers a future for the member's correlation id, shows the
    modal and waits. ``deliver`` resolves the future when the matching modal is
    submitted. Only one registration exists per correlation id; a newer
    ``collect`` for the same member fails the older wait with
    :class:`FormSuperseded`.
    """

    def __init__(self, *, timeout: float | None = None) -> None:
        self.timeout = float(timeout if timeout is not None else get_cfc_form_timeout_sec())
        self._pending: Dict[str, asyncio.Future[FormSubmission]] = {}

    def pending_ids(self) -> List[str]:
        return list(self._pending)

    def is_pending(self, correlation: str) -> bool:
        future = self._pending.get(correlation)
        return future is not None and not future.done()

    def deliver(self, submission: FormSubmission) -> bool:
        """Hand ``submission`` to the waiting collector; ``False`` when nobody waits."""

        future = self._pending.get(submission.correlation_id)
        if future is None or future.done():
            log.info(
                "cfc form submission without a waiting collector",
                extra={"correlation_id": submission.correlation_id},
            )
            return False
        future.set_result(submission)
        return True

    def build_modal(
        self, correlation: str, defaults: Submission | None, timeout: float
    ) -> CFCModal:
        return CFCModal(
            custom_id=correlation,
            defaults=defaults,
            timeout=timeout,
            on_submit=self.deliver,
        )

    def _register(self, correlation: str) -> asyncio.Future[FormSubmission]:
        previous = self._pending.get(correlation)
        if previous is not None and not previous.done():
            previous.set_exception(FormSuperseded(correlation))
            log.info("cfc collector superseded", extra={"correlation_id": correlation})
        future: asyncio.Future[FormSubmission] = asyncio.get_running_loop().create_future()
        self._pending[correlation] = future
        return future

    def _release(self, correlation: str, future: asyncio.Future[FormSubmission]) -> None:
        if self._pending.get(correlation) is future:
            del self._pending[correlation]

    async def collect(
        self,
        interaction: discord.Interaction,
        submitter_id: int,
        prior_payload: Optional[bytes] = None,
        *,
        timeout: float | None = None,
        on_acknowledged: Callable[[discord.Interaction], None] | None = None,
    ) -> Submission | None:
        """Show the CFC modal to ``submitter_id`` and return what they submit.

        Returns ``None`` when the wait times out or the submitted form is empty.
        Raises :class:`TransportError` when Discord rejects the modal or the
        acknowledgement, :class:`FormParseError` when the fields cannot be read,
        and :class:`FormSuperseded` when the member opened a newer form.
        ``on_acknowledged`` receives the modal-submit interaction once it has
        been deferred, so later failures can be reported on it.
        """

        correlation = correlation_id(submitter_id)
        defaults = decode_submission(prior_payload) if prior_payload else None
        wait_s = float(timeout if timeout is not None else self.timeout)
        modal = self.build_modal(correlation, defaults, wait_s)

        future = self._register(correlation)
        try:
            try:
                await interaction.response.send_modal(modal)
            except (discord.HTTPException, discord.InteractionResponded) as exc:
                raise TransportError(f"failed to open cfc form: {exc}") from exc
            log.info(
                "cfc form opened",
                extra={"correlation_id": correlation, "prefilled": defaults is not None},
            )
            try:
                submitted = await asyncio.wait_for(future, timeout=wait_s)
            except asyncio.TimeoutError:
                log.info("cfc form timed out", extra={"correlation_id": correlation})
                return None
        finally:
            self._release(correlation, future)

        try:
            await submitted.interaction.response.defer()
        except (discord.HTTPException, discord.InteractionResponded) as exc:
            raise TransportError(f"failed to acknowledge cfc form: {exc}") from exc
        if on_acknowledged is not None:
            on_acknowledged(submitted.interaction)

        submission = parse_fields(submitted.fields)
        if submission.is_empty():
            log.info("cfc form submitted empty", extra={"correlation_id": correlation})
            return None
        return submission
