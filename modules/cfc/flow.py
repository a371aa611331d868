"""Button press to published CFC: the end-to-end submission flow."""

from __future__ import annotations

import logging
from typing import List, Optional

import discord

from .collector import FormCollector
from .errors import CFCError, TransportError
from .publisher import Publisher
from .state import CFCState
from .submission import Submitter
from .trigger import should_collect

__all__ = ["CFCFlow", "EMPTY_FORM_NOTICE"]

log = logging.getLogger("simdem.cfc.flow")

EMPTY_FORM_NOTICE = "The form you submitted was empty. Resubmit for your cfc to be registered"


class CFCFlow:
    """Wire the trigger check, form collection and publishing together."""

    def __init__(
        self,
        state: CFCState,
        collector: FormCollector,
        publisher: Publisher,
    ) -> None:
        self.state = state
        self.collector = collector
        self.publisher = publisher

    def accepts(self, interaction: discord.Interaction) -> bool:
        return should_collect(interaction, self.state.destination_id)

    async def handle_interaction(self, interaction: discord.Interaction) -> Optional[int]:
        """Run one CFC submission for ``interaction``.

        Returns the published message id, or ``None`` when the interaction was
        ignored or the member left the form unanswered. Transport and parse
        failures propagate to the caller; once the modal submit has been
        acknowledged the error carries that interaction for the failure notice.
        """

        if not self.accepts(interaction):
            return None

        submitter = Submitter.from_user(interaction.user)
        destination_id = self.state.destination_id
        prior = self.state.store.get(submitter.id, destination_id)
        acknowledged: List[discord.Interaction] = []

        try:
            submission = await self.collector.collect(
                interaction,
                submitter.id,
                prior.encoded_payload if prior is not None else None,
                on_acknowledged=acknowledged.append,
            )
            if submission is None:
                await self.notify_empty(interaction.user)
                return None

            return await self.publisher.publish(
                submitter, submission, prior, destination_id
            )
        except CFCError as exc:
            if acknowledged and exc.interaction is None:
                exc.interaction = acknowledged[-1]
            raise

    async def notify_empty(self, user: discord.abc.User) -> None:
        """DM ``user`` that their form was empty or went unanswered."""

        embed = discord.Embed(description=EMPTY_FORM_NOTICE)
        try:
            await user.send(embed=embed)
        except discord.HTTPException as exc:
            raise TransportError(f"failed to send empty-form notice: {exc}") from exc
        log.info("cfc empty-form notice sent", extra={"user_id": getattr(user, "id", None)})
