"""Post CFC submissions through the shared relay webhook."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, TypeVar

import discord

from shared.config import get_cfc_webhook_name
from shared.redaction import sanitize_text

from .errors import TransportError
from .state import CFCState
from .store import SubmissionRecord
from .submission import Submission, Submitter, encode_submission

__all__ = ["Publisher", "render_message"]

log = logging.getLogger("simdem.cfc.publisher")

T = TypeVar("T")


def render_message(submitter: Submitter, submission: Submission) -> str:
    """Return the webhook message body for ``submission``."""

    return f"{submitter.mention}\n{submission.render()}"


async def _call(action: str, awaitable: Awaitable[T]) -> T:
    try:
        return await awaitable
    except (discord.HTTPException, discord.ClientException) as exc:
        raise TransportError(f"{action} failed: {exc}") from exc


class Publisher:
    """Create or edit a member's CFC message and record the result."""

    def __init__(
        self,
        bot: discord.Client,
        state: CFCState,
        *,
        webhook_name: str | None = None,
    ) -> None:
        self.bot = bot
        self.state = state
        self.webhook_name = webhook_name or get_cfc_webhook_name()

    async def resolve_webhook(self, destination_id: int) -> discord.Webhook:
        """Return the relay webhook, creating it at most once per process."""

        return await self.state.endpoint.get(lambda: self._acquire_webhook(destination_id))

    async def _acquire_webhook(self, destination_id: int) -> discord.Webhook:
        url = self.state.webhook_url
        if url:
            try:
                webhook = discord.Webhook.from_url(url, client=self.bot)
            except ValueError as exc:
                raise TransportError("configured cfc webhook url is invalid") from exc
            log.info("cfc webhook loaded from config", extra={"webhook_id": webhook.id})
            return webhook

        parent = await self._parent_channel(destination_id)
        hooks = await _call("webhook lookup", parent.webhooks())
        webhook = next((hook for hook in hooks if hook.name == self.webhook_name), None)
        if webhook is None:
            webhook = await _call(
                "webhook create", parent.create_webhook(name=self.webhook_name)
            )
            log.info(
                "cfc webhook created",
                extra={"channel_id": getattr(parent, "id", None), "webhook_id": webhook.id},
            )
        else:
            log.info(
                "cfc webhook reused",
                extra={"channel_id": getattr(parent, "id", None), "webhook_id": webhook.id},
            )
        self.state.remember_webhook_url(webhook.url)
        return webhook

    async def _fetch_channel(self, channel_id: int) -> Any:
        channel = self.bot.get_channel(channel_id)
        if channel is None:
            channel = await _call("channel lookup", self.bot.fetch_channel(channel_id))
        return channel

    async def _parent_channel(self, destination_id: int) -> Any:
        channel = await self._fetch_channel(destination_id)
        parent_id = getattr(channel, "parent_id", None)
        if parent_id is None:
            if hasattr(channel, "create_webhook"):
                return channel
            raise TransportError(f"channel {destination_id} cannot host a webhook")
        parent = getattr(channel, "parent", None)
        if parent is None:
            parent = await self._fetch_channel(parent_id)
        return parent

    async def publish(
        self,
        submitter: Submitter,
        submission: Submission,
        prior: SubmissionRecord | None,
        destination_id: int,
    ) -> int:
        """Post or edit the CFC message for ``submitter`` and return its id."""

        webhook = await self.resolve_webhook(destination_id)
        content = render_message(submitter, submission)
        thread = discord.Object(id=destination_id)

        if prior is None or prior.destination_id != destination_id:
            kwargs: dict[str, Any] = {
                "content": content,
                "username": submitter.display_name,
                "thread": thread,
                "wait": True,
            }
            if submitter.avatar_url:
                kwargs["avatar_url"] = submitter.avatar_url
            message = await _call("webhook send", webhook.send(**kwargs))
            message_id = int(message.id)
            log.info(
                "cfc message created",
                extra={"user_id": submitter.id, "message_id": message_id},
            )
        else:
            message = await _call(
                "webhook edit",
                webhook.edit_message(
                    prior.published_message_id, content=content, thread=thread
                ),
            )
            message_id = int(getattr(message, "id", prior.published_message_id))
            log.info(
                "cfc message edited",
                extra={"user_id": submitter.id, "message_id": message_id},
            )

        self.state.store.put(
            submitter.id, encode_submission(submission), message_id, destination_id
        )
        return message_id

    def describe_webhook(self) -> str:
        return str(sanitize_text(self.state.webhook_url or "-"))
