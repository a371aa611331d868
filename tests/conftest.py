"""Pytest configuration for shared test fixtures."""

from __future__ import annotations

import asyncio
import itertools
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest


def _ensure_project_root_on_path(source_file: Path) -> None:
    """Add the repository root to ``sys.path`` when running from subpackages."""

    for candidate in [source_file.parent, *source_file.parents]:
        shared_dir = candidate / "shared"
        if shared_dir.is_dir():
            project_root = str(candidate)
            if project_root not in sys.path:
                sys.path.insert(0, project_root)
            break


_ensure_project_root_on_path(Path(__file__).resolve())

from shared.testing.environment import apply_required_test_environment

apply_required_test_environment()

import discord  # noqa: E402


_ids = itertools.count(900_000)


class FakeWebhook:
    def __init__(self, name: str, webhook_id: int | None = None) -> None:
        self.id = webhook_id or next(_ids)
        self.name = name
        self.url = f"https://discord.com/api/webhooks/{self.id}/fake-token-{self.id}"
        self.messages: dict[int, dict] = {}
        self.sent: list[dict] = []
        self.edits: list[dict] = []
        self.fail_with: Exception | None = None

    async def send(self, content=None, *, username=None, avatar_url=None, thread=None, wait=False):
        if self.fail_with is not None:
            raise self.fail_with
        message_id = next(_ids)
        payload = {
            "id": message_id,
            "content": content,
            "username": username,
            "avatar_url": avatar_url,
            "thread_id": getattr(thread, "id", None),
            "wait": wait,
        }
        self.messages[message_id] = payload
        self.sent.append(payload)
        return SimpleNamespace(id=message_id, content=content)

    async def edit_message(self, message_id, *, content=None, thread=None):
        if self.fail_with is not None:
            raise self.fail_with
        payload = {
            "id": message_id,
            "content": content,
            "thread_id": getattr(thread, "id", None),
        }
        self.edits.append(payload)
        self.messages.setdefault(message_id, {}).update(content=content)
        return SimpleNamespace(id=message_id, content=content)


class FakeParentChannel:
    def __init__(self, channel_id: int = 500, hooks: list[FakeWebhook] | None = None) -> None:
        self.id = channel_id
        self.hooks: list[FakeWebhook] = list(hooks or [])
        self.created: list[FakeWebhook] = []
        self.threads: list["FakeThread"] = []

    async def webhooks(self):
        await asyncio.sleep(0)
        return list(self.hooks)

    async def create_webhook(self, *, name: str):
        await asyncio.sleep(0)
        hook = FakeWebhook(name)
        self.hooks.append(hook)
        self.created.append(hook)
        return hook

    async def create_thread(self, *, name: str, type=None):
        thread = FakeThread(next(_ids), self, name=name)
        self.threads.append(thread)
        return thread


class FakeThread:
    def __init__(self, thread_id: int, parent: FakeParentChannel, name: str = "cfc") -> None:
        self.id = thread_id
        self.parent_id = parent.id
        self.parent = parent
        self.name = name


class FakeBot:
    def __init__(self) -> None:
        self.channels: dict[int, object] = {}
        self.fetches: list[int] = []

    def register(self, channel) -> None:
        self.channels[channel.id] = channel

    def get_channel(self, channel_id: int):
        return None

    async def fetch_channel(self, channel_id: int):
        self.fetches.append(channel_id)
        channel = self.channels.get(channel_id)
        if channel is None:
            raise discord.NotFound(MagicMock(status=404, reason="Not Found"), "Unknown Channel")
        return channel


def make_user(user_id: int = 42, display_name: str = "Alice"):
    return SimpleNamespace(
        id=user_id,
        name=display_name.lower(),
        display_name=display_name,
        display_avatar=SimpleNamespace(url=f"https://cdn.example/avatars/{user_id}.png"),
        send=AsyncMock(),
    )


def make_response(done: bool = False):
    response = SimpleNamespace(is_done=MagicMock(return_value=done))

    async def _respond(*_args, **_kwargs):
        response.is_done.return_value = True

    response.send_modal = AsyncMock(side_effect=_respond)
    response.defer = AsyncMock(side_effect=_respond)
    response.send_message = AsyncMock(side_effect=_respond)
    return response


def make_interaction(user=None, *, custom_id: str = "7", kind=None):
    return SimpleNamespace(
        type=kind or discord.InteractionType.component,
        data={"custom_id": custom_id},
        user=user or make_user(),
        guild=None,
        channel=None,
        command=None,
        response=make_response(),
        followup=SimpleNamespace(send=AsyncMock()),
    )


async def wait_until(predicate, *, attempts: int = 100) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


@pytest.fixture
def cfc_env():
    """Fake Discord objects for the CFC relay tests."""

    bot = FakeBot()
    parent = FakeParentChannel()
    thread = FakeThread(777, parent)
    bot.register(parent)
    bot.register(thread)
    return SimpleNamespace(
        bot=bot,
        parent=parent,
        thread=thread,
        Webhook=FakeWebhook,
        Thread=FakeThread,
        make_user=make_user,
        make_interaction=make_interaction,
        make_response=make_response,
        wait_until=wait_until,
    )
