from __future__ import annotations

import asyncio
import logging

import discord
from discord.ext import commands

from shared import health as healthmod
from shared.config import get_discord_token, get_env_name
from shared.logfmt import human_reason
from modules.common.runtime import Runtime

log = logging.getLogger("simdem.app")

INTENTS = discord.Intents.default()

bot = commands.Bot(
    command_prefix=commands.when_mentioned,
    intents=INTENTS,
)
bot.remove_command("help")

runtime = Runtime(bot)


@bot.event
async def on_ready():
    healthmod.set_component("discord", True)
    log.info("Bot ready as %s | env=%s", bot.user, get_env_name())
    if not getattr(bot, "_simdem_commands_synced", False):
        try:
            await runtime.sync_commands()
        except discord.HTTPException as exc:
            log.warning("application command sync failed: %s", human_reason(exc))
        else:
            bot._simdem_commands_synced = True


@bot.event
async def on_connect():
    healthmod.set_component("discord", True)


@bot.event
async def on_resumed():
    healthmod.set_component("discord", True)


@bot.event
async def on_disconnect():
    healthmod.set_component("discord", False)


@bot.tree.error
async def on_app_command_error(
    interaction: discord.Interaction, error: discord.app_commands.AppCommandError
):
    log.warning(
        "app command error: cmd=%s user=%s err=%s",
        getattr(interaction.command, "name", None),
        getattr(interaction.user, "id", None),
        human_reason(getattr(error, "original", error)),
    )
    message = "That command failed. Please try again."
    try:
        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=True)
        else:
            await interaction.response.send_message(message, ephemeral=True)
    except discord.HTTPException:
        log.exception("failed to report app command error")


async def main() -> None:
    token = get_discord_token()
    try:
        await runtime.start(token)
    finally:
        await runtime.close()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
