"""Discord cog for Senate calls for candidates (CFC)."""

from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import commands

from shared import health as healthmod
from shared.config import get_cfc_webhook_url
from shared.logfmt import human_reason, user_label
from shared.utils.humanize import ordinal

from .collector import FormCollector
from .errors import CFCError, FormSuperseded
from .flow import CFCFlow
from .persistence import WebhookStateStore
from .publisher import Publisher
from .state import CFCState

log = logging.getLogger("simdem.cfc.cog")

SUBMIT_BUTTON_LABEL = "Submit CFC"
FAILURE_NOTICE = "Something went wrong while registering your CFC. Please press the button again."
ANNOUNCEMENT_DESCRIPTION = (
    "Nominations for the Senate are now open.\n\n"
    "Press **Submit CFC** below to file your candidacy. You will be asked for your "
    "Reddit username, your party or coalition and your candidate statement. "
    "Your statement is posted in the thread attached to this message; pressing the "
    "button again lets you edit it while the call is open."
)


def announcement_title(term_number: int) -> str:
    return f"{ordinal(term_number)} Senate Call for Candidates"


def build_announcement(term_number: int) -> tuple[discord.Embed, discord.ui.View]:
    """Return the CFC announcement embed and its submit button."""

    embed = discord.Embed(
        title=announcement_title(term_number),
        description=ANNOUNCEMENT_DESCRIPTION,
    )
    view = discord.ui.View(timeout=None)
    view.add_item(
        discord.ui.Button(
            label=SUBMIT_BUTTON_LABEL,
            custom_id=str(term_number),
            style=discord.ButtonStyle.primary,
        )
    )
    return embed, view


class CFCRelay(commands.Cog):
    """Collect CFC forms and relay them into the active CFC thread."""

    def __init__(
        self,
        bot: commands.Bot,
        *,
        state: CFCState | None = None,
        collector: FormCollector | None = None,
        publisher: Publisher | None = None,
        persistence: WebhookStateStore | None = None,
    ) -> None:
        self.bot = bot
        if state is None:
            persistence = persistence or WebhookStateStore()
            state = CFCState(
                webhook_url=persistence.webhook_url or get_cfc_webhook_url(),
                on_webhook_url=persistence.save_webhook_url,
            )
        self.persistence = persistence
        self.state = state
        self.collector = collector or FormCollector()
        self.publisher = publisher or Publisher(bot, self.state)
        self.flow = CFCFlow(self.state, self.collector, self.publisher)

    async def cog_load(self) -> None:
        healthmod.set_component("cfc", True)
        log.info(
            "cfc relay loaded",
            extra={
                "webhook": self.publisher.describe_webhook(),
                "form_timeout_s": self.collector.timeout,
            },
        )

    async def cog_unload(self) -> None:
        self.state.clear_destination()
        healthmod.set_component("cfc", False)
        log.info("cfc relay unloaded")

    @commands.Cog.listener()
    async def on_interaction(self, interaction: discord.Interaction) -> None:
        if not self.flow.accepts(interaction):
            return
        user = getattr(interaction, "user", None)
        try:
            await self.flow.handle_interaction(interaction)
        except FormSuperseded:
            log.info(
                "cfc form replaced by a newer one",
                extra={"user": user_label(interaction.guild, getattr(user, "id", None))},
            )
        except CFCError as exc:
            log.exception(
                "cfc submission failed",
                extra={
                    "user": user_label(interaction.guild, getattr(user, "id", None)),
                    "reason": human_reason(exc),
                },
            )
            await self._notify_failure(exc.interaction or interaction)

    async def _notify_failure(self, interaction: discord.Interaction) -> None:
        try:
            if interaction.response.is_done():
                await interaction.followup.send(FAILURE_NOTICE, ephemeral=True)
            else:
                await interaction.response.send_message(FAILURE_NOTICE, ephemeral=True)
        except discord.HTTPException:
            log.warning("failed to send cfc failure notice", exc_info=True)

    @app_commands.command(
        name="cfc_senate",
        description="Open a Senate call for candidates in this channel.",
    )
    @app_commands.describe(term_number="The term which this cfc is for")
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_threads=True)
    async def cfc_senate(
        self,
        interaction: discord.Interaction,
        term_number: app_commands.Range[int, 0, 4294967295],
    ) -> None:
        await self.open_call(interaction, term_number)

    async def open_call(self, interaction: discord.Interaction, term_number: int) -> int:
        """Post the announcement, open its thread and make it the CFC destination."""

        channel = interaction.channel
        if not hasattr(channel, "create_thread"):
            await interaction.response.send_message(
                "Calls for candidates can only be opened in a text channel.",
                ephemeral=True,
            )
            return self.state.destination_id

        embed, view = build_announcement(term_number)
        await interaction.response.send_message(embed=embed, view=view)
        thread = await channel.create_thread(
            name=announcement_title(term_number),
            type=discord.ChannelType.public_thread,
        )
        self.state.set_destination(thread.id)
        log.info(
            "cfc round opened",
            extra={
                "term": term_number,
                "thread_id": thread.id,
                "opened_by": user_label(interaction.guild, getattr(interaction.user, "id", None)),
            },
        )
        return thread.id
