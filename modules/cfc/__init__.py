"""Senate call-for-candidates relay extension."""

import logging

from discord.ext import commands

from .cog import CFCRelay

__all__ = ["CFCRelay", "setup"]


async def setup(bot: commands.Bot) -> None:
    """Load the CFCRelay cog."""

    await bot.add_cog(CFCRelay(bot))
    logging.getLogger("simdem.cfc.cog").info("CFC relay cog loaded")
