"""
kuu.bot.cogs.tasks — Periodic Background Tasks
================================================

- **Birthday celebration** — once a day at ``birthday_announce_time`` in
  the configured timezone (default 00:00:59 Asia/Kuala_Lumpur).

The loop time is recomputed from config on every startup; nothing about
previous runs is stored because a day's birthdays match only that day.
"""

from __future__ import annotations

import logging
from datetime import time
from typing import TYPE_CHECKING

from discord.ext import commands, tasks

from kuu.services.celebration_service import celebrate_birthdays

if TYPE_CHECKING:
    from kuu.bot.core import KuuBot

logger = logging.getLogger(__name__)


class BirthdayTasks(commands.Cog):
    """Cog for the daily birthday scan."""

    def __init__(self, bot: KuuBot) -> None:
        self.bot = bot
        self.birthday_loop.change_interval(time=bot.cfg.announce_time)

    async def cog_load(self) -> None:
        self.birthday_loop.start()

    async def cog_unload(self) -> None:
        self.birthday_loop.cancel()

    # -------------------------------------------------------------------
    # Birthday celebration — once per calendar day
    # -------------------------------------------------------------------
    @tasks.loop(time=time(0, 0, 59))
    async def birthday_loop(self):
        """Clear yesterday's birthday role and celebrate today's birthdays."""
        try:
            await celebrate_birthdays(self.bot)
        except Exception:
            logger.exception("Birthday task failed", extra={"task": "birthday"})

    @birthday_loop.before_loop
    async def _wait_birthday(self):
        await self.bot.wait_until_ready()


async def setup(bot: KuuBot) -> None:
    await bot.add_cog(BirthdayTasks(bot))
