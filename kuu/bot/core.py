"""
kuu.bot.core — Bot Instance & Extension Table
==============================================

Defines :class:`KuuBot`, a ``commands.Bot`` subclass that:

1. Stores the shared config (``bot.cfg``), DB engine (``bot.engine``) and
   registration lookup (``bot.registration``) so every cog can reach them.
2. Loads the cogs listed in :data:`EXTENSIONS`.
3. Syncs the slash-command tree on ready (guild-scoped when ``DEV_GUILD_ID``
   is set, global otherwise).
4. Turns unhandled slash-command errors into an ephemeral reply.
"""

from __future__ import annotations

import logging
import os

import discord
from discord import app_commands
from discord.ext import commands
from sqlalchemy import Engine

from kuu.config import KuuConfig
from kuu.constants import GENERIC_COMMAND_ERROR, USAGE_HINT
from kuu.services.embeds import build_error_embed
from kuu.services.registration_service import RegistrationLookup

logger = logging.getLogger(__name__)

# Cog modules to load on startup.
EXTENSIONS: list[str] = [
    "kuu.bot.cogs.verification",
    "kuu.bot.cogs.birthday",
    "kuu.bot.cogs.treasurer",
    "kuu.bot.cogs.tasks",
]


class KuuBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state.

    Parameters
    ----------
    cfg:
        The parsed :class:`KuuConfig` from ``config.yaml``.
    engine:
        A SQLAlchemy :class:`Engine` for the birthday store.
    registration:
        Registration form lookup; built from ``cfg`` when omitted.
    """

    def __init__(
        self,
        cfg: KuuConfig,
        engine: Engine,
        registration: RegistrationLookup | None = None,
    ) -> None:
        # Privileged intents (must enable in Developer Portal):
        #   GUILD_MEMBERS   — join events, role member lists, kick control
        #   MESSAGE_CONTENT — intro messages forwarded to the committee
        intents = discord.Intents.default()
        intents.members = True
        intents.message_content = True
        intents.presences = False

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            description="Kuu — community bot",
        )

        self.cfg = cfg
        self.engine = engine
        self.registration = registration or RegistrationLookup(cfg.registration_csv_url)

        self.tree.error(self.on_app_command_error)

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load all cog extensions.  One broken cog shouldn't take down the bot."""
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

    async def on_ready(self) -> None:
        """Fired when the bot has connected and the cache is populated."""
        assert self.user is not None  # guaranteed after on_ready
        logger.info("Logged in as %s (ID: %s)", self.user.name, self.user.id)

        dev_guild_id = os.getenv("DEV_GUILD_ID")
        if dev_guild_id:
            guild = discord.Object(id=int(dev_guild_id))
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.info("Synced %d commands to dev guild %s", len(synced), dev_guild_id)
        else:
            synced = await self.tree.sync()
            logger.info("Synced %d commands globally", len(synced))

    # -----------------------------------------------------------------------
    # Slash-command errors
    # -----------------------------------------------------------------------
    async def on_app_command_error(
        self,
        interaction: discord.Interaction,
        error: app_commands.AppCommandError,
    ) -> None:
        if isinstance(error, app_commands.CheckFailure):
            message = "You are not allowed to use this command here."
        elif isinstance(error, app_commands.TransformerError):
            message = USAGE_HINT
        else:
            message = GENERIC_COMMAND_ERROR
            command_name = interaction.command.name if interaction.command else "?"
            logger.error(
                "Command /%s failed", command_name,
                exc_info=error,
                extra={"command": command_name, "user_id": interaction.user.id},
            )

        embed = build_error_embed(message)
        try:
            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException:
            logger.exception("Could not report command error to user %s", interaction.user.id)
