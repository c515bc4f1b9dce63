"""
kuu.bot.cogs.verification — Member Onboarding
==============================================

- **Join** → give the *Intro Arc* role and start the member's kick timer.
- **Ready** → put every member still holding *Intro Arc* back under kick
  control (timers don't survive restarts; join time does).
- **Intro message** → post a committee card with Verify / Reject buttons to
  the verification channel, enriched from the registration form.
- **Verify / Reject button** → swap roles, or kick, and recolour the card.

Requires the GUILD_MEMBERS and MESSAGE_CONTENT privileged intents.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from kuu.engine.payloads import VERIFICATION_ACTIONS, ActionType, parse_payload
from kuu.services.embeds import build_verification_embed, recolor_embed
from kuu.services.verification_service import (
    KickScheduler,
    build_verification_view,
    reject_member,
    verify_member,
)

if TYPE_CHECKING:
    from kuu.bot.core import KuuBot

logger = logging.getLogger(__name__)


class Verification(commands.Cog, name="Verification"):
    """Onboards new members and removes those never verified."""

    def __init__(self, bot: KuuBot) -> None:
        self.bot = bot
        self.kicks = KickScheduler(
            intro_role_id=bot.cfg.role_ids.intro,
            timeout=bot.cfg.kick_timeout_seconds,
        )

    async def cog_unload(self) -> None:
        self.kicks.cancel_all()

    # -------------------------------------------------------------------
    # Join / startup
    # -------------------------------------------------------------------
    @commands.Cog.listener()
    async def on_member_join(self, member: discord.Member) -> None:
        if member.bot or member.guild.id != self.bot.cfg.guild_id:
            return

        try:
            await member.add_roles(
                discord.Object(id=self.bot.cfg.role_ids.intro), reason="New member"
            )
        except discord.HTTPException:
            logger.exception(
                "Could not give intro role to %s", member.id,
                extra={"event_type": "member_join", "user_id": member.id},
            )
        # Timer starts even without the role; it re-checks when it fires.
        self.kicks.schedule(member)
        logger.info("Member joined: %s (ID: %d)", member.display_name, member.id)

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        guild = self.bot.get_guild(self.bot.cfg.guild_id)
        if guild is None:
            logger.warning("Primary guild %d not found — skipping kick control", self.bot.cfg.guild_id)
            return

        if not guild.chunked:
            await guild.chunk()

        role = guild.get_role(self.bot.cfg.role_ids.intro)
        if role is None:
            logger.warning("Intro role %d not found — skipping kick control", self.bot.cfg.role_ids.intro)
            return

        now = discord.utils.utcnow()
        scheduled = 0
        for member in role.members:
            if self.kicks.schedule(member, now=now) is not None:
                scheduled += 1
        logger.info("Kick control resumed for %d unverified member(s)", scheduled)

    # -------------------------------------------------------------------
    # Intro channel → committee card
    # -------------------------------------------------------------------
    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        if message.channel.id != self.bot.cfg.channel_ids.intro:
            return
        if message.author.bot or not isinstance(message.author, discord.Member):
            return

        verification = message.guild.get_channel(self.bot.cfg.channel_ids.verification)
        if not isinstance(verification, discord.TextChannel):
            logger.warning(
                "Verification channel %d not found", self.bot.cfg.channel_ids.verification
            )
            return

        author = message.author
        registration = await self.bot.registration.find(author.name)

        embed = build_verification_embed(
            author_name=author.display_name,
            avatar_url=author.display_avatar.url,
            content=message.content,
            registration=registration,
            sheet_url=self.bot.registration.csv_url,
            username=author.name,
            display_name=author.display_name,
            user_id=author.id,
        )
        # Unregistered members need a manual check by IT.
        content = None if registration else f"<@&{self.bot.cfg.role_ids.it_manager}>"

        try:
            await verification.send(
                content=content,
                embed=embed,
                view=build_verification_view(author.id),
                allowed_mentions=discord.AllowedMentions(roles=True),
            )
        except discord.HTTPException:
            logger.exception(
                "Could not post verification card for %s", author.id,
                extra={"user_id": author.id},
            )

    # -------------------------------------------------------------------
    # Verify / Reject buttons
    # -------------------------------------------------------------------
    @commands.Cog.listener()
    async def on_interaction(self, interaction: discord.Interaction) -> None:
        if interaction.type is not discord.InteractionType.component:
            return
        if interaction.channel_id != self.bot.cfg.channel_ids.verification:
            return

        payload = parse_payload((interaction.data or {}).get("custom_id"))
        if payload is None or payload.action not in VERIFICATION_ACTIONS:
            return

        try:
            await self._handle_decision(interaction, payload.action, payload.entity_id)
        except discord.HTTPException:
            logger.exception(
                "Verification action %s failed for %s", payload.action, payload.entity_id,
                extra={"user_id": payload.entity_id},
            )
            if not interaction.response.is_done():
                await interaction.response.send_message(
                    "Something went wrong while handling that member.", ephemeral=True
                )

    async def _handle_decision(
        self, interaction: discord.Interaction, action: ActionType, member_id: int
    ) -> None:
        guild = interaction.guild
        try:
            member = await guild.fetch_member(member_id) if guild else None
        except discord.NotFound:
            member = None

        if member is None:
            await interaction.response.send_message(
                "The member could not be found.", ephemeral=True
            )
            return

        roles = self.bot.cfg.role_ids
        if action is ActionType.VERIFY:
            await verify_member(
                member,
                intro_role_id=roles.intro,
                freshie_role_id=roles.freshie,
                member_role_id=roles.member,
            )
            self.kicks.cancel(member.id)
            verb, color = "verified", discord.Color.green()
        else:
            await reject_member(member)
            self.kicks.cancel(member.id)
            verb, color = "rejected", discord.Color.red()

        await interaction.response.send_message(
            f"Successfully {verb} {member.display_name}.", ephemeral=True
        )

        message = interaction.message
        if message is not None:
            embeds = [recolor_embed(message.embeds[0], color)] if message.embeds else []
            await message.edit(embeds=embeds, view=None)


async def setup(bot: KuuBot) -> None:
    await bot.add_cog(Verification(bot))
