"""
kuu.bot.cogs.birthday — Birthday Slash Commands
================================================

- /birthday set date:<YYYY-MM-DD|MM-DD> [member]
- /birthday unset [member]
- /birthday upcoming

Setting or unsetting another member's birthday needs the admin role (or
the Administrator permission).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from kuu.constants import resolve_emoji
from kuu.database.engine import run_db
from kuu.engine.birthdays import InvalidBirthdayError, parse_birthday, rank_upcoming
from kuu.services.birthday_service import (
    fetch_all_with_birthday,
    has_set_birthday,
    set_birthday,
    unset_birthday,
)
from kuu.services.embeds import (
    build_birthday_forgotten_embed,
    build_birthday_missing_embed,
    build_birthday_saved_embed,
    build_error_embed,
    build_upcoming_embed,
)

if TYPE_CHECKING:
    from kuu.bot.core import KuuBot

logger = logging.getLogger(__name__)

DATE_FORMAT_HINT = "Birthday (e.g., 2003-01-30 or 01-30) [YYYY-MM-DD / MM-DD]"


def is_admin_member(user: discord.abc.User, admin_role_id: int) -> bool:
    """Admin role holders and server administrators."""
    if not isinstance(user, discord.Member):
        return False
    if user.guild_permissions.administrator:
        return True
    return any(role.id == admin_role_id for role in user.roles)


class Birthday(commands.GroupCog, group_name="birthday", group_description="Birthday commands"):
    """Remembers member birthdays and lists the upcoming ones."""

    def __init__(self, bot: KuuBot) -> None:
        self.bot = bot
        super().__init__()

    def _now(self) -> datetime:
        return datetime.now(self.bot.cfg.tz)

    async def _resolve_target(
        self, interaction: discord.Interaction, member: discord.Member | None
    ) -> discord.abc.User | None:
        """The member the command acts on, or None after refusing a non-admin."""
        if member is None or member.id == interaction.user.id:
            return interaction.user
        if is_admin_member(interaction.user, self.bot.cfg.role_ids.admin):
            return member
        await interaction.response.send_message(
            embed=build_error_embed("Only admins can change another member's birthday."),
            ephemeral=True,
        )
        return None

    # -------------------------------------------------------------------
    # /birthday set
    # -------------------------------------------------------------------
    @app_commands.command(
        name="set",
        description="Set birthday of a member, defaults to the member running the command",
    )
    @app_commands.rename(date_text="date")
    @app_commands.describe(
        date_text=DATE_FORMAT_HINT,
        member="Admins only: set birthday for another member",
    )
    async def set_(
        self,
        interaction: discord.Interaction,
        date_text: str,
        member: discord.Member | None = None,
    ) -> None:
        target = await self._resolve_target(interaction, member)
        if target is None:
            return

        try:
            birthday = parse_birthday(date_text, today=self._now().date())
        except InvalidBirthdayError:
            await interaction.response.send_message(
                embed=build_error_embed(
                    f"Yo dazo! I could not understand `{date_text}`. {DATE_FORMAT_HINT}"
                ),
                ephemeral=True,
            )
            return

        if not await run_db(set_birthday, self.bot.engine, target.id, birthday):
            await interaction.response.send_message(
                embed=build_error_embed("Yo dazo! Something went wrong and could not set birthday."),
                ephemeral=True,
            )
            return

        referrer = "your" if target.id == interaction.user.id else f"{target.mention}'s"
        emoji = resolve_emoji(
            interaction.guild, self.bot.cfg.emoji_ids.satania_thumbs_up, "satania_thumbs_up"
        )
        await interaction.response.send_message(embed=build_birthday_saved_embed(referrer, emoji))

    # -------------------------------------------------------------------
    # /birthday unset
    # -------------------------------------------------------------------
    @app_commands.command(
        name="unset",
        description="Unset birthday of a member, defaults to the member running the command",
    )
    @app_commands.describe(member="Admins only: unset birthday for another member")
    async def unset(
        self,
        interaction: discord.Interaction,
        member: discord.Member | None = None,
    ) -> None:
        target = await self._resolve_target(interaction, member)
        if target is None:
            return

        emojis = self.bot.cfg.emoji_ids
        if target.id == interaction.user.id:
            first_mention, possessive, objective = "your", "your", "you"
            command = "`/birthday set <date>`"
        else:
            first_mention, possessive, objective = f"{target.mention}'s", "their", "them"
            command = "`/birthday set <date> [member]`"

        if not await run_db(has_set_birthday, self.bot.engine, target.id):
            await interaction.response.send_message(
                embed=build_birthday_missing_embed(
                    first_mention,
                    possessive,
                    objective,
                    command,
                    breakdown=resolve_emoji(
                        interaction.guild, emojis.kuuchan_breakdown, "kuuchan_breakdown"
                    ),
                    heart=resolve_emoji(interaction.guild, emojis.irys_heart, "irys_heart"),
                ),
                ephemeral=True,
            )
            return

        if not await run_db(unset_birthday, self.bot.engine, target.id):
            await interaction.response.send_message(
                embed=build_error_embed("Yo dazo! Something went wrong and could not unset birthday."),
                ephemeral=True,
            )
            return

        emoji = resolve_emoji(interaction.guild, emojis.satania_thumbs_up, "satania_thumbs_up")
        await interaction.response.send_message(
            embed=build_birthday_forgotten_embed(first_mention, possessive, command, emoji)
        )

    # -------------------------------------------------------------------
    # /birthday upcoming
    # -------------------------------------------------------------------
    @app_commands.command(
        name="upcoming",
        description="List of the next upcoming 10 birthdays on the server.",
    )
    async def upcoming(self, interaction: discord.Interaction) -> None:
        records = await run_db(fetch_all_with_birthday, self.bot.engine)
        entries = rank_upcoming(records, self._now(), limit=self.bot.cfg.upcoming_limit)
        await interaction.response.send_message(embed=build_upcoming_embed(entries))


async def setup(bot: KuuBot) -> None:
    await bot.add_cog(Birthday(bot))
