"""
kuu.services.embeds — Discord embed builders
=============================================

All embed construction lives here so cogs and services only need to supply
data — no layout concerns.
"""

from __future__ import annotations

import discord

from kuu.engine.birthdays import UpcomingBirthday
from kuu.services.registration_service import RegistrationRow

UPCOMING_TITLE = "Upcoming Birthdays"


# ---------------------------------------------------------------------------
# Birthdays
# ---------------------------------------------------------------------------
def build_upcoming_embed(entries: list[UpcomingBirthday]) -> discord.Embed:
    """One field per upcoming birthday, in the order given."""
    embed = discord.Embed(title=UPCOMING_TITLE, color=discord.Color.orange())
    if not entries:
        embed.description = (
            "Nobody has told me their birthday yet dazo! "
            "Use `/birthday set <date>` to be the first."
        )
        return embed

    for entry in entries:
        value = f"<@{entry.member_id}>"
        if entry.age is not None:
            value += f" ({entry.age})"
        embed.add_field(name=entry.formatted, value=value, inline=False)
    return embed


def build_birthday_saved_embed(referrer: str, emoji: str) -> discord.Embed:
    return discord.Embed(
        description=(
            f"Thank you for telling me {referrer} birthday dazo! "
            f"I have now remembered it! {emoji}"
        ),
        color=discord.Color.orange(),
    )


def build_birthday_forgotten_embed(
    first_mention: str, possessive: str, command: str, emoji: str
) -> discord.Embed:
    return discord.Embed(
        description=(
            f"Okay, I will forget about {first_mention} birthday! {emoji}\n"
            f"If this was a mistake, you can tell me {possessive} birthday again using {command}!"
        ),
        color=discord.Color.orange(),
    )


def build_birthday_missing_embed(
    first_mention: str,
    possessive: str,
    objective: str,
    command: str,
    breakdown: str,
    heart: str,
) -> discord.Embed:
    return discord.Embed(
        description="\n".join([
            f"Yo dazo! You have never told me what {first_mention} birthday is {breakdown}\n",
            f"Just let me know what {possessive} birthday is and I will remember it and even "
            f"wish {objective} a happy birthday when the day comes! \U0001f973",
            f"You can let me know {possessive} birthday by running: {command}! {heart}",
        ]),
        color=discord.Color.red(),
    )


def build_error_embed(message: str) -> discord.Embed:
    return discord.Embed(description=message, color=discord.Color.red())


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------
def build_verification_embed(
    *,
    author_name: str,
    avatar_url: str,
    content: str,
    registration: RegistrationRow | None,
    sheet_url: str | None,
    username: str,
    display_name: str,
    user_id: int,
) -> discord.Embed:
    """Committee review card for an intro message."""
    embed = discord.Embed(
        description=content or "*(no text)*",
        color=discord.Color.orange(),
        timestamp=discord.utils.utcnow(),
    )
    embed.set_author(name=author_name, icon_url=avatar_url)

    sheet_ref = f"the [Spreadsheet]({sheet_url})" if sheet_url else "the registration form"

    if registration is not None:
        manual_check = f"Not Found and require manual check at {sheet_ref}"
        embed.add_field(
            name="Proof of Payment", value=registration.payment_proof or manual_check, inline=False
        )
        embed.add_field(
            name="Favourite Husbando/Waifu",
            value=registration.favourite or manual_check,
            inline=False,
        )
        return embed

    embed.add_field(
        name="Issue",
        value=f"User not found in {sheet_ref}. Manual check required.",
        inline=False,
    )
    embed.add_field(name="Username", value=username, inline=False)
    embed.add_field(name="Display Name", value=display_name, inline=False)
    embed.add_field(name="User ID", value=str(user_id), inline=False)
    return embed


def recolor_embed(embed: discord.Embed, color: discord.Color) -> discord.Embed:
    """Copy *embed* with a new colour (used to mark verified/rejected cards)."""
    updated = embed.copy()
    updated.color = color
    return updated
