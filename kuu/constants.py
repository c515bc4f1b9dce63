"""
kuu.constants — Shared Messages & Helpers
==========================================

Single source of truth for user-facing copy and small presentation helpers.
Import from here instead of duplicating strings in cogs and services.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import discord

# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------
KICK_REASON = 'User stuck with "Intro Arc" role for too long.'
REJECT_REASON = "Discord membership rejected."

KICK_NOTICE = (
    "Yo dazo! You have been automatically kicked for not having been verified by our "
    "committee. Please reach out to @officialspimy if you think this was a mistake! Ja ne~"
)
REJECT_NOTICE = (
    "Yo dazo! You have been kicked because you were rejected from the Discord server. "
    "Please reach out to @officialspimy if you think this was a mistake! Ja ne~"
)

# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
GENERIC_COMMAND_ERROR = "Something went wrong while trying to execute this command."
USAGE_HINT = "Please check the command descriptions for proper usage."

# ---------------------------------------------------------------------------
# Custom emoji fallbacks (used when the guild emoji is missing)
# ---------------------------------------------------------------------------
EMOJI_FALLBACKS: dict[str, str] = {
    "satania_thumbs_up": ":thumbsup:",
    "kuuchan_breakdown": ":sob:",
    "irys_heart": ":heart:",
}


def resolve_emoji(guild: discord.Guild | None, emoji_id: int | None, name: str) -> str:
    """Render a custom guild emoji, or its unicode shortcode fallback."""
    fallback = EMOJI_FALLBACKS.get(name, "")
    if guild is None or emoji_id is None:
        return fallback
    emoji = guild.get_emoji(emoji_id)
    return str(emoji) if emoji is not None else fallback
