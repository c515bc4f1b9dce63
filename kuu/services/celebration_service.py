"""
kuu.services.celebration_service — Daily Birthday Celebration
==============================================================

Called once a day by :mod:`kuu.bot.cogs.tasks`.  The scan:

1. Removes the birthday role from everyone still holding it.  The loop runs
   once per 24 hours, so anyone holding it had their day yesterday.
2. Loads every stored birthday and, for each one falling on *today* (in the
   configured timezone), gives the member the birthday role and posts the
   ``messages/birthday.md`` template with ``{mention}`` and ``{age}``
   filled in.

Each member is handled on its own: a member who left the server or a
failed send is logged and the scan moves on.  Nothing is surfaced to users.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import TYPE_CHECKING

import discord
from discord.abc import Messageable

from kuu.database.engine import run_db
from kuu.engine.birthdays import BirthdayRecord, is_birthday_today, ordinal
from kuu.services.birthday_service import fetch_all_with_birthday

if TYPE_CHECKING:
    from kuu.bot.core import KuuBot

logger = logging.getLogger(__name__)

BIRTHDAY_TEMPLATE_FILE = "birthday.md"
DEFAULT_BIRTHDAY_TEMPLATE = "Happy {age} birthday {mention}! \U0001f973\U0001f382"


@dataclass
class CelebrationReport:
    """What one daily scan did."""

    roles_cleared: int = 0
    celebrated: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Message template
# ---------------------------------------------------------------------------
def load_birthday_template(messages_dir: Path) -> str:
    path = messages_dir / BIRTHDAY_TEMPLATE_FILE
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning("Birthday template %s not found — using default message", path)
        return DEFAULT_BIRTHDAY_TEMPLATE


def render_birthday_message(template: str, mention: str, age: int | None) -> str:
    """Fill ``{age}`` (ordinal, or nothing without a birth year) and ``{mention}``."""
    age_text = ordinal(age) if age is not None else ""
    return template.replace("{age}", age_text).replace("{mention}", mention)


# ---------------------------------------------------------------------------
# Scan
# ---------------------------------------------------------------------------
async def _clear_birthday_role(role: discord.Role) -> int:
    cleared = 0
    for member in list(role.members):
        try:
            await member.remove_roles(role, reason="Birthday is over")
            cleared += 1
        except discord.HTTPException:
            logger.exception(
                "Could not remove birthday role from %s", member.id,
                extra={"task": "birthday", "member_id": member.id},
            )
    return cleared


async def _celebrate_member(
    guild: discord.Guild,
    channel: Messageable,
    role: discord.Role | None,
    record: BirthdayRecord,
    today: date,
    template: str,
) -> None:
    member = await guild.fetch_member(int(record.member_id))

    if role is not None:
        await member.add_roles(role, reason="Happy birthday!")

    await channel.send(
        render_birthday_message(template, member.mention, record.age_on(today)),
        allowed_mentions=discord.AllowedMentions(users=True, roles=False, everyone=False),
    )


async def run_celebration(
    *,
    guild: discord.Guild,
    channel: Messageable,
    role: discord.Role | None,
    records: Iterable[BirthdayRecord],
    today: date,
    template: str,
    leap_day_rule: str = "feb28",
) -> CelebrationReport:
    """Clear yesterday's birthday role, then celebrate today's birthdays."""
    report = CelebrationReport()

    if role is not None:
        report.roles_cleared = await _clear_birthday_role(role)

    for record in records:
        if record.birthday is None or not is_birthday_today(record.birthday, today, leap_day_rule):
            continue
        try:
            await _celebrate_member(guild, channel, role, record, today, template)
        except discord.NotFound:
            logger.warning("[Birthday] Member %s is no longer in the server", record.member_id)
            report.failed.append(record.member_id)
        except Exception:
            logger.exception(
                "[Birthday] Could not celebrate member %s", record.member_id,
                extra={"task": "birthday", "member_id": record.member_id},
            )
            report.failed.append(record.member_id)
        else:
            report.celebrated.append(record.member_id)

    return report


async def celebrate_birthdays(bot: KuuBot, today: date | None = None) -> CelebrationReport | None:
    """Resolve guild, channel and role from config and run today's scan."""
    cfg = bot.cfg

    guild = bot.get_guild(cfg.guild_id)
    if guild is None:
        logger.warning("[Birthday] Could not find guild %d.", cfg.guild_id)
        return None

    channel = guild.get_channel(cfg.channel_ids.birthday)
    if channel is None or not isinstance(channel, Messageable):
        logger.warning("[Birthday] Could not find channel %d.", cfg.channel_ids.birthday)
        return None

    role = guild.get_role(cfg.role_ids.birthday)
    if role is None:
        logger.warning("[Birthday] Could not find birthday role %d.", cfg.role_ids.birthday)

    if today is None:
        today = datetime.now(cfg.tz).date()

    records = await run_db(fetch_all_with_birthday, bot.engine)
    report = await run_celebration(
        guild=guild,
        channel=channel,
        role=role,
        records=records,
        today=today,
        template=load_birthday_template(cfg.messages_dir),
        leap_day_rule=cfg.leap_day_rule,
    )
    logger.info(
        "Birthday scan for %s: %d celebrated, %d failed, %d role(s) cleared",
        today.isoformat(), len(report.celebrated), len(report.failed), report.roles_cleared,
    )
    return report
