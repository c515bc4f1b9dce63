"""
tests/test_birthday_commands.py — /birthday Command & Embed Tests
==================================================================

Drives the slash-command callbacks directly with mocked interactions and a
real (SQLite) store.
"""

from __future__ import annotations

import asyncio
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import discord

from kuu.bot.cogs.birthday import Birthday, is_admin_member
from kuu.engine.birthdays import BirthdayRecord, DateWithoutYear, DateWithYear, rank_upcoming
from kuu.services.birthday_service import get_birthday, set_birthday
from kuu.services.embeds import build_upcoming_embed, build_verification_embed
from kuu.services.registration_service import RegistrationRow


# Helper to run async tests without pytest-asyncio
def run_async(coro):
    """Run an async coroutine in a new event loop."""
    return asyncio.run(coro)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _user(user_id: int, *, admin_role: bool = False, administrator: bool = False) -> MagicMock:
    user = MagicMock(spec=discord.Member)
    user.id = user_id
    user.mention = f"<@{user_id}>"
    user.guild_permissions = MagicMock(administrator=administrator)
    role = MagicMock()
    role.id = 206 if admin_role else 999
    user.roles = [role]
    return user


def _interaction(user: MagicMock) -> MagicMock:
    interaction = MagicMock()
    interaction.user = user
    interaction.guild = None
    interaction.response.send_message = AsyncMock()
    return interaction


def _sent_embed(interaction: MagicMock) -> discord.Embed:
    return interaction.response.send_message.await_args.kwargs["embed"]


def _cog(fake_bot) -> Birthday:
    bot = MagicMock()
    bot.cfg = fake_bot.cfg
    bot.engine = fake_bot.engine
    return Birthday(bot)


# ---------------------------------------------------------------------------
# Permissions
# ---------------------------------------------------------------------------
class TestAdminCheck:

    def test_admin_role(self):
        assert is_admin_member(_user(1, admin_role=True), 206)

    def test_administrator_permission(self):
        assert is_admin_member(_user(1, administrator=True), 206)

    def test_regular_member(self):
        assert not is_admin_member(_user(1), 206)

    def test_non_member_user(self):
        assert not is_admin_member(MagicMock(spec=discord.User), 206)


# ---------------------------------------------------------------------------
# /birthday set
# ---------------------------------------------------------------------------
class TestSetCommand:

    def test_sets_own_birthday(self, fake_bot):
        cog = _cog(fake_bot)
        interaction = _interaction(_user(11))

        run_async(Birthday.set_.callback(cog, interaction, "2003-01-30"))

        assert get_birthday(fake_bot.engine, 11).birthday == DateWithYear(date(2003, 1, 30))
        assert "your birthday" in _sent_embed(interaction).description

    def test_admin_sets_other_member(self, fake_bot):
        cog = _cog(fake_bot)
        target = _user(22)
        interaction = _interaction(_user(11, admin_role=True))

        run_async(Birthday.set_.callback(cog, interaction, "12-25", target))

        assert get_birthday(fake_bot.engine, 22).birthday == DateWithoutYear(12, 25)
        assert "<@22>'s birthday" in _sent_embed(interaction).description

    def test_non_admin_cannot_set_other_member(self, fake_bot):
        cog = _cog(fake_bot)
        interaction = _interaction(_user(11))

        run_async(Birthday.set_.callback(cog, interaction, "12-25", _user(22)))

        assert get_birthday(fake_bot.engine, 22) is None
        assert interaction.response.send_message.await_args.kwargs["ephemeral"] is True

    def test_invalid_date(self, fake_bot):
        cog = _cog(fake_bot)
        interaction = _interaction(_user(11))

        run_async(Birthday.set_.callback(cog, interaction, "02-30"))

        assert get_birthday(fake_bot.engine, 11) is None
        assert "02-30" in _sent_embed(interaction).description


# ---------------------------------------------------------------------------
# /birthday unset
# ---------------------------------------------------------------------------
class TestUnsetCommand:

    def test_unset_existing(self, fake_bot):
        set_birthday(fake_bot.engine, 11, DateWithoutYear(3, 3))
        cog = _cog(fake_bot)
        interaction = _interaction(_user(11))

        run_async(Birthday.unset.callback(cog, interaction))

        assert get_birthday(fake_bot.engine, 11).birthday is None
        assert "forget about your birthday" in _sent_embed(interaction).description

    def test_unset_never_set(self, fake_bot):
        cog = _cog(fake_bot)
        interaction = _interaction(_user(11))

        run_async(Birthday.unset.callback(cog, interaction))

        assert "never told me" in _sent_embed(interaction).description
        assert interaction.response.send_message.await_args.kwargs["ephemeral"] is True


# ---------------------------------------------------------------------------
# /birthday upcoming
# ---------------------------------------------------------------------------
class TestUpcoming:

    def test_upcoming_lists_stored_birthdays(self, fake_bot):
        set_birthday(fake_bot.engine, 1, DateWithoutYear(1, 1))
        set_birthday(fake_bot.engine, 2, DateWithYear(date(2000, 6, 6)))
        cog = _cog(fake_bot)
        interaction = _interaction(_user(11))

        run_async(Birthday.upcoming.callback(cog, interaction))

        embed = _sent_embed(interaction)
        assert embed.title == "Upcoming Birthdays"
        assert len(embed.fields) == 2

    def test_embed_field_format(self):
        records = [
            BirthdayRecord("1", DateWithYear(date(2003, 11, 1))),
            BirthdayRecord("2", DateWithoutYear(10, 18)),
        ]
        embed = build_upcoming_embed(rank_upcoming(records, date(2026, 10, 18)))

        assert [(f.name, f.value) for f in embed.fields] == [
            ("18 October 2026 (Today)", "<@2>"),
            ("01 November 2026", "<@1> (23)"),
        ]

    def test_empty_embed(self):
        embed = build_upcoming_embed([])
        assert embed.fields == []
        assert "/birthday set" in embed.description


# ---------------------------------------------------------------------------
# Verification card
# ---------------------------------------------------------------------------
class TestVerificationEmbed:

    def _embed(self, registration):
        return build_verification_embed(
            author_name="Kuu",
            avatar_url="https://cdn/avatar.png",
            content="Hello!",
            registration=registration,
            sheet_url="https://sheet",
            username="kuuchan",
            display_name="Kuu",
            user_id=7,
        )

    def test_registered_member(self):
        embed = self._embed(RegistrationRow("kuuchan", "https://drive/pay", "Satania"))
        assert [f.name for f in embed.fields] == ["Proof of Payment", "Favourite Husbando/Waifu"]
        assert embed.fields[1].value == "Satania"

    def test_missing_payment_needs_manual_check(self):
        embed = self._embed(RegistrationRow("kuuchan", None, "Satania"))
        assert "manual check" in embed.fields[0].value

    def test_unregistered_member(self):
        embed = self._embed(None)
        assert [f.name for f in embed.fields] == ["Issue", "Username", "Display Name", "User ID"]
        assert embed.fields[3].value == "7"
