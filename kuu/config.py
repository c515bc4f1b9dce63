"""
kuu.config — YAML Configuration Loader
=======================================

Reads ``config.yaml`` for server identity (role, channel and emoji IDs),
scheduling, and game tuning.  Secrets (bot token, database URL) stay in
``.env`` and are read by :mod:`kuu.bot.__main__`.

Usage::

    from kuu.config import load_config

    cfg = load_config()              # reads ./config.yaml by default
    print(cfg.guild_id)              # 1468816181854081229
    print(cfg.channel_ids.birthday)  # where birthdays are announced
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

LEAP_DAY_RULES = ("feb28", "mar1")


# ---------------------------------------------------------------------------
# Typed settings objects
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class RoleIds:
    intro: int
    freshie: int
    member: int
    birthday: int
    it_manager: int
    admin: int


@dataclass(frozen=True, slots=True)
class ChannelIds:
    intro: int
    verification: int
    birthday: int
    event: int  # treasurer game channel


@dataclass(frozen=True, slots=True)
class EmojiIds:
    kuuchan_breakdown: int | None = None
    irys_heart: int | None = None
    satania_thumbs_up: int | None = None


@dataclass(frozen=True, slots=True)
class KuuConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    guild_id: int
    role_ids: RoleIds
    channel_ids: ChannelIds
    emoji_ids: EmojiIds

    # Verification
    kick_timeout_seconds: float = 60.0
    registration_csv_url: str | None = None

    # Birthdays
    timezone: str = "Asia/Kuala_Lumpur"
    birthday_announce_time: time = time(0, 0, 59)
    upcoming_limit: int = 10
    leap_day_rule: str = "feb28"

    # Files
    messages_dir: Path = Path("messages")
    events_dir: Path = Path("events")

    # Treasurer game
    treasurer_answer_timeout: float | None = None

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def announce_time(self) -> time:
        """The daily announcement time, anchored to :attr:`timezone`."""
        return self.birthday_announce_time.replace(tzinfo=self.tz)


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------
def _optional_int(value) -> int | None:
    return int(value) if value else None


def _parse_time(raw: str | int) -> time:
    # YAML 1.1 reads an unquoted 7:15:00 as a base-60 integer (26100).
    if isinstance(raw, int):
        minutes, seconds = divmod(raw, 60)
        hours, minutes = divmod(minutes, 60)
        if hours > 23:
            raise ValueError(f"Invalid birthday_announce_time: {raw!r}")
        return time(hours, minutes, seconds)
    try:
        return time.fromisoformat(str(raw))
    except ValueError as exc:
        raise ValueError(f"Invalid birthday_announce_time: {raw!r} (expected HH:MM[:SS])") from exc


def _validate_timezone(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {name!r}") from exc
    return name


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def parse_config(raw: dict) -> KuuConfig:
    """Build a :class:`KuuConfig` from an already-parsed YAML mapping.

    Raises
    ------
    KeyError
        If a required key is missing.
    ValueError
        If the timezone, announcement time or leap-day rule is invalid.
    """
    roles = raw["role_ids"]
    channels = raw["channel_ids"]
    emojis = raw.get("emoji_ids") or {}

    leap_day_rule = raw.get("leap_day_rule", "feb28")
    if leap_day_rule not in LEAP_DAY_RULES:
        raise ValueError(
            f"Unsupported leap_day_rule: {leap_day_rule!r} (expected one of {LEAP_DAY_RULES})"
        )

    answer_timeout = raw.get("treasurer_answer_timeout")

    return KuuConfig(
        guild_id=int(raw["guild_id"]),
        role_ids=RoleIds(
            intro=int(roles["intro"]),
            freshie=int(roles["freshie"]),
            member=int(roles["member"]),
            birthday=int(roles["birthday"]),
            it_manager=int(roles["it_manager"]),
            admin=int(roles["admin"]),
        ),
        channel_ids=ChannelIds(
            intro=int(channels["intro"]),
            verification=int(channels["verification"]),
            birthday=int(channels["birthday"]),
            event=int(channels["event"]),
        ),
        emoji_ids=EmojiIds(
            kuuchan_breakdown=_optional_int(emojis.get("kuuchan_breakdown")),
            irys_heart=_optional_int(emojis.get("irys_heart")),
            satania_thumbs_up=_optional_int(emojis.get("satania_thumbs_up")),
        ),
        kick_timeout_seconds=float(raw.get("kick_timeout_seconds", 60)),
        registration_csv_url=raw.get("registration_csv_url") or None,
        timezone=_validate_timezone(raw.get("timezone", "Asia/Kuala_Lumpur")),
        birthday_announce_time=_parse_time(raw.get("birthday_announce_time", "00:00:59")),
        upcoming_limit=int(raw.get("upcoming_limit", 10)),
        leap_day_rule=leap_day_rule,
        messages_dir=Path(raw.get("messages_dir", "messages")),
        events_dir=Path(raw.get("events_dir", "events")),
        treasurer_answer_timeout=float(answer_timeout) if answer_timeout else None,
    )


def load_config(path: str | Path = "config.yaml") -> KuuConfig:
    """Read *path* and return a :class:`KuuConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh)

    return parse_config(raw)
