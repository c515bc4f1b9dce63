"""
kuu.database.models — SQLAlchemy 2.0 Data Models
=================================================

Tables:
- discord_members — one row per member who ever told Kuu their birthday
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Boolean, Date, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Kuu ORM models."""


# ---------------------------------------------------------------------------
# Discord members — birthday store
# ---------------------------------------------------------------------------
class DiscordMember(Base):
    """A member's birthday record.

    ``birthday`` is nulled (never deleted) when the member unsets it.
    Yearless birthdays are stored against a placeholder year with
    ``has_birth_year = False``.
    """

    __tablename__ = "discord_members"

    discord_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    birthday: Mapped[date | None] = mapped_column(Date, nullable=True, default=None)
    has_birth_year: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return (
            f"DiscordMember(discord_id={self.discord_id!r}, birthday={self.birthday!r}, "
            f"has_birth_year={self.has_birth_year!r})"
        )
