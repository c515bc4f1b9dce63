"""
kuu.services.birthday_service — Birthday Store
===============================================

Synchronous store functions over the ``discord_members`` table.  Cogs call
them through :func:`kuu.database.engine.run_db`.

Failure policy:
    Writes never raise to the caller.  Any ``SQLAlchemyError`` is logged and
    reported as ``False``, meaning "nothing changed".

    :func:`unset_birthday` on a member with no row is a successful no-op:
    the UPDATE matched nothing, which is not an error.  ``/birthday unset``
    checks :func:`has_set_birthday` first to tell the user.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from kuu.database.engine import get_session
from kuu.database.models import DiscordMember
from kuu.engine.birthdays import BirthdayDate, BirthdayRecord, DateWithYear, birthday_from_row

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


def _to_record(row: DiscordMember) -> BirthdayRecord:
    birthday = (
        birthday_from_row(row.birthday, row.has_birth_year)
        if row.birthday is not None
        else None
    )
    return BirthdayRecord(member_id=row.discord_id, birthday=birthday)


def set_birthday(engine: Engine, member_id: str | int, birthday: BirthdayDate) -> bool:
    """Insert or update *member_id*'s birthday.  Returns success."""
    member_id = str(member_id)
    has_birth_year = isinstance(birthday, DateWithYear)
    try:
        with get_session(engine) as session:
            row = session.get(DiscordMember, member_id)
            if row is None:
                try:
                    with session.begin_nested():   # SAVEPOINT
                        session.add(
                            DiscordMember(
                                discord_id=member_id,
                                birthday=birthday.to_storage_date(),
                                has_birth_year=has_birth_year,
                            )
                        )
                        session.flush()
                except IntegrityError:
                    # Another writer inserted the row first; update theirs.
                    row = session.get(DiscordMember, member_id)
                    if row is None:
                        raise
            if row is not None:
                row.birthday = birthday.to_storage_date()
                row.has_birth_year = has_birth_year
    except SQLAlchemyError:
        logger.exception(
            "Failed to set birthday for member %s", member_id,
            extra={"member_id": member_id},
        )
        return False

    logger.info("Birthday set for member %s", member_id)
    return True


def unset_birthday(engine: Engine, member_id: str | int) -> bool:
    """Null *member_id*'s birthday.  No row is still success."""
    member_id = str(member_id)
    try:
        with get_session(engine) as session:
            result = session.execute(
                update(DiscordMember)
                .where(DiscordMember.discord_id == member_id)
                .values(birthday=None, has_birth_year=False)
            )
    except SQLAlchemyError:
        logger.exception(
            "Failed to unset birthday for member %s", member_id,
            extra={"member_id": member_id},
        )
        return False

    logger.info("Birthday unset for member %s (%d row(s))", member_id, result.rowcount)
    return True


def has_set_birthday(engine: Engine, member_id: str | int) -> bool:
    """True iff *member_id* has a row with a non-null birthday."""
    try:
        with get_session(engine) as session:
            row = session.get(DiscordMember, str(member_id))
            return row is not None and row.birthday is not None
    except SQLAlchemyError:
        logger.exception("Failed to look up birthday for member %s", member_id)
        return False


def get_birthday(engine: Engine, member_id: str | int) -> BirthdayRecord | None:
    """The stored record for *member_id*, or None if it was never created."""
    with get_session(engine) as session:
        row = session.get(DiscordMember, str(member_id))
        return _to_record(row) if row is not None else None


def fetch_all_with_birthday(engine: Engine) -> list[BirthdayRecord]:
    """Every record with a birthday set, unordered."""
    with get_session(engine) as session:
        rows = session.scalars(
            select(DiscordMember).where(DiscordMember.birthday.is_not(None))
        ).all()
        return [_to_record(row) for row in rows]
