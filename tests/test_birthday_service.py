"""
tests/test_birthday_service.py — Birthday Store Tests
======================================================

Runs the store functions against the in-memory SQLite engine from conftest.
"""

from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from kuu.database.models import DiscordMember
from kuu.engine.birthdays import BirthdayRecord, DateWithoutYear, DateWithYear
from kuu.services import birthday_service
from kuu.services.birthday_service import (
    fetch_all_with_birthday,
    get_birthday,
    has_set_birthday,
    set_birthday,
    unset_birthday,
)


@pytest.fixture
def engine(db_engine):
    """Re-use the shared conftest db_engine (SQLite, StaticPool)."""
    return db_engine


class TestSetBirthday:

    def test_insert_with_year(self, engine):
        assert set_birthday(engine, 111, DateWithYear(date(2003, 1, 30)))
        assert get_birthday(engine, 111) == BirthdayRecord("111", DateWithYear(date(2003, 1, 30)))

    def test_insert_without_year(self, engine):
        assert set_birthday(engine, "222", DateWithoutYear(2, 29))

        with Session(engine) as session:
            row = session.get(DiscordMember, "222")
            assert row.birthday == date(2000, 2, 29)
            assert row.has_birth_year is False

        assert get_birthday(engine, 222).birthday == DateWithoutYear(2, 29)

    def test_update_replaces_date_and_year_flag(self, engine):
        set_birthday(engine, 111, DateWithYear(date(2003, 1, 30)))
        set_birthday(engine, 111, DateWithoutYear(5, 6))

        record = get_birthday(engine, 111)
        assert record.birthday == DateWithoutYear(5, 6)
        assert not record.has_birth_year

    def test_one_row_per_member(self, engine):
        set_birthday(engine, 111, DateWithoutYear(1, 1))
        set_birthday(engine, 111, DateWithoutYear(1, 2))

        with Session(engine) as session:
            assert session.query(DiscordMember).count() == 1

    def test_concurrent_insert_updates_existing_row(self, engine):
        set_birthday(engine, "42", DateWithYear(date(2001, 5, 5)))

        # First lookup misses, as if the other writer committed just after it.
        original_get = Session.get
        misses = [None]

        def racing_get(self, *args, **kwargs):
            if misses:
                return misses.pop()
            return original_get(self, *args, **kwargs)

        with patch.object(Session, "get", racing_get):
            assert set_birthday(engine, "42", DateWithYear(date(1999, 1, 2))) is True

        assert get_birthday(engine, "42").birthday == DateWithYear(date(1999, 1, 2))
        with Session(engine) as session:
            assert session.query(DiscordMember).count() == 1

    def test_database_error_returns_false(self, engine):
        session = MagicMock()
        session.get.side_effect = OperationalError("SELECT", {}, Exception("down"))
        with patch.object(birthday_service, "get_session") as get_session:
            get_session.return_value.__enter__.return_value = session
            get_session.return_value.__exit__.return_value = False
            assert set_birthday(engine, 111, DateWithoutYear(1, 1)) is False


class TestUnsetBirthday:

    def test_unset_clears_date(self, engine):
        set_birthday(engine, 111, DateWithYear(date(2003, 1, 30)))
        assert unset_birthday(engine, 111)

        record = get_birthday(engine, 111)
        assert record is not None
        assert record.birthday is None
        assert not has_set_birthday(engine, 111)

    def test_unset_twice_is_harmless(self, engine):
        set_birthday(engine, 111, DateWithoutYear(3, 3))
        assert unset_birthday(engine, 111)
        assert unset_birthday(engine, 111)
        assert get_birthday(engine, 111).birthday is None

    def test_unset_unknown_member_succeeds(self, engine):
        assert unset_birthday(engine, 999)
        assert get_birthday(engine, 999) is None

    def test_database_error_returns_false(self, engine):
        session = MagicMock()
        session.execute.side_effect = OperationalError("UPDATE", {}, Exception("down"))
        with patch.object(birthday_service, "get_session") as get_session:
            get_session.return_value.__enter__.return_value = session
            get_session.return_value.__exit__.return_value = False
            assert unset_birthday(engine, 111) is False


class TestQueries:

    def test_has_set_birthday(self, engine):
        assert not has_set_birthday(engine, 111)
        set_birthday(engine, 111, DateWithoutYear(1, 1))
        assert has_set_birthday(engine, 111)

    def test_has_set_birthday_on_error_is_false(self, engine):
        session = MagicMock()
        session.get.side_effect = OperationalError("SELECT", {}, Exception("down"))
        with patch.object(birthday_service, "get_session") as get_session:
            get_session.return_value.__enter__.return_value = session
            get_session.return_value.__exit__.return_value = False
            assert has_set_birthday(engine, 111) is False

    def test_fetch_all_skips_unset(self, engine):
        set_birthday(engine, 1, DateWithoutYear(1, 1))
        set_birthday(engine, 2, DateWithYear(date(2000, 2, 2)))
        set_birthday(engine, 3, DateWithoutYear(3, 3))
        unset_birthday(engine, 3)

        records = fetch_all_with_birthday(engine)
        assert {r.member_id for r in records} == {"1", "2"}
        assert all(r.birthday is not None for r in records)

    def test_fetch_all_empty(self, engine):
        assert fetch_all_with_birthday(engine) == []
