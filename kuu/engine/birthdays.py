"""
kuu.engine.birthdays — Birthday Dates & Upcoming Ranking
==========================================================

Pure functions (no I/O, no Discord) behind the birthday features:

- :func:`parse_birthday` turns ``YYYY-MM-DD`` / ``MM-DD`` into a
  :data:`BirthdayDate`.
- :func:`next_occurrence_year` and :func:`compute_age` answer "when is the
  next one" and "how old will they turn".
- :func:`rank_upcoming` picks the next *N* birthdays for ``/birthday
  upcoming``.
- :func:`is_birthday_today` drives the daily celebration scan.

A birthday either carries a year or it doesn't.  The two cases are distinct
types so "age of a yearless birthday" cannot be computed by accident::

    compute_age(DateWithYear(date(2003, 1, 30)), today)   # → int
    compute_age(DateWithoutYear(1, 30), today)             # → TypeError

Ordering note:
    :func:`rank_upcoming` returns its result sorted by (month, day), *not*
    by actual occurrence.  When the list wraps past December, a 3 January
    birthday (next year) is listed before a 20 December birthday (this
    year).  ``/birthday upcoming`` has always displayed it this way.
"""

from __future__ import annotations

import calendar
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

__all__ = [
    "PLACEHOLDER_YEAR",
    "BirthdayDate",
    "BirthdayRecord",
    "DateWithYear",
    "DateWithoutYear",
    "InvalidBirthdayError",
    "UpcomingBirthday",
    "birthday_from_row",
    "compute_age",
    "is_birthday_today",
    "next_occurrence_year",
    "ordinal",
    "parse_birthday",
    "rank_upcoming",
]

# Yearless birthdays are stored against a leap year so 29 Feb fits.
PLACEHOLDER_YEAR = 2000

DEFAULT_UPCOMING_LIMIT = 10

_BIRTHDAY_RE = re.compile(r"^(?:(?P<year>\d{4})-)?(?P<month>\d{1,2})-(?P<day>\d{1,2})$")


class InvalidBirthdayError(ValueError):
    """Raised when a birthday string or date cannot be used."""


# ---------------------------------------------------------------------------
# BirthdayDate — DateWithYear | DateWithoutYear
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class DateWithYear:
    """A full birth date; age is meaningful."""

    value: date

    @property
    def year(self) -> int:
        return self.value.year

    @property
    def month(self) -> int:
        return self.value.month

    @property
    def day(self) -> int:
        return self.value.day

    def to_storage_date(self) -> date:
        return self.value


@dataclass(frozen=True, slots=True)
class DateWithoutYear:
    """A month and day only; age is never shown."""

    month: int
    day: int

    def __post_init__(self) -> None:
        try:
            date(PLACEHOLDER_YEAR, self.month, self.day)
        except ValueError as exc:
            raise InvalidBirthdayError(
                f"Invalid month/day combination: {self.month:02d}-{self.day:02d}"
            ) from exc

    def to_storage_date(self) -> date:
        return date(PLACEHOLDER_YEAR, self.month, self.day)


BirthdayDate = DateWithYear | DateWithoutYear


def birthday_from_row(value: date, has_birth_year: bool) -> BirthdayDate:
    """Rebuild a :data:`BirthdayDate` from its stored column pair."""
    if has_birth_year:
        return DateWithYear(value)
    return DateWithoutYear(value.month, value.day)


@dataclass(frozen=True, slots=True)
class BirthdayRecord:
    """One member's stored birthday (``None`` once unset)."""

    member_id: str
    birthday: BirthdayDate | None

    @property
    def has_birth_year(self) -> bool:
        return isinstance(self.birthday, DateWithYear)

    def age_on(self, today: date) -> int | None:
        """Age reached during *today*'s calendar year; None without a year.

        Used on the celebration day itself, where a moved 29 February
        birthday (1 March) must not count as next year's.
        """
        if not isinstance(self.birthday, DateWithYear):
            return None
        return today.year - self.birthday.year


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------
def parse_birthday(text: str, today: date | None = None) -> BirthdayDate:
    """Parse ``YYYY-MM-DD`` or ``MM-DD``.

    When *today* is given, birth dates after it are rejected.

    Raises
    ------
    InvalidBirthdayError
        For any other format, impossible dates, or future birth dates.
    """
    match = _BIRTHDAY_RE.match(text.strip())
    if match is None:
        raise InvalidBirthdayError(
            f"Invalid birthday {text!r}: expected YYYY-MM-DD or MM-DD"
        )

    month = int(match["month"])
    day = int(match["day"])
    if match["year"] is None:
        return DateWithoutYear(month, day)

    try:
        value = date(int(match["year"]), month, day)
    except ValueError as exc:
        raise InvalidBirthdayError(f"Invalid birthday {text!r}: {exc}") from exc

    if today is not None and value > today:
        raise InvalidBirthdayError(f"Birthday {text!r} is in the future")
    return DateWithYear(value)


# ---------------------------------------------------------------------------
# Occurrence & age
# ---------------------------------------------------------------------------
def _month_day(birthday: BirthdayDate | date) -> tuple[int, int]:
    return (birthday.month, birthday.day)


def next_occurrence_year(birthday: BirthdayDate, now: date) -> int:
    """Year of the next occurrence of *birthday*, counting today as upcoming."""
    if _month_day(birthday) < _month_day(now):
        return now.year + 1
    return now.year


def compute_age(birthday: BirthdayDate, now: date) -> int:
    """Age the member turns on their next birthday (today included).

    Raises
    ------
    TypeError
        If *birthday* has no year.
    """
    if not isinstance(birthday, DateWithYear):
        raise TypeError("Cannot compute the age of a birthday without a year")
    return next_occurrence_year(birthday, now) - birthday.year


def is_birthday_today(
    birthday: BirthdayDate, today: date, leap_day_rule: str = "feb28"
) -> bool:
    """Whether *birthday* is celebrated on *today*.

    29 February birthdays move to 28 February (``"feb28"``) or 1 March
    (``"mar1"``) in non-leap years.
    """
    if _month_day(birthday) == _month_day(today):
        return True

    if _month_day(birthday) == (2, 29) and not calendar.isleap(today.year):
        if leap_day_rule == "feb28":
            return _month_day(today) == (2, 28)
        if leap_day_rule == "mar1":
            return _month_day(today) == (3, 1)
        raise InvalidBirthdayError(f"Unsupported leap day rule: {leap_day_rule}")

    return False


def ordinal(number: int) -> str:
    """``1`` → ``"1st"``, ``12`` → ``"12th"``, ``22`` → ``"22nd"``."""
    last, last_two = number % 10, number % 100
    if last == 1 and last_two != 11:
        return f"{number}st"
    if last == 2 and last_two != 12:
        return f"{number}nd"
    if last == 3 and last_two != 13:
        return f"{number}rd"
    return f"{number}th"


# ---------------------------------------------------------------------------
# Upcoming ranking
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class UpcomingBirthday:
    """A birthday as listed by ``/birthday upcoming``."""

    member_id: str
    birthday: BirthdayDate
    next_occurrence_year: int
    age: int | None
    is_today: bool

    @classmethod
    def from_record(cls, record: BirthdayRecord, now: date) -> UpcomingBirthday:
        birthday = record.birthday
        if birthday is None:
            raise ValueError(f"Member {record.member_id} has no birthday set")
        return cls(
            member_id=record.member_id,
            birthday=birthday,
            next_occurrence_year=next_occurrence_year(birthday, now),
            age=compute_age(birthday, now) if isinstance(birthday, DateWithYear) else None,
            is_today=_month_day(birthday) == _month_day(now),
        )

    @property
    def has_birth_year(self) -> bool:
        return self.age is not None

    @property
    def formatted(self) -> str:
        """``"21 June 2026 (Today)"`` / ``"03 January 2027"``."""
        text = (
            f"{self.birthday.day:02d} {calendar.month_name[self.birthday.month]} "
            f"{self.next_occurrence_year}"
        )
        return f"{text} (Today)" if self.is_today else text


def rank_upcoming(
    records: Iterable[BirthdayRecord],
    now: date,
    limit: int = DEFAULT_UPCOMING_LIMIT,
) -> list[UpcomingBirthday]:
    """Pick the next *limit* birthdays from *records*.

    1. Sort by (month, day).
    2. Keep those on or after today's (month, day).
    3. If that is at least *limit*, return the first *limit*.
    4. Otherwise top up with the earliest already-passed birthdays (these
       fall next year) and re-sort the lot by (month, day).

    Raises
    ------
    ValueError
        If a record has no birthday; callers pass only set birthdays.
    """
    if limit <= 0:
        return []

    # One entry per member; a later record replaces an earlier one.
    by_member: dict[str, BirthdayRecord] = {}
    for record in records:
        if record.birthday is None:
            raise ValueError(f"Member {record.member_id} has no birthday set")
        by_member[record.member_id] = record

    ordered = sorted(by_member.values(), key=lambda r: _month_day(r.birthday))
    upcoming = [r for r in ordered if _month_day(r.birthday) >= _month_day(now)]

    if len(upcoming) >= limit:
        chosen = upcoming[:limit]
    else:
        chosen = list(upcoming)
        included = {r.member_id for r in chosen}
        for record in ordered:
            if len(chosen) >= limit:
                break
            if record.member_id in included:
                continue
            chosen.append(record)
            included.add(record.member_id)
        chosen.sort(key=lambda r: _month_day(r.birthday))

    return [UpcomingBirthday.from_record(r, now) for r in chosen]
