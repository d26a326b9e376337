"""
Compact year/month dates for the simulation clock.

Purpose
-------
DateInt is the simulation's calendar value: a year and a month whose
canonical integer form is ``year * 100 + month`` (202501 for January 2025).
It also carries a ``tick``, a sub-month progress counter the Chronometer
uses to pace its loop at finer granularity than whole months. The tick
never participates in ordering or equality.

Key components
--------------
- DateInt : mutable calendar cursor with month and tick stepping
- diff_months : signed whole-month distance between two dates

Tick cadence
------------
Every month holds seven ticks: 1, 5, 10, 15, 20, 25, 30. ``next()`` goes
1 -> 5 and otherwise adds 5; stepping past 30 resets the tick to 1 and
moves to the next calendar month. ``prev()`` mirrors it.

Example
-------
>>> d = DateInt.parse("2024-12")
>>> for _ in range(7):
...     d.next()
>>> str(d), d.tick, d.is_new_years_day()
('2025-01', 1, True)
"""

from __future__ import annotations

import calendar
import re
from datetime import date
from functools import total_ordering
from typing import Optional

import pandas as pd

from .constants import TICK_LIMIT, TICK_START, TICK_STEP
from .exceptions import TimeIndexError
from .types import DateIntDict

__all__ = ["DateInt", "diff_months"]

_TEXT_FORM = re.compile(r"^\s*(\d{4})-(\d{1,2})(?:-\d{1,2})?\s*$")


@total_ordering
class DateInt:
    """
    Year/month calendar value with a sub-month tick.

    Parameters
    ----------
    yyyymm : int
        Canonical form, e.g. 202501 for January 2025.

    Raises
    ------
    TimeIndexError
        If the month part is outside 1..12.
    """

    __slots__ = ("year", "month", "tick")

    def __init__(self, yyyymm: int):
        yyyymm = int(yyyymm)
        year, month = divmod(yyyymm, 100)
        if not 1 <= month <= 12:
            raise TimeIndexError(f"month must be in 1..12, got {month} (from {yyyymm})")
        self.year = year
        self.month = month
        self.tick = TICK_START

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_parts(cls, year: int, month: int) -> "DateInt":
        if not 1 <= int(month) <= 12:
            raise TimeIndexError(f"month must be in 1..12, got {month}")
        return cls(int(year) * 100 + int(month))

    @classmethod
    def parse(cls, text: str) -> "DateInt":
        """
        Parse "YYYY-MM" (an ISO "YYYY-MM-DD" day part is accepted and ignored).

        Raises
        ------
        TimeIndexError
            If *text* is not in that form or the month is invalid.
        """
        match = _TEXT_FORM.match(str(text))
        if match is None:
            raise TimeIndexError(f"Cannot parse {text!r} as YYYY-MM")
        return cls.from_parts(int(match.group(1)), int(match.group(2)))

    @classmethod
    def from_date(cls, value: date) -> "DateInt":
        return cls.from_parts(value.year, value.month)

    @classmethod
    def today(cls) -> "DateInt":
        """Current year and month; the day of month is ignored."""
        return cls.from_date(date.today())

    @classmethod
    def from_dict(cls, data: DateIntDict) -> "DateInt":
        return cls.from_parts(data["year"], data["month"])

    def copy(self) -> "DateInt":
        clone = DateInt(self.to_int())
        clone.tick = self.tick
        return clone

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def to_int(self) -> int:
        return self.year * 100 + self.month

    def format(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def __str__(self) -> str:
        return self.format()

    def __repr__(self) -> str:
        return f"DateInt({self.to_int()}, tick={self.tick})"

    def last_day_of_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    def to_iso_string(self, end_of_month: bool = False) -> str:
        """ISO date on the first (or, with *end_of_month*, last) day of the month."""
        day = self.last_day_of_month() if end_of_month else 1
        return f"{self.format()}-{day:02d}"

    def to_date(self) -> date:
        return date(self.year, self.month, 1)

    def to_period(self) -> pd.Period:
        return pd.Period(year=self.year, month=self.month, freq="M")

    def to_dict(self) -> DateIntDict:
        return {"year": self.year, "month": self.month}

    # ------------------------------------------------------------------
    # Comparison (canonical form only, tick ignored)
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DateInt):
            return NotImplemented
        return self.to_int() == other.to_int()

    def __lt__(self, other: "DateInt") -> bool:
        if not isinstance(other, DateInt):
            return NotImplemented
        return self.to_int() < other.to_int()

    __hash__ = None  # mutable

    def is_before(self, other: "DateInt") -> bool:
        return self.to_int() < other.to_int()

    def is_after(self, other: "DateInt") -> bool:
        return self.to_int() > other.to_int()

    def is_between(self, start: "DateInt", finish: "DateInt") -> bool:
        """Inclusive on both ends."""
        return start.to_int() <= self.to_int() <= finish.to_int()

    @staticmethod
    def diff_months(start: Optional["DateInt"], finish: Optional["DateInt"]) -> int:
        return diff_months(start, finish)

    # ------------------------------------------------------------------
    # Calendar stepping
    # ------------------------------------------------------------------

    def next_month(self) -> "DateInt":
        if self.month == 12:
            self.year += 1
            self.month = 1
        else:
            self.month += 1
        return self

    def prev_month(self) -> "DateInt":
        if self.month == 1:
            self.year -= 1
            self.month = 12
        else:
            self.month -= 1
        return self

    def add_months(self, months: int) -> "DateInt":
        """Shift by *months* (negative allowed) without looping month by month."""
        total = self.year * 12 + (self.month - 1) + int(months)
        self.year, month_index = divmod(total, 12)
        self.month = month_index + 1
        return self

    # ------------------------------------------------------------------
    # Tick stepping (Chronometer only)
    # ------------------------------------------------------------------

    def next(self) -> "DateInt":
        if self.tick == TICK_START:
            self.tick = TICK_STEP
        else:
            self.tick += TICK_STEP
        if self.tick > TICK_LIMIT:
            self.tick = TICK_START
            self.next_month()
        return self

    def prev(self) -> "DateInt":
        if self.tick == TICK_STEP:
            self.tick = TICK_START
        else:
            self.tick -= TICK_STEP
        if self.tick < TICK_START:
            self.tick = TICK_LIMIT
            self.prev_month()
        return self

    def is_month_start(self) -> bool:
        return self.tick == TICK_START

    def is_month_end(self) -> bool:
        return self.tick == TICK_LIMIT

    def is_new_years_day(self) -> bool:
        return self.month == 1 and self.tick == TICK_START


def diff_months(start: Optional[DateInt], finish: Optional[DateInt]) -> int:
    """
    Signed whole-month distance from *start* to *finish*.

    Antisymmetric: ``diff_months(a, b) == -diff_months(b, a)``. Returns 0
    when either side is missing.
    """
    if start is None or finish is None:
        return 0
    return (finish.year - start.year) * 12 + (finish.month - start.month)
