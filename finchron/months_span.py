"""
Chart bucketing for a simulated span.

Purpose
-------
Long simulations are charted at coarser granularity: month by month up to
three years, by quarter up to seven, by half year up to eighteen, and by
year beyond that. ``offset_months`` is the number of leading months before
the first calendar-standard boundary (quarter, half year or year), so that
buckets line up with the calendar instead of the arbitrary start month.

Example
-------
>>> MonthsSpan.build(DateInt(202002), DateInt(202612))
MonthsSpan(total_months=82, combine_months=3, offset_months=2)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import numpy as np

from .constants import MONTHLY_SPAN_MAX, QUARTERLY_SPAN_MAX, SEMI_ANNUAL_SPAN_MAX
from .date_int import DateInt, diff_months
from .types import MonthsSpanDict
from .utils import ArrayLike, ensure_1d

__all__ = ["MonthsSpan"]


@dataclass(frozen=True)
class MonthsSpan:
    """
    Bucketing granularity for a span of months.

    Attributes
    ----------
    total_months : int
        ``diff_months(first, last)``.
    combine_months : int
        Bucket size: 1, 3, 6 or 12.
    offset_months : int
        Leading months before the first aligned bucket boundary.
    """

    total_months: int
    combine_months: int = 1
    offset_months: int = 0

    def __post_init__(self):
        if self.combine_months not in (1, 3, 6, 12):
            raise ValueError(f"combine_months must be 1, 3, 6 or 12, got {self.combine_months}")
        if not 0 <= self.offset_months < self.combine_months:
            raise ValueError(f"offset_months out of range: {self.offset_months}")

    @classmethod
    def build(cls, first: DateInt, last: DateInt) -> "MonthsSpan":
        total = diff_months(first, last)
        month = first.month

        if total <= MONTHLY_SPAN_MAX:
            return cls(total, 1, 0)

        if total <= QUARTERLY_SPAN_MAX:
            if month in (2, 5, 8, 11):
                offset = 2
            elif month in (3, 6, 9, 12):
                offset = 1
            else:
                offset = 0
            return cls(total, 3, offset)

        if total <= SEMI_ANNUAL_SPAN_MAX:
            if 1 < month < 7:
                offset = 7 - month
            elif month > 7:
                offset = 13 - month
            else:
                offset = 0
            return cls(total, 6, offset)

        return cls(total, 12, 13 - month if month > 1 else 0)

    def aggregate(self, values: ArrayLike, how: Literal["sum", "last"] = "sum") -> np.ndarray:
        """
        Bucket a monthly series.

        The first bucket holds the ``offset_months`` leading months (when
        non-zero); every following bucket holds ``combine_months`` months,
        the last one possibly fewer. ``how="sum"`` adds flows,
        ``how="last"`` samples balances at the end of each bucket.
        """
        arr = ensure_1d(values, name="values")
        if arr.size == 0 or self.combine_months == 1:
            return arr.copy()

        starts = [0] if self.offset_months == 0 else [0, self.offset_months]
        starts.extend(range(starts[-1] + self.combine_months, arr.size, self.combine_months))
        starts = np.asarray([s for s in starts if s < arr.size], dtype=int)

        if how == "sum":
            return np.add.reduceat(arr, starts)
        if how == "last":
            ends = np.append(starts[1:], arr.size) - 1
            return arr[ends]
        raise ValueError(f"how must be 'sum' or 'last', got {how!r}")

    def to_dict(self) -> MonthsSpanDict:
        return {
            "total_months": self.total_months,
            "combine_months": self.combine_months,
            "offset_months": self.offset_months,
        }
