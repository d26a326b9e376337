"""
Chronometer: the time-stepped driver of a simulation run.

Purpose
-------
Walks a cursor DateInt from the portfolio's first month to its last, seven
ticks per month, and fires the lifecycle hooks of the Portfolio and of its
TaxTable in a fixed order:

1. ``portfolio.initialize_chron()`` then ``tax_table.initialize_chron(first_date)``
2. per tick: ``portfolio.apply_month(cursor)`` (months elapsed are summed
   into ``portfolio.total_months``), then advance the cursor; when the tick
   wraps to 1 the monthly hooks fire, and when the wrap lands on January
   the yearly hooks fire:
   ``portfolio.apply_year``, ``tax_table.apply_year(portfolio.yearly)``,
   ``portfolio.yearly_chron``, ``tax_table.yearly_chron``
3. ``portfolio.finalize_chron()`` then ``tax_table.finalize_chron()``

Key components
--------------
- run : synchronous run, returns True when it completed
- run_animated : asyncio coroutine pacing every tick with a delay; it stops
  as soon as its container is no longer live, without finalizing
- LiveContainer : what an animated run renders into

Example
-------
>>> from finchron.chronometer import run
>>> run(portfolio)
True
>>> portfolio.total_months
24
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Callable, Optional

from typing_extensions import Protocol, runtime_checkable

from .constants import DEFAULT_ANIMATION_DELAY
from .date_int import DateInt
from .utils import LogCategory, get_logger

if TYPE_CHECKING:
    from .portfolio import Portfolio

__all__ = ["LiveContainer", "run", "run_animated"]

logger = get_logger(LogCategory.GENERAL)

TickCallback = Callable[[DateInt], None]


@runtime_checkable
class LiveContainer(Protocol):
    """Display surface of an animated run; the run stops once it is gone."""

    def is_live(self) -> bool:
        ...


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------

def _can_run(portfolio: Portfolio) -> bool:
    if not portfolio.model_assets:
        logger.warning("%s: no model assets, nothing to simulate", portfolio.name)
        return False
    if portfolio.first_date_int is None or portfolio.last_date_int is None:
        logger.warning("%s: no simulation span", portfolio.name)
        return False
    return True


def _start(portfolio: Portfolio) -> DateInt:
    portfolio.initialize_chron()
    portfolio.tax_table.initialize_chron(portfolio.first_date_int)
    cursor = portfolio.first_date_int.copy()
    cursor.tick = 1
    logger.info("Running %s from %s to %s", portfolio.name, portfolio.first_date_int, portfolio.last_date_int)
    return cursor


def _advance(portfolio: Portfolio, cursor: DateInt) -> None:
    """Move the cursor one tick and fire the month and year boundary hooks."""
    tax_table = portfolio.tax_table
    cursor.next()
    if cursor.is_month_start():
        portfolio.monthly_chron(cursor)
        tax_table.monthly_chron(cursor)
        if cursor.is_new_years_day():
            portfolio.apply_year(cursor)
            tax_table.apply_year(portfolio.yearly)
            portfolio.yearly_chron(cursor)
            tax_table.yearly_chron(cursor)


def _finish(portfolio: Portfolio) -> None:
    portfolio.finalize_chron()
    portfolio.tax_table.finalize_chron()


# ---------------------------------------------------------------------------
# Runs
# ---------------------------------------------------------------------------

def run(portfolio: Portfolio, *, on_tick: Optional[TickCallback] = None) -> bool:
    """
    Simulate *portfolio* over its whole span.

    Runs synchronously and returns once the last month is done; use
    ``run_animated`` to drive a run from an asyncio event loop.

    Parameters
    ----------
    portfolio : Portfolio
    on_tick : callable, optional
        Called with the cursor after every ``apply_month``.

    Returns
    -------
    bool
        False when there was nothing to simulate, True otherwise.
    """
    if not _can_run(portfolio):
        return False

    cursor = _start(portfolio)
    last = portfolio.last_date_int.to_int()
    total_months = 0
    while cursor.to_int() <= last:
        total_months += portfolio.apply_month(cursor)
        if on_tick is not None:
            on_tick(cursor)
        _advance(portfolio, cursor)
        portfolio.total_months = total_months

    _finish(portfolio)
    return True


async def run_animated(
    portfolio: Portfolio,
    container: Optional[LiveContainer],
    *,
    delay: float = DEFAULT_ANIMATION_DELAY,
    on_tick: Optional[TickCallback] = None,
) -> bool:
    """
    Simulate *portfolio* one tick at a time, sleeping *delay* seconds after
    every ``apply_month``.

    The run is abandoned, without finalizing, as soon as *container* is
    missing or no longer live; the portfolio keeps the state it had at
    that tick and ``portfolio.summary`` stays None.

    Returns
    -------
    bool
        True when the whole span was simulated, False when there was
        nothing to simulate or the run was abandoned.
    """
    if not _can_run(portfolio):
        return False

    cursor = _start(portfolio)
    last = portfolio.last_date_int.to_int()
    total_months = 0
    while cursor.to_int() <= last:
        if container is None or not container.is_live():
            logger.info("%s: animated run stopped at %s", portfolio.name, cursor)
            return False
        total_months += portfolio.apply_month(cursor)
        if on_tick is not None:
            on_tick(cursor)
        await asyncio.sleep(delay)
        _advance(portfolio, cursor)
        portfolio.total_months = total_months

    _finish(portfolio)
    return True
