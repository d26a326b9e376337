"""
Global constants for FinChron.

Purpose
-------
Centralizes the default values and magic numbers of the simulation engine:
the sub-month tick cadence, chart bucketing thresholds, tax defaults and
the US retirement-account ages.

Usage
-----
>>> from finchron.constants import TICK_LIMIT, RMD_START_AGE
>>> TICK_LIMIT
30

Categories
----------
- Chronology: tick cadence and animation pacing
- Chart bucketing: MonthsSpan thresholds
- Taxes: default tax year, filing status, inflation, deduction caps
- Retirement: RMD and catch-up ages
- Accounting: tolerances and social security taxable share
"""

__all__ = [
    # Chronology
    "TICK_START",
    "TICK_STEP",
    "TICK_LIMIT",
    "PROPERTY_TAX_TICK",
    "MONTHS_PER_YEAR",
    "DEFAULT_ANIMATION_DELAY",
    # Chart bucketing
    "MONTHLY_SPAN_MAX",
    "QUARTERLY_SPAN_MAX",
    "SEMI_ANNUAL_SPAN_MAX",
    # Taxes
    "DEFAULT_TAX_YEAR",
    "DEFAULT_FILING_AS",
    "DEFAULT_INFLATION_RATE",
    "DEFAULT_PROPERTY_TAX_DEDUCTION_MAX",
    "DEFAULT_HOME_SALE_DISCOUNT",
    "HOME_SALE_HOLDING_MONTHS",
    "LONG_TERM_HOLDING_MONTHS",
    # Retirement
    "DEFAULT_START_AGE",
    "RMD_START_AGE",
    "CATCH_UP_AGE",
    # Accounting
    "SOCIAL_SECURITY_TAXABLE_SHARE",
    "SANITY_TOLERANCE",
]


# =============================================================================
# Chronology
# =============================================================================

TICK_START: int = 1
"""Tick value at the start of every calendar month."""

TICK_STEP: int = 5
"""Tick increment after the first tick (1, 5, 10, ..., 30)."""

TICK_LIMIT: int = 30
"""Last tick of a month; stepping past it wraps to the next month."""

PROPERTY_TAX_TICK: int = 15
"""Mid-month tick on which home property-tax escrow is collected."""

MONTHS_PER_YEAR: int = 12
"""Number of months per year."""

DEFAULT_ANIMATION_DELAY: float = 0.08
"""Pause in seconds between ticks of an animated run."""


# =============================================================================
# Chart Bucketing
# =============================================================================

MONTHLY_SPAN_MAX: int = 36
"""Longest span (months) still charted month by month."""

QUARTERLY_SPAN_MAX: int = 84
"""Longest span (months) charted by quarter."""

SEMI_ANNUAL_SPAN_MAX: int = 216
"""Longest span (months) charted by half year; longer spans go yearly."""


# =============================================================================
# Taxes
# =============================================================================

DEFAULT_TAX_YEAR: int = 2025
"""Tax year whose tables seed a run."""

DEFAULT_FILING_AS: str = "single"
"""Default filing status ("single" or "married")."""

DEFAULT_INFLATION_RATE: float = 0.031
"""Annual inflation applied to brackets at every year boundary."""

DEFAULT_PROPERTY_TAX_DEDUCTION_MAX: float = 40_000.0
"""Cap on itemized property-tax deductions."""

DEFAULT_HOME_SALE_DISCOUNT: float = 250_000.0
"""Capital gain excluded on the sale of a primary residence."""

HOME_SALE_HOLDING_MONTHS: int = 24
"""A home must be held longer than this to earn the sale discount."""

LONG_TERM_HOLDING_MONTHS: int = 12
"""Holdings longer than this realize long-term capital gains."""


# =============================================================================
# Retirement
# =============================================================================

DEFAULT_START_AGE: int = 57
"""Age of the user in the first simulated month."""

RMD_START_AGE: int = 73
"""Age at which required minimum distributions begin."""

CATCH_UP_AGE: int = 50
"""Age from which IRA and 401K catch-up limits apply."""


# =============================================================================
# Accounting
# =============================================================================

SOCIAL_SECURITY_TAXABLE_SHARE: float = 0.85
"""Share of social security benefits counted as ordinary income."""

SANITY_TOLERANCE: float = 0.01
"""Largest monthly transfer imbalance tolerated by the sanity check."""
