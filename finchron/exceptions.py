"""
Custom exceptions for FinChron.

Purpose
-------
Provides a unified exception hierarchy for the input boundary of FinChron:
configuration loading, date parsing and portfolio construction. The
simulation core itself fails softly (logs and continues), so these are
raised before a run starts, never in the middle of one.

Exception Hierarchy
-------------------
FinChronError (base)
├── ConfigurationError - Invalid instrument parameters or tax settings
├── ValidationError - Data validation failures
│   └── TimeIndexError - Invalid month or malformed "YYYY-MM" text
└── SimulationError - Engine misuse (unsupported instrument dispatch)

Usage
-----
>>> from finchron.exceptions import TimeIndexError
>>>
>>> raise TimeIndexError("month must be in 1..12, got 13")
>>>
>>> # Catch all FinChron exceptions
>>> try:
...     portfolio = build_portfolio(config)
... except FinChronError as e:
...     print(f"FinChron error: {e}")
"""

__all__ = [
    "FinChronError",
    "ConfigurationError",
    "ValidationError",
    "TimeIndexError",
    "SimulationError",
]


class FinChronError(Exception):
    """
    Base exception for all FinChron errors.

    Examples
    --------
    >>> try:
    ...     load_portfolio(path)
    ... except FinChronError as e:
    ...     logger.error(f"Could not load portfolio: {e}")
    """
    pass


class ConfigurationError(FinChronError):
    """
    Invalid configuration or parameters.

    Raised when a model asset or tax table is configured inconsistently:
    - Mortgage or debt without a positive amortization term
    - Fund transfer percentage outside 0..100
    - Tax year without bracket tables

    Examples
    --------
    >>> raise ConfigurationError(
    ...     "No tax tables for tax year 1999. Available years: [2025]"
    ... )
    """
    pass


class ValidationError(FinChronError):
    """
    Data validation failures.

    Raised when input data fails validation checks, such as two model
    assets sharing a display name (transfers bind by display name).

    Examples
    --------
    >>> raise ValidationError("Duplicate display name 'Brokerage'")
    """
    pass


class TimeIndexError(ValidationError):
    """
    Month/date indexing errors.

    Raised when a DateInt is built with a month outside 1..12 or when
    "YYYY-MM" text cannot be parsed.

    Examples
    --------
    >>> raise TimeIndexError("Cannot parse '2025/01' as YYYY-MM")
    """
    pass


class SimulationError(FinChronError):
    """
    Engine misuse.

    Raised when the simulation is asked to do something it has no rule
    for, such as amortizing an instrument that carries no term.
    """
    pass
