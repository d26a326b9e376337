"""General utilities for FinChron

Contents
--------
- Logging (per-category loggers, level setup from AppSettings)
- Rate helpers (annual -> monthly, percent text parsing)
- Array helpers (ensure_1d, month_index)
- Finance helpers (drawdown, CAGR)
- Reporting helpers (yearly_table)
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    from .config import AppSettings
    from .date_int import DateInt
    from .financials import FinancialPackage

__all__ = [
    # Logging
    "LogCategory",
    "get_logger",
    "configure_logging",
    # Rates
    "annual_to_monthly",
    "parse_rate",
    # Arrays / Index
    "ensure_1d",
    "month_index",
    # Finance
    "drawdown",
    "compute_cagr",
    # Reporting
    "yearly_table",
]

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

ROOT_LOGGER_NAME = "finchron"


class LogCategory(str, Enum):
    """Subsystems that log under their own ``finchron.<category>`` logger."""

    GENERAL = "general"
    INIT = "init"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    TAX = "tax"
    TRANSFER = "transfer"
    SANITY = "sanity"
    STORAGE = "storage"


def get_logger(category: LogCategory = LogCategory.GENERAL) -> logging.Logger:
    """Return the logger of a category (``finchron.tax``, ``finchron.sanity``...)."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{LogCategory(category).value}")


def configure_logging(
    settings: Optional[AppSettings] = None,
    *,
    level: Optional[str] = None,
    categories: Optional[Iterable[LogCategory]] = None,
) -> logging.Logger:
    """Attach a stream handler to the ``finchron`` root logger.

    The level comes from *level* if given, else from ``settings.log_level``
    (``FINCHRON_LOG_LEVEL``), else WARNING. When *categories* is given only
    those categories log below WARNING; the others are held at WARNING.
    Calling it again replaces the handler instead of stacking a new one.
    """
    if level is None:
        level = settings.log_level if settings is not None else "WARNING"
    if settings is not None and settings.debug:
        level = "DEBUG"

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    for handler in list(root.handlers):
        if getattr(handler, "_finchron", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s [%(name)s] %(message)s"))
    handler._finchron = True  # type: ignore[attr-defined]
    root.addHandler(handler)

    if categories is not None:
        enabled = {LogCategory(c) for c in categories}
        for category in LogCategory:
            get_logger(category).setLevel(
                logging.NOTSET if category in enabled else logging.WARNING
            )
    return root


# ---------------------------------------------------------------------------
# Rate helpers
# ---------------------------------------------------------------------------

def annual_to_monthly(r_annual: float) -> float:
    """Convert an annual rate to the simple monthly rate used by the engine.

    Uses r_a / 12 (nominal, not compounded): growth, interest and mortgage
    amortization all quote monthly rates this way.
    """
    return float(r_annual) / 12.0


def parse_rate(value: float | str | None) -> float:
    """Parse an annual rate given as a decimal (0.07) or percent text ("7%").

    Returns 0.0 for empty or unparseable text.
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text:
        return 0.0
    is_percent = text.endswith("%")
    try:
        number = float(text.rstrip("%").strip())
    except ValueError:
        return 0.0
    return number / 100.0 if is_percent else number


# ---------------------------------------------------------------------------
# Array helpers
# ---------------------------------------------------------------------------
ArrayLike = Sequence[float] | np.ndarray | pd.Series


def ensure_1d(a: ArrayLike, *, name: str = "array") -> np.ndarray:
    """Convert input to a 1-D float NumPy array with helpful error messages."""
    arr = np.asarray(a, dtype=float)
    if arr.ndim != 1:
        raise ValueError(f"{name} must be 1-D, got shape {arr.shape}.")
    if not np.isfinite(arr).all():
        raise ValueError(f"{name} must contain only finite values.")
    return arr


def month_index(start: DateInt, months: int) -> pd.PeriodIndex:
    """Construct a monthly PeriodIndex of *months* periods starting at *start*."""
    if months <= 0:
        return pd.PeriodIndex([], freq="M")
    return pd.period_range(start=start.to_period(), periods=months, freq="M")


# ---------------------------------------------------------------------------
# Finance helpers
# ---------------------------------------------------------------------------

def drawdown(series: pd.Series) -> pd.Series:
    """Return drawdown series: (W - cummax(W)) / cummax(W).

    Returns zeros for non-positive running maxima to avoid division by zero.
    """
    if series.empty:
        return series.copy()
    s = series.astype(float)
    running_max = s.cummax()
    with np.errstate(divide="ignore", invalid="ignore"):
        dd = (s - running_max) / running_max
        dd[running_max <= 0] = 0.0
    dd.name = getattr(series, "name", None) or "drawdown"
    return dd


def compute_cagr(start_value: float, finish_value: float, months: int) -> float:
    """Compound annual growth rate between two values *months* apart.

    Returns 0.0 when either value is non-positive or the span is empty.
    """
    if start_value <= 0 or finish_value <= 0 or months <= 0:
        return 0.0
    years = months / 12.0
    return float((finish_value / start_value) ** (1.0 / years) - 1.0)


# ---------------------------------------------------------------------------
# Reporting helpers
# ---------------------------------------------------------------------------

def yearly_table(history: Sequence[Tuple[int, FinancialPackage]]) -> pd.DataFrame:
    """Build a year-indexed table from archived yearly packages.

    Columns are the package buckets plus ``total_income``, ``total_taxes``
    and ``cash_flow``. An empty history gives an empty frame.
    """
    if not history:
        return pd.DataFrame()
    rows = {}
    for year, package in history:
        row = package.to_series()
        row["total_income"] = package.total_income().amount
        row["total_taxes"] = package.total_taxes().amount
        row["cash_flow"] = package.cash_flow().amount
        rows[year] = row
    df = pd.DataFrame.from_dict(rows, orient="index")
    df.index.name = "year"
    return df.sort_index()
