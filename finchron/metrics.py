"""
Per-asset monthly time series.

Each ModelAsset keeps one TrackedMetric per Metric. During a month the
metric's ``current`` Currency accumulates; at the month boundary
``snapshot()`` appends it to ``history`` and resets it. Balance-like
metrics (value, accumulated) are snapshotted with ``keep=True`` so the
running level carries over.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterator, List, Optional

import numpy as np
import pandas as pd

from .currency import Currency
from .date_int import DateInt
from .utils import month_index

__all__ = ["Metric", "TrackedMetric", "MetricSet", "BALANCE_METRICS"]


class Metric(str, Enum):
    VALUE = "value"
    EARNING = "earning"
    INCOME = "income"
    AFTER_TAX = "after_tax"
    AFTER_EXPENSE = "after_expense"
    ACCUMULATED = "accumulated"
    SHORT_TERM_CAPITAL_GAIN = "short_term_capital_gain"
    LONG_TERM_CAPITAL_GAIN = "long_term_capital_gain"
    CAPITAL_GAINS_TAX = "capital_gains_tax"
    RMD = "rmd"
    SOCIAL_SECURITY = "social_security"
    MEDICARE = "medicare"
    INCOME_TAX = "income_tax"
    ESTIMATED_TAX = "estimated_tax"
    PROPERTY_TAX = "property_tax"
    MORTGAGE_PAYMENT = "mortgage_payment"
    MORTGAGE_INTEREST = "mortgage_interest"
    MORTGAGE_PRINCIPAL = "mortgage_principal"
    IRA_CONTRIBUTION = "ira_contribution"
    FOUR_01K_CONTRIBUTION = "401k_contribution"
    ROTH_CONTRIBUTION = "roth_contribution"
    IRA_DISTRIBUTION = "ira_distribution"
    FOUR_01K_DISTRIBUTION = "401k_distribution"
    ROTH_DISTRIBUTION = "roth_distribution"
    INTEREST_INCOME = "interest_income"
    QUALIFIED_DIVIDEND = "qualified_dividend"
    CREDIT = "credit"
    CASH_FLOW = "cash_flow"


BALANCE_METRICS = frozenset({Metric.VALUE, Metric.ACCUMULATED})
"""Metrics whose level carries across month boundaries."""


class TrackedMetric:
    """A metric's in-month accumulator plus its monthly history."""

    __slots__ = ("metric", "current", "history")

    def __init__(self, metric: Metric):
        self.metric = metric
        self.current = Currency()
        self.history: List[float] = []

    def initialize(self) -> None:
        self.current = Currency()
        self.history = []

    def add(self, amount: Currency | float) -> None:
        self.current.add(amount)

    def subtract(self, amount: Currency | float) -> None:
        self.current.subtract(amount)

    def set(self, amount: Currency | float) -> None:
        self.current = Currency(amount)

    def snapshot(self, keep: bool = False) -> None:
        self.history.append(self.current.amount)
        if not keep:
            self.current.zero()

    def total(self) -> Currency:
        return Currency(float(np.sum(self.history)) if self.history else 0.0)

    def last(self) -> Optional[float]:
        return self.history[-1] if self.history else None


class MetricSet:
    """One TrackedMetric per Metric, addressed by Metric."""

    def __init__(self):
        self._metrics: Dict[Metric, TrackedMetric] = {m: TrackedMetric(m) for m in Metric}

    def __getitem__(self, metric: Metric) -> TrackedMetric:
        return self._metrics[Metric(metric)]

    def __iter__(self) -> Iterator[TrackedMetric]:
        return iter(self._metrics.values())

    def initialize(self) -> None:
        for tracked in self:
            tracked.initialize()

    def snapshot_all(self) -> None:
        for tracked in self:
            tracked.snapshot(keep=tracked.metric in BALANCE_METRICS)

    def to_frame(self, start: DateInt) -> pd.DataFrame:
        """Monthly histories as a DataFrame indexed by monthly periods from *start*.

        Metrics that never moved are left out.
        """
        columns = {
            tracked.metric.value: tracked.history
            for tracked in self
            if tracked.history and any(tracked.history)
        }
        months = max((len(h) for h in columns.values()), default=0)
        return pd.DataFrame(columns, index=month_index(start, months))
