"""
Income, deduction and tax buckets aggregated by the portfolio.

Purpose
-------
FinancialPackage is the portfolio's accumulator. A ``monthly`` package
collects one month of results; at each month boundary it is added to the
``yearly`` package (the yearly snapshot handed to the TaxTable) and to the
run ``total``, then zeroed.

Sign conventions
----------------
Income, gains, contributions and distributions are positive. Expenses,
taxes and withholdings, mortgage components and property taxes are
negative (money leaving the household).

Example
-------
>>> monthly = FinancialPackage(employed_income=Currency(8000), fica=Currency(-612))
>>> yearly = FinancialPackage()
>>> yearly.add(monthly).wage_income().amount
8000.0
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Dict, Iterator, Tuple

import pandas as pd

from .constants import SOCIAL_SECURITY_TAXABLE_SHARE
from .currency import Currency
from .utils import LogCategory, get_logger

__all__ = ["FinancialPackage"]

logger = get_logger(LogCategory.YEARLY)


def _zero() -> Currency:
    return Currency()


@dataclass
class FinancialPackage:
    """Named Currency buckets for one month, one year or a whole run."""

    employed_income: Currency = field(default_factory=_zero)
    self_income: Currency = field(default_factory=_zero)
    social_security: Currency = field(default_factory=_zero)
    asset_appreciation: Currency = field(default_factory=_zero)
    expense: Currency = field(default_factory=_zero)
    fica: Currency = field(default_factory=_zero)
    income_tax: Currency = field(default_factory=_zero)
    estimated_taxes: Currency = field(default_factory=_zero)
    ira_contribution: Currency = field(default_factory=_zero)
    four01k_contribution: Currency = field(default_factory=_zero)
    roth_contribution: Currency = field(default_factory=_zero)
    ira_distribution: Currency = field(default_factory=_zero)
    four01k_distribution: Currency = field(default_factory=_zero)
    roth_distribution: Currency = field(default_factory=_zero)
    mortgage_interest: Currency = field(default_factory=_zero)
    mortgage_principal: Currency = field(default_factory=_zero)
    mortgage_escrow: Currency = field(default_factory=_zero)
    property_taxes: Currency = field(default_factory=_zero)
    short_term_capital_gains: Currency = field(default_factory=_zero)
    long_term_capital_gains: Currency = field(default_factory=_zero)
    non_qualified_dividends: Currency = field(default_factory=_zero)
    qualified_dividends: Currency = field(default_factory=_zero)
    interest_income: Currency = field(default_factory=_zero)
    long_term_capital_gains_tax: Currency = field(default_factory=_zero)

    def _buckets(self) -> Iterator[Tuple[str, Currency]]:
        for f in fields(self):
            yield f.name, getattr(self, f.name)

    # ------------------------------------------------------------------
    # Bucket arithmetic
    # ------------------------------------------------------------------

    def add(self, other: "FinancialPackage") -> "FinancialPackage":
        for name, bucket in self._buckets():
            bucket.add(getattr(other, name))
        return self

    def subtract(self, other: "FinancialPackage") -> "FinancialPackage":
        for name, bucket in self._buckets():
            bucket.subtract(getattr(other, name))
        return self

    def multiply(self, factor: float) -> "FinancialPackage":
        for _, bucket in self._buckets():
            bucket.multiply(factor)
        return self

    def zero(self) -> "FinancialPackage":
        for _, bucket in self._buckets():
            bucket.zero()
        return self

    def copy(self) -> "FinancialPackage":
        return FinancialPackage(**{name: bucket.copy() for name, bucket in self._buckets()})

    def is_empty(self) -> bool:
        return all(bucket.is_zero() for _, bucket in self._buckets())

    # ------------------------------------------------------------------
    # Derived totals
    # ------------------------------------------------------------------

    def wage_income(self) -> Currency:
        return self.employed_income.plus(self.self_income)

    def ordinary_income(self) -> Currency:
        """Ordinary, non-wage income: taxable social security, interest,
        short-term gains, tax-deferred distributions, non-qualified dividends."""
        return (
            self.social_security.times(SOCIAL_SECURITY_TAXABLE_SHARE)
            .plus(self.interest_income)
            .plus(self.short_term_capital_gains)
            .plus(self.ira_distribution)
            .plus(self.four01k_distribution)
            .plus(self.non_qualified_dividends)
        )

    def nontaxable_income(self) -> Currency:
        return self.social_security.times(1.0 - SOCIAL_SECURITY_TAXABLE_SHARE).plus(
            self.roth_distribution
        )

    def gross_taxable_income(self) -> Currency:
        """Wages plus ordinary income, before deductions."""
        return self.wage_income().plus(self.ordinary_income())

    def preferential_income(self) -> Currency:
        """Income taxed at capital-gains rates."""
        return self.long_term_capital_gains.plus(self.qualified_dividends)

    def total_income(self) -> Currency:
        return (
            self.gross_taxable_income()
            .plus(self.nontaxable_income())
            .plus(self.preferential_income())
        )

    def deductions(self) -> Currency:
        """Itemizable deductions as positive amounts (mortgage interest, property taxes)."""
        return self.mortgage_interest.plus(self.property_taxes).abs()

    def contributions(self) -> Currency:
        return self.ira_contribution.plus(self.four01k_contribution).plus(self.roth_contribution)

    def pre_tax_contributions(self) -> Currency:
        return self.ira_contribution.plus(self.four01k_contribution)

    def total_taxes(self) -> Currency:
        """All taxes paid, as a negative amount."""
        return (
            self.fica.plus(self.income_tax)
            .plus(self.estimated_taxes)
            .plus(self.property_taxes)
            .plus(self.long_term_capital_gains_tax)
        )

    def cash_flow(self) -> Currency:
        """Household cash flow: income less expenses, taxes, mortgage and savings."""
        return (
            self.total_income()
            .plus(self.expense)
            .plus(self.total_taxes())
            .plus(self.mortgage_interest)
            .plus(self.mortgage_principal)
            .minus(self.contributions())
        )

    def effective_tax_rate(self) -> float:
        income = self.total_income().amount
        if income <= 0:
            return 0.0
        return -self.total_taxes().amount / income

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, float]:
        return {name: bucket.to_fixed() for name, bucket in self._buckets()}

    def to_series(self) -> pd.Series:
        return pd.Series({name: bucket.amount for name, bucket in self._buckets()}, dtype=float)

    def report(self, title: str) -> None:
        """Log the non-zero buckets and headline totals at INFO."""
        logger.info("%s: income %s, taxes %s, cash flow %s", title,
                    self.total_income(), self.total_taxes(), self.cash_flow())
        for name, bucket in self._buckets():
            if not bucket.is_zero():
                logger.debug("  %-28s %s", name, bucket)
