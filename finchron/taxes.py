"""
US federal tax engine for a simulation run.

Purpose
-------
TaxTable holds the tax tables of one run (tax year and filing status from
:class:`~finchron.config.TaxConfig`) and the accumulators that must be
reset between runs. It shares the lifecycle hook names of the Portfolio
and is driven by the Chronometer in the same order.

During a month the Portfolio asks it for FICA withholding, estimated
income tax, capital-gains tax on closures, contribution limits and RMDs.
At a year boundary ``apply_year`` consumes the portfolio's yearly snapshot
and produces a :class:`YearlyTaxLiability`, which the Portfolio settles
against what it withheld during the year.

Key components
--------------
- YearlyTaxLiability : FICA, income tax and capital-gains tax for a year
- TaxTable : lifecycle hooks plus the tax calculations
- progressive_tax, stacked_tax : bracket arithmetic (numpy)

Example
-------
>>> table = TaxTable(TaxConfig(filing_as="single"))
>>> table.calculate_yearly_income_tax(Currency(50_000)).to_fixed()
5914.0
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

import numpy as np

from .config import TaxConfig
from .constants import CATCH_UP_AGE, HOME_SALE_HOLDING_MONTHS, LONG_TERM_HOLDING_MONTHS
from .currency import Currency
from .date_int import DateInt
from .exceptions import ConfigurationError
from .financials import FinancialPackage
from .metrics import Metric
from .results import CapitalGainsResult, WithholdingResult
from .tax_data import (
    AVAILABLE_TAX_YEARS,
    CAPITAL_GAINS_BRACKETS,
    CONTRIBUTION_LIMITS,
    FEDERAL_BRACKETS,
    FICA,
    STANDARD_DEDUCTIONS,
    UNIFORM_LIFETIME_DIVISORS,
)
from .utils import LogCategory, get_logger

if TYPE_CHECKING:
    from .model_asset import ModelAsset

__all__ = ["TaxTable", "YearlyTaxLiability", "progressive_tax", "stacked_tax"]

logger = get_logger(LogCategory.TAX)

Brackets = Sequence[Tuple[Optional[float], float]]


# ---------------------------------------------------------------------------
# Bracket arithmetic
# ---------------------------------------------------------------------------

def _bracket_arrays(brackets: Brackets) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    uppers = np.array([np.inf if upper is None else upper for upper, _ in brackets], dtype=float)
    rates = np.array([rate for _, rate in brackets], dtype=float)
    lowers = np.concatenate(([0.0], uppers[:-1]))
    return lowers, uppers, rates


def progressive_tax(amount: float, brackets: Brackets) -> float:
    """Tax on *amount* through marginal brackets of (upper_bound, rate)."""
    if amount <= 0:
        return 0.0
    lowers, uppers, rates = _bracket_arrays(brackets)
    taxed = np.clip(amount - lowers, 0.0, uppers - lowers)
    return float(np.dot(taxed, rates))


def stacked_tax(base: float, amount: float, brackets: Brackets) -> float:
    """Tax on *amount* stacked on top of *base* (capital gains over ordinary income)."""
    if amount <= 0:
        return 0.0
    bottom = max(base, 0.0)
    top = bottom + amount
    lowers, uppers, rates = _bracket_arrays(brackets)
    overlap = np.clip(np.minimum(uppers, top) - np.maximum(lowers, bottom), 0.0, None)
    return float(np.dot(overlap, rates))


# ---------------------------------------------------------------------------
# Yearly liability
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class YearlyTaxLiability:
    """
    Taxes owed for one simulated year, as positive amounts.

    Attributes
    ----------
    tax_year : int
    taxable_income : Currency
        Ordinary taxable income after deductions.
    fica : Currency
    income_tax : Currency
    capital_gains_tax : Currency
        Tax on long-term gains and qualified dividends.
    withheld : Currency
        What the portfolio already paid during the year.
    """

    tax_year: int
    taxable_income: Currency = field(default_factory=Currency)
    fica: Currency = field(default_factory=Currency)
    income_tax: Currency = field(default_factory=Currency)
    capital_gains_tax: Currency = field(default_factory=Currency)
    withheld: Currency = field(default_factory=Currency)

    def total(self) -> Currency:
        return self.fica.plus(self.income_tax).plus(self.capital_gains_tax)

    def balance_due(self) -> Currency:
        """Positive: owed at year end. Negative: refund."""
        return self.total().minus(self.withheld)


# ---------------------------------------------------------------------------
# Tax table
# ---------------------------------------------------------------------------

class TaxTable:
    """
    Tax tables and accumulators for one run.

    Parameters
    ----------
    config : TaxConfig, optional
        Tax year, filing status, inflation and deduction caps. Defaults to
        ``TaxConfig()``.

    Raises
    ------
    ConfigurationError
        If there are no tables for the configured tax year.
    """

    def __init__(self, config: Optional[TaxConfig] = None):
        self.config = config if config is not None else TaxConfig()
        if self.config.tax_year not in AVAILABLE_TAX_YEARS:
            raise ConfigurationError(
                f"No tax tables for tax year {self.config.tax_year}. "
                f"Available years: {list(AVAILABLE_TAX_YEARS)}"
            )
        self.initialize_chron()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize_chron(self, first_date: Optional[DateInt] = None) -> None:
        """Fresh copies of the configured tables and zeroed accumulators.

        The tables always come from the configured tax year; *first_date*
        only sets the calendar year that liabilities are labelled with.
        """
        year, filing = self.config.tax_year, self.config.filing_as
        self.tax_year = first_date.year if first_date is not None else year
        self.income_brackets: List[Tuple[Optional[float], float]] = list(FEDERAL_BRACKETS[year][filing])
        self.capital_gains_brackets: List[Tuple[Optional[float], float]] = list(
            CAPITAL_GAINS_BRACKETS[year][filing]
        )
        self.standard_deduction = STANDARD_DEDUCTIONS[year][filing]
        self.fica = dict(FICA[year])
        self.ira_limits = CONTRIBUTION_LIMITS[year][filing]["ira"]
        self.four01k_limits = CONTRIBUTION_LIMITS[year][filing]["401k"]

        self.yearly_social_security = Currency()
        self.months_elapsed = 0
        self.liability: Optional[YearlyTaxLiability] = None
        self.liabilities: List[YearlyTaxLiability] = []
        self.total_liability = Currency()

    def monthly_chron(self, date: Optional[DateInt] = None) -> None:
        self.months_elapsed += 1

    def apply_year(self, yearly: Optional[FinancialPackage]) -> Optional[YearlyTaxLiability]:
        """Compute the liability of the year just ended from its snapshot."""
        if yearly is None or yearly.is_empty():
            self.liability = None
            return None

        taxable_income = self.calculate_yearly_taxable_income(yearly)
        fica = self.calculate_yearly_fica_tax(yearly)
        income_tax = self.calculate_yearly_income_tax(taxable_income)
        capital_gains_tax = self.calculate_yearly_long_term_capital_gains_tax(
            taxable_income, yearly.preferential_income()
        )
        withheld = (
            yearly.fica.plus(yearly.income_tax)
            .plus(yearly.estimated_taxes)
            .plus(yearly.long_term_capital_gains_tax)
            .negated()
        )
        self.liability = YearlyTaxLiability(
            tax_year=self.tax_year,
            taxable_income=taxable_income,
            fica=fica,
            income_tax=income_tax,
            capital_gains_tax=capital_gains_tax,
            withheld=withheld,
        )
        self.liabilities.append(self.liability)
        logger.info(
            "Tax year %d: taxable income %s, FICA %s, income tax %s, capital gains tax %s, withheld %s",
            self.tax_year, taxable_income, fica, income_tax, capital_gains_tax, withheld,
        )
        return self.liability

    def yearly_chron(self, date: Optional[DateInt] = None) -> None:
        """Reset the social-security wage accumulator and inflate the brackets."""
        self.yearly_social_security.zero()
        self.inflate_taxes(self.config.inflation_rate)
        self.tax_year += 1

    def finalize_chron(self) -> None:
        self.total_liability = Currency()
        for liability in self.liabilities:
            self.total_liability.add(liability.total())

    # ------------------------------------------------------------------
    # Inflation
    # ------------------------------------------------------------------

    @staticmethod
    def _inflate_rows(brackets, factor: float):
        return [(None if upper is None else upper * factor, rate) for upper, rate in brackets]

    def inflate_taxes(self, rate: float) -> None:
        factor = 1.0 + rate
        self.fica["max_ss_earnings"] *= factor
        self.income_brackets = self._inflate_rows(self.income_brackets, factor)
        self.capital_gains_brackets = self._inflate_rows(self.capital_gains_brackets, factor)

    # ------------------------------------------------------------------
    # FICA
    # ------------------------------------------------------------------

    def calculate_fica_tax(self, is_self_employed: bool, income: Currency) -> WithholdingResult:
        """
        Monthly FICA on *income*, capped by the social-security wage base
        already reached this year (see ``add_yearly_social_security``).
        """
        ss_rate = self.fica["ss_full_rate"] if is_self_employed else self.fica["ss_half_rate"]
        medicare_rate = self.fica["medicare_full_rate"] if is_self_employed else self.fica["medicare_half_rate"]

        social_security = income.times(ss_rate)
        ss_max = self.fica["max_ss_earnings"] * ss_rate
        if self.yearly_social_security.amount + social_security.amount > ss_max:
            logger.debug("At maximum social security tax for %d", self.tax_year)
            social_security = Currency(max(0.0, ss_max - self.yearly_social_security.amount))
        return WithholdingResult(social_security=social_security, medicare=income.times(medicare_rate))

    def add_yearly_social_security(self, amount: Currency) -> None:
        self.yearly_social_security.add(amount)

    def calculate_yearly_fica_tax(self, yearly: FinancialPackage) -> Currency:
        """FICA owed on a whole year's wages, independent of monthly withholding."""
        total = 0.0
        cap = self.fica["max_ss_earnings"]
        for wages, suffix in ((yearly.self_income.amount, "full"), (yearly.employed_income.amount, "half")):
            if wages <= 0:
                continue
            total += min(wages, cap) * self.fica[f"ss_{suffix}_rate"]
            total += wages * self.fica[f"medicare_{suffix}_rate"]
        return Currency(total)

    # ------------------------------------------------------------------
    # Income tax
    # ------------------------------------------------------------------

    def calculate_yearly_taxable_income(self, yearly: FinancialPackage) -> Currency:
        """
        Ordinary taxable income: wages plus ordinary income, less the larger
        of the standard and itemized deductions (mortgage interest plus
        property taxes capped at ``property_tax_deduction_max``), less
        pre-tax contributions. Never negative.
        """
        property_taxes = min(abs(yearly.property_taxes.amount), self.config.property_tax_deduction_max)
        itemized = abs(yearly.mortgage_interest.amount) + property_taxes
        deduction = max(itemized, self.standard_deduction)

        taxable = yearly.gross_taxable_income().minus(deduction).minus(yearly.pre_tax_contributions())
        if taxable.is_negative():
            taxable.zero()
        return taxable

    def calculate_yearly_income_tax(self, income: Currency, deduction: Optional[Currency] = None) -> Currency:
        adjusted = income.copy()
        if deduction is not None:
            adjusted.subtract(deduction)
        return Currency(progressive_tax(adjusted.amount, self.income_brackets))

    def calculate_yearly_long_term_capital_gains_tax(self, taxable_income: Currency, gains: Currency) -> Currency:
        return Currency(stacked_tax(taxable_income.amount, gains.amount, self.capital_gains_brackets))

    def calculate_capital_gains_tax(
        self,
        gains: Currency,
        holding_months: int,
        is_home: bool,
        annualized_income: Currency,
    ) -> CapitalGainsResult:
        """
        Tax on gains realized when an asset is sold.

        Held over 12 months the gain is long term and taxed at capital-gains
        rates on top of *annualized_income*; a home held over 24 months
        first excludes ``home_sale_capital_gains_discount``. Otherwise the
        gain is short term and taxed as ordinary income.
        """
        if not gains.is_positive():
            return CapitalGainsResult()
        if holding_months > LONG_TERM_HOLDING_MONTHS:
            taxable = gains.copy()
            if is_home and holding_months > HOME_SALE_HOLDING_MONTHS:
                taxable.subtract(self.config.home_sale_capital_gains_discount)
                if taxable.is_negative():
                    taxable.zero()
            tax = self.calculate_yearly_long_term_capital_gains_tax(annualized_income, taxable)
            return CapitalGainsResult(long_term=gains.copy(), tax=tax)
        tax = Currency(
            stacked_tax(annualized_income.amount, gains.amount, self.income_brackets)
        )
        return CapitalGainsResult(short_term=gains.copy(), tax=tax)

    def marginal_ltcg_rate(self, taxable_income: Currency) -> float:
        for upper, rate in self.capital_gains_brackets:
            if upper is None or taxable_income.amount <= upper:
                return rate
        return self.capital_gains_brackets[-1][1]

    def estimate_monthly_income_tax(self, monthly: FinancialPackage) -> Currency:
        """One month's share of the income and capital-gains tax on *monthly* annualized."""
        annual = monthly.copy().multiply(12.0)
        taxable = self.calculate_yearly_taxable_income(annual)
        tax = self.calculate_yearly_income_tax(taxable).plus(
            self.calculate_yearly_long_term_capital_gains_tax(taxable, annual.preferential_income())
        )
        return tax.divided_by(12.0)

    # ------------------------------------------------------------------
    # Retirement accounts
    # ------------------------------------------------------------------

    def ira_contribution_limit(self, age: int) -> Currency:
        below, catch_up = self.ira_limits
        return Currency(catch_up if age >= CATCH_UP_AGE else below)

    def four01k_contribution_limit(self, age: int) -> Currency:
        below, catch_up = self.four01k_limits
        return Currency(catch_up if age >= CATCH_UP_AGE else below)

    def calculate_monthly_rmd(self, date: DateInt, age: int, asset: ModelAsset) -> Currency:
        """
        One twelfth of the required minimum distribution of a tax-deferred
        account: its balance at the end of the previous year divided by the
        uniform lifetime divisor for *age*.
        """
        if not asset.instrument.is_tax_deferred:
            return Currency()
        divisor = UNIFORM_LIFETIME_DIVISORS.get(age)
        if divisor is None:
            logger.warning("No uniform lifetime divisor for age %d", age)
            return Currency()

        history = asset.metrics[Metric.VALUE].history
        index = max(len(history) - date.month, 0)
        value = history[index] if history else 0.0
        if value <= 0:
            value = asset.finish_currency.amount
        return Currency(value / divisor / 12.0)
