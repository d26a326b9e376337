"""
Simulated financial instruments.

Purpose
-------
ModelAsset is one instrument of a portfolio: a salary, a brokerage
account, a home, a mortgage, a monthly expense... It is a single class
tagged by :class:`~finchron.instrument.Instrument`; the tag decides which
monthly calculation runs and which optional parameters matter.

Key components
--------------
- Variant parameters : ``basis_currency`` (capital), ``annual_tax_rate``
  (home property tax), ``annual_dividend_rate`` (taxable equity),
  ``months_remaining`` (mortgage, debt), ``is_self_employed`` (salary)
- Settlement protocol : ``debit``/``credit`` write a CreditMemo and return
  a SettlementResult; positive credits are held in a pending buffer and
  folded into the balance at the month boundary, withdrawals consume the
  buffer first and then the balance, realizing gains on basisable assets
- Monthly calculations : ``apply_income``, ``apply_amortization``,
  ``apply_appreciation``, ``apply_interest``, ``apply_expense`` and the
  ``apply_monthly`` dispatcher
- Lifecycle : ``initialize_chron``, ``handle_current_date``,
  ``monthly_chron``, ``apply_yearly``, ``close``

Sign conventions
----------------
Balances of mortgages, debts and expenses are negative. Income streams
and expenses are flows: ``finish_currency`` is their monthly rate, and
settlements against them are recorded without touching that rate.

Example
-------
>>> salary = ModelAsset(Instrument.MONTHLY_SALARY, "Salary",
...                     DateInt(202501), DateInt(202612), Currency(8000), 0.03)
>>> salary.initialize_chron()
>>> salary.apply_income().employed_income.amount
8000.0
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Optional, Union

import pandas as pd

from .currency import Currency
from .date_int import DateInt, diff_months
from .exceptions import ConfigurationError, SimulationError
from .fund_transfer import FundTransfer
from .instrument import Instrument
from .metrics import BALANCE_METRICS, Metric, MetricSet
from .results import (
    AppreciationResult,
    CreditMemo,
    ExpenseResult,
    IncomeResult,
    InterestResult,
    MemoKind,
    MortgageResult,
    SettlementResult,
)
from .utils import annual_to_monthly

if TYPE_CHECKING:
    from .months_span import MonthsSpan

__all__ = ["ModelAsset"]

MonthlyResult = Union[IncomeResult, MortgageResult, AppreciationResult, InterestResult, ExpenseResult]


class ModelAsset:
    """
    One simulated instrument.

    Parameters
    ----------
    instrument : Instrument or str
        Instrument tag.
    display_name : str
        Unique name; fund transfers bind to assets by it.
    start_date_int, finish_date_int : DateInt
        First and last active month (inclusive).
    start_currency : Currency
        Opening balance, or monthly rate for income and expense streams.
        Expenses, mortgages and debts are stored negative whatever the
        sign given.
    annual_return_rate : float, default 0.0
        Growth, interest or loan rate; for income streams the yearly raise,
        for expenses the yearly inflation.
    basis_currency : Currency, optional
        Cost basis of a basisable asset (defaults to zero).
    annual_tax_rate : float, default 0.0
        Property tax rate of a home, on its value.
    annual_dividend_rate : float, default 0.0
        Qualified dividend yield of a taxable account (reinvested).
    months_remaining : int, default 0
        Amortization term of a mortgage or debt.
    is_self_employed : bool, default False
        Salary is self-employment income (full FICA rates).
    fund_transfers : iterable of FundTransfer
        Transfers owned by this asset.
    credit_memos : iterable of CreditMemo
        Scheduled ad hoc credits, applied on the first tick of their month.

    Raises
    ------
    ConfigurationError
        If the finish date precedes the start date, or a mortgage or debt
        has no positive term.
    """

    def __init__(
        self,
        instrument: Instrument | str,
        display_name: str,
        start_date_int: DateInt,
        finish_date_int: DateInt,
        start_currency: Currency,
        annual_return_rate: float = 0.0,
        *,
        basis_currency: Optional[Currency] = None,
        annual_tax_rate: float = 0.0,
        annual_dividend_rate: float = 0.0,
        months_remaining: int = 0,
        is_self_employed: bool = False,
        fund_transfers: Iterable[FundTransfer] = (),
        credit_memos: Iterable[CreditMemo] = (),
    ):
        self.instrument = Instrument(instrument)
        if not display_name:
            raise ConfigurationError("display_name must be a non-empty string")
        if finish_date_int.is_before(start_date_int):
            raise ConfigurationError(
                f"'{display_name}': finish {finish_date_int} is before start {start_date_int}"
            )
        if self.instrument.is_amortizing and months_remaining < 1:
            raise ConfigurationError(
                f"'{display_name}': a {self.instrument.label.lower()} needs months_remaining >= 1, "
                f"got {months_remaining}"
            )
        if annual_return_rate <= -1:
            raise ConfigurationError(
                f"'{display_name}': annual_return_rate must be > -1, got {annual_return_rate}"
            )

        self.display_name = display_name
        self.start_date_int = start_date_int.copy()
        self.finish_date_int = finish_date_int.copy()
        self.start_currency = Currency(start_currency)
        if self.instrument.is_monthly_expense or self.instrument.is_amortizing:
            self.start_currency = self.start_currency.abs().flip_sign()
        self.annual_return_rate = float(annual_return_rate)
        self.basis_currency = Currency(basis_currency) if basis_currency is not None else Currency()
        self.annual_tax_rate = float(annual_tax_rate)
        self.annual_dividend_rate = float(annual_dividend_rate)
        self.months_remaining = int(months_remaining)
        self.is_self_employed = bool(is_self_employed)
        self.fund_transfers: List[FundTransfer] = list(fund_transfers)
        self.credit_memos: List[CreditMemo] = list(credit_memos)

        self.metrics = MetricSet()
        self.initialize_chron()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize_chron(self) -> None:
        """Reset every piece of run state to the configured starting point."""
        self.finish_currency = self.start_currency.copy()
        self.finish_basis_currency = self.basis_currency.copy()
        self.pending_credit = Currency()
        self.net_income_currency = Currency()
        self.monthly_rmd = Currency()
        self.monthly_property_tax = Currency()
        self.remaining_months = self.months_remaining
        self.current_date_int: Optional[DateInt] = None
        self.is_closed = False
        self.closed_date_int: Optional[DateInt] = None
        self.on_finish_date = False
        self.after_finish_date = False
        self.memo_ledger: List[CreditMemo] = []
        self.metrics.initialize()
        self.assess_property_tax()

    def handle_current_date(self, date: DateInt) -> None:
        self.current_date_int = date.copy()
        self.on_finish_date = date == self.finish_date_int
        self.after_finish_date = date.is_after(self.finish_date_int)

    def in_month(self, date: DateInt) -> bool:
        """True while the asset is open and *date* lies in its span."""
        return not self.is_closed and date.is_between(self.start_date_int, self.finish_date_int)

    @property
    def has_started(self) -> bool:
        return self.current_date_int is not None and not self.current_date_int.is_before(
            self.start_date_int
        )

    def monthly_chron(self) -> None:
        """Fold pending credits into the balance and snapshot every metric."""
        if self.pending_credit.is_positive():
            self.finish_currency.add(self.pending_credit)
            if self.instrument.is_basisable:
                self.finish_basis_currency.add(self.pending_credit)
            self.metrics[Metric.CREDIT].add(self.pending_credit)
        self.pending_credit.zero()

        self.metrics[Metric.ACCUMULATED].add(self.metrics[Metric.EARNING].current)
        if self.has_started and not self.is_closed and not self.instrument.is_flow:
            self.metrics[Metric.VALUE].set(self.finish_currency)
        else:
            self.metrics[Metric.VALUE].set(0.0)
        self.metrics.snapshot_all()

    def apply_yearly(self) -> None:
        """Yearly raise for income streams; property-tax reassessment for homes."""
        if self.instrument.is_monthly_income:
            self.finish_currency.multiply(1.0 + self.annual_return_rate)
        elif self.instrument.is_home:
            self.assess_property_tax()

    def assess_property_tax(self) -> None:
        if self.instrument.is_home and self.annual_tax_rate > 0:
            self.monthly_property_tax = self.finish_currency.times(self.annual_tax_rate / 12.0).flip_sign()
        else:
            self.monthly_property_tax = Currency()

    def close(self) -> None:
        self.pending_credit.zero()
        self.finish_currency.zero()
        self.is_closed = True
        self.closed_date_int = self.current_date_int.copy() if self.current_date_int else None

    # ------------------------------------------------------------------
    # Settlement protocol
    # ------------------------------------------------------------------

    def credit(
        self,
        amount: Currency,
        note: str = "",
        *,
        skip_gain: bool = False,
        kind: MemoKind = MemoKind.TRANSFER,
    ) -> SettlementResult:
        """Add *amount* (a negative amount withdraws)."""
        return self._settle(amount.copy(), note, skip_gain, kind)

    def debit(
        self,
        amount: Currency,
        note: str = "",
        *,
        skip_gain: bool = False,
        kind: MemoKind = MemoKind.TRANSFER,
    ) -> SettlementResult:
        """Remove *amount* (a negative amount deposits)."""
        return self._settle(amount.negated(), note, skip_gain, kind)

    def _settle(self, change: Currency, note: str, skip_gain: bool, kind: MemoKind) -> SettlementResult:
        memo = CreditMemo(change.copy(), note, self.current_date_int, kind)
        self.memo_ledger.append(memo)
        if self.instrument.is_flow:
            return SettlementResult(change, Currency(), memo)

        self.metrics[Metric.CASH_FLOW].add(change)
        if change.is_negative():
            realized = self._withdraw(change.negated(), skip_gain)
        else:
            self.pending_credit.add(change)
            realized = Currency()
        return SettlementResult(change, realized, memo)

    def _withdraw(self, amount: Currency, skip_gain: bool) -> Currency:
        remaining = amount.copy()
        if self.pending_credit.is_positive():
            taken = min(self.pending_credit.amount, remaining.amount)
            self.pending_credit.subtract(taken)
            remaining.subtract(taken)

        realized = Currency()
        if remaining.is_positive():
            if self.instrument.is_basisable and not skip_gain:
                realized = remaining.times(self.unrealized_gain_ratio())
                self.finish_basis_currency.subtract(remaining.minus(realized))
                self.metrics[Metric.LONG_TERM_CAPITAL_GAIN].add(realized)
            self.finish_currency.subtract(remaining)

        if self.instrument is Instrument.IRA:
            self.metrics[Metric.IRA_DISTRIBUTION].add(amount)
        elif self.instrument is Instrument.FOUR_01K:
            self.metrics[Metric.FOUR_01K_DISTRIBUTION].add(amount)
        elif self.instrument is Instrument.ROTH_IRA:
            self.metrics[Metric.ROTH_DISTRIBUTION].add(amount)
        return realized

    def unrealized_gain_ratio(self) -> float:
        """Share of the balance that is gain over basis (0 when under water)."""
        if not self.finish_currency.is_positive():
            return 0.0
        gain = self.finish_currency.amount - self.finish_basis_currency.amount
        return max(0.0, gain / self.finish_currency.amount)

    def due_credit_memos(self, date: DateInt) -> List[CreditMemo]:
        return [memo for memo in self.credit_memos if memo.date is not None and memo.date == date]

    def available_balance(self) -> Currency:
        return self.finish_currency.plus(self.pending_credit)

    # ------------------------------------------------------------------
    # Monthly calculations
    # ------------------------------------------------------------------

    def apply_monthly(self) -> Optional[MonthlyResult]:
        """Run this instrument's monthly calculation; None for cash."""
        kind = self.instrument
        if kind.is_monthly_income:
            return self.apply_income()
        if kind.is_monthly_expense:
            return self.apply_expense()
        if kind.is_amortizing:
            return self.apply_amortization()
        if kind.is_capital:
            return self.apply_appreciation()
        if kind.is_income_account:
            return self.apply_interest()
        return None

    def apply_income(self) -> IncomeResult:
        if not self.instrument.is_monthly_income:
            raise SimulationError(f"'{self.display_name}' is not an income stream")
        income = self.finish_currency.copy()
        self.metrics[Metric.INCOME].add(income)
        self.metrics[Metric.EARNING].add(income)
        if self.instrument.is_social_security:
            return IncomeResult(social_security=income)
        if self.is_self_employed:
            return IncomeResult(self_income=income)
        return IncomeResult(employed_income=income)

    def apply_expense(self) -> ExpenseResult:
        """Record this month's (negative) expense, then inflate the rate."""
        expense = self.finish_currency.copy()
        self.metrics[Metric.EARNING].add(expense)
        self.metrics[Metric.CASH_FLOW].add(expense)
        self.finish_currency.multiply(1.0 + annual_to_monthly(self.annual_return_rate))
        return ExpenseResult(expense=expense, next_expense=self.finish_currency.copy())

    def apply_amortization(self) -> MortgageResult:
        """One level payment on a negative balance; all components negative."""
        if not self.instrument.is_amortizing:
            raise SimulationError(f"'{self.display_name}' does not amortize")
        balance = self.finish_currency.amount
        if self.remaining_months <= 0 or balance >= 0:
            return MortgageResult()

        rate = annual_to_monthly(self.annual_return_rate)
        n = self.remaining_months
        if rate == 0:
            payment = balance / n
        else:
            payment = balance * rate / (1.0 - (1.0 + rate) ** -n)
        interest = balance * rate
        principal = payment - interest

        self.finish_currency.subtract(principal)
        self.remaining_months -= 1
        self.metrics[Metric.MORTGAGE_PAYMENT].add(payment)
        self.metrics[Metric.MORTGAGE_INTEREST].add(interest)
        self.metrics[Metric.MORTGAGE_PRINCIPAL].add(principal)
        return MortgageResult(Currency(payment), Currency(interest), Currency(principal))

    def apply_appreciation(self) -> AppreciationResult:
        growth = self.finish_currency.times(annual_to_monthly(self.annual_return_rate))
        self.finish_currency.add(growth)
        self.metrics[Metric.EARNING].add(growth)

        dividend = Currency()
        if self.instrument.is_taxable_account and self.annual_dividend_rate:
            dividend = self.finish_currency.times(annual_to_monthly(self.annual_dividend_rate))
            self.finish_currency.add(dividend)
            self.finish_basis_currency.add(dividend)
            self.metrics[Metric.QUALIFIED_DIVIDEND].add(dividend)
            self.metrics[Metric.EARNING].add(dividend)
        return AppreciationResult(growth=growth, dividend=dividend)

    def apply_interest(self) -> InterestResult:
        interest = self.finish_currency.times(annual_to_monthly(self.annual_return_rate))
        self.finish_currency.add(interest)
        self.metrics[Metric.EARNING].add(interest)
        self.metrics[Metric.INTEREST_INCOME].add(interest)
        return InterestResult(income=interest)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def holding_months(self) -> int:
        return diff_months(self.start_date_int, self.current_date_int or self.start_date_int)

    def history_frame(self, start: DateInt) -> pd.DataFrame:
        """Monthly metric histories indexed by period from *start*, the portfolio's first month."""
        return self.metrics.to_frame(start)

    def display_history(self, metric: Metric, span: MonthsSpan) -> list:
        """One metric bucketed for charting (balances sample, flows sum)."""
        how = "last" if Metric(metric) in BALANCE_METRICS else "sum"
        return span.aggregate(self.metrics[metric].history, how=how).tolist()

    def __repr__(self) -> str:
        return (
            f"ModelAsset({self.instrument.value!r}, {self.display_name!r}, "
            f"{self.start_date_int}..{self.finish_date_int}, {self.finish_currency})"
        )
