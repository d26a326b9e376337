"""
Portfolio aggregate and its simulation lifecycle.

Purpose
-------
Portfolio owns the model assets of one run (an arena indexed by display
name), the run's TaxTable and User, and the FinancialPackage accumulators.
The Chronometer drives it through a fixed set of hooks; everything that
happens inside a month (income, withholding, transfers, growth, expenses,
taxes) is decided here.

Key components
--------------
- Portfolio:
    Lifecycle hooks ``initialize_chron``, ``apply_month``,
    ``monthly_chron``, ``apply_year``, ``yearly_chron``,
    ``finalize_chron``. ``apply_month`` returns the number of months
    elapsed (1 on the first tick of a month, otherwise 0).
- PortfolioSummary:
    Headline figures of a finished run (net worth, CAGR, drawdown, taxes).

Per-tick work
-------------
- Tick 1: update finish flags, close finished assets, scheduled credits,
  amortization, income and withholding, RMDs, income transfers (leftover
  net income to the first expensable account).
- Tick 15: home property-tax escrow.
- Tick 30: expense transfers and shortfall withdrawals, RMD top-up,
  growth and interest, estimated-tax top-up.

Design principles
-----------------
- Single ownership: transfers reference assets only through the arena,
  bound in an explicit pass by ``bind_fund_transfers``
- Explicit context: the TaxTable is passed in, never module state
- Soft failures: an empty portfolio makes every hook a no-op, and a month
  without an expensable account logs instead of raising

Example
-------
>>> portfolio = Portfolio(assets, TaxTable(TaxConfig(filing_as="married")), User(60))
>>> from finchron.chronometer import run
>>> run(portfolio)
True
>>> portfolio.summary.finish_value
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from .asset_queries import (
    build_arena,
    first_date_int,
    first_expensable_account,
    last_date_int,
    sort_model_assets,
)
from .constants import (
    HOME_SALE_HOLDING_MONTHS,
    PROPERTY_TAX_TICK,
    SANITY_TOLERANCE,
    TICK_LIMIT,
    TICK_START,
)
from .currency import Currency
from .date_int import DateInt
from .financials import FinancialPackage
from .instrument import Instrument
from .metrics import Metric
from .model_asset import ModelAsset
from .months_span import MonthsSpan
from .results import MemoKind
from .taxes import TaxTable, YearlyTaxLiability
from .user import User
from .utils import LogCategory, compute_cagr, drawdown, get_logger, month_index, yearly_table

__all__ = ["Portfolio", "PortfolioSummary"]

logger = get_logger(LogCategory.GENERAL)
init_logger = get_logger(LogCategory.INIT)
monthly_logger = get_logger(LogCategory.MONTHLY)
tax_logger = get_logger(LogCategory.TAX)
transfer_logger = get_logger(LogCategory.TRANSFER)
sanity_logger = get_logger(LogCategory.SANITY)

_CENT = 0.005


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PortfolioSummary:
    """
    Headline figures of a finished run.

    Attributes
    ----------
    first_date_int, last_date_int : DateInt
    total_months : int
        Months simulated.
    start_value, finish_value : Currency
        Net worth (all balances, debts negative) after the first and last
        simulated month.
    accumulated : Currency
        Growth, interest and income earned over the run.
    total_taxes : Currency
        Taxes paid, negative, year-end settlements included.
    cagr : float
        Compound annual growth of net worth.
    max_drawdown : float
        Worst peak-to-trough decline of net worth (<= 0).
    """

    first_date_int: DateInt
    last_date_int: DateInt
    total_months: int
    start_value: Currency
    finish_value: Currency
    accumulated: Currency
    total_taxes: Currency
    cagr: float
    max_drawdown: float

    def to_dict(self) -> Dict[str, object]:
        return {
            "first_date": self.first_date_int.format(),
            "last_date": self.last_date_int.format(),
            "total_months": self.total_months,
            "start_value": self.start_value.to_fixed(),
            "finish_value": self.finish_value.to_fixed(),
            "accumulated": self.accumulated.to_fixed(),
            "total_taxes": self.total_taxes.to_fixed(),
            "cagr": self.cagr,
            "max_drawdown": self.max_drawdown,
        }


# ---------------------------------------------------------------------------
# Portfolio
# ---------------------------------------------------------------------------

class Portfolio:
    """
    Collection of model assets simulated together.

    Parameters
    ----------
    model_assets : iterable of ModelAsset
        Assets of the run; display names must be unique.
    tax_table : TaxTable, optional
        Tax engine of the run. Defaults to ``TaxTable()`` (2025, single).
    user : User, optional
        The simulated person. Defaults to ``User()`` (age 57).
    reports : bool, default False
        Log a yearly report at every year boundary.
    name : str, default "Portfolio"

    Raises
    ------
    ValidationError
        If two assets share a display name.
    """

    def __init__(
        self,
        model_assets: Iterable[ModelAsset],
        tax_table: Optional[TaxTable] = None,
        user: Optional[User] = None,
        *,
        reports: bool = False,
        name: str = "Portfolio",
    ):
        self.name = name
        self.model_assets: List[ModelAsset] = sort_model_assets(model_assets)
        self.arena: Dict[str, ModelAsset] = build_arena(self.model_assets)
        self.tax_table = tax_table if tax_table is not None else TaxTable()
        self.user = user if user is not None else User()
        self.reports = reports

        self.first_date_int: Optional[DateInt] = first_date_int(self.model_assets)
        self.last_date_int: Optional[DateInt] = last_date_int(self.model_assets)

        self.monthly = FinancialPackage()
        self.yearly = FinancialPackage()
        self.total = FinancialPackage()
        self._one_off = FinancialPackage()
        self._reset_run_state()
        self.bind_fund_transfers()

    def _reset_run_state(self) -> None:
        self.total_months = 0
        self.monthly.zero()
        self.yearly.zero()
        self.total.zero()
        self._one_off.zero()
        self.monthly_history: List[FinancialPackage] = []
        self.yearly_history: List[Tuple[int, FinancialPackage]] = []
        self.tax_settlements: List[YearlyTaxLiability] = []
        self.sanity_failures: List[DateInt] = []
        self.summary: Optional[PortfolioSummary] = None
        self.is_finalized = False

    def bind_fund_transfers(self) -> int:
        """Resolve every transfer's target in the arena. Returns how many bound."""
        bound = 0
        for asset in self.model_assets:
            for transfer in asset.fund_transfers:
                bound += transfer.bind(asset, self.arena)
        return bound

    @property
    def is_empty(self) -> bool:
        return not self.model_assets or self.first_date_int is None or self.last_date_int is None

    # ------------------------------------------------------------------
    # Lifecycle hooks
    # ------------------------------------------------------------------

    def initialize_chron(self) -> None:
        self._reset_run_state()
        self.user.reset()
        if self.is_empty:
            return
        for asset in self.model_assets:
            asset.initialize_chron()
        bound = self.bind_fund_transfers()
        init_logger.info(
            "%s: %d assets, %s..%s, %d transfers bound",
            self.name, len(self.model_assets), self.first_date_int, self.last_date_int, bound,
        )

    def apply_month(self, date: DateInt) -> int:
        """Advance the portfolio by one tick; returns months elapsed (0 or 1)."""
        if self.is_empty:
            return 0
        if date.tick == TICK_START:
            self._apply_first_day_of_month(date)
            return 1
        if date.tick == PROPERTY_TAX_TICK:
            self._apply_property_tax_escrow(date)
        elif date.tick == TICK_LIMIT:
            self._apply_last_day_of_month(date)
        return 0

    def monthly_chron(self, date: DateInt) -> None:
        """Close the month that just ended; *date* is the first tick of the next one."""
        if self.is_empty:
            return
        ended = date.copy().prev_month()
        self._monthly_sanity_check(ended)

        self.monthly_history.append(self.monthly.copy())
        self.yearly.add(self.monthly)
        self.total.add(self.monthly)
        self.monthly.zero()
        self._one_off.zero()

        for asset in self.model_assets:
            asset.monthly_chron()
        monthly_logger.debug("%s closed, net worth %s", ended, self.net_worth())

    def apply_year(self, date: DateInt) -> None:
        """Yearly raises for income streams and property-tax reassessment."""
        if self.is_empty:
            return
        for asset in self.model_assets:
            if not asset.is_closed:
                asset.apply_yearly()

    def yearly_chron(self, date: DateInt) -> None:
        """Settle the year's taxes, archive the yearly snapshot and age the user."""
        if self.is_empty:
            return
        year = date.year - 1
        liability = self.tax_table.liability
        if liability is not None:
            self._settle_yearly_taxes(liability, date)
        if self.reports:
            self.yearly.report(f"{self.name} {year}")
        self.yearly_history.append((year, self.yearly.copy()))
        self.yearly.zero()
        self.user.add_years(1)

    def finalize_chron(self) -> None:
        if self.is_empty:
            return
        self.summary = self.build_summary()
        self.is_finalized = True
        logger.info(
            "%s finished after %d months: net worth %s, CAGR %.2f%%",
            self.name, self.total_months, self.summary.finish_value, self.summary.cagr * 100,
        )

    # ------------------------------------------------------------------
    # First day of the month
    # ------------------------------------------------------------------

    def _apply_first_day_of_month(self, date: DateInt) -> None:
        for asset in self.model_assets:
            asset.handle_current_date(date)
            asset.net_income_currency.zero()
            asset.monthly_rmd.zero()

        for asset in self.model_assets:
            if asset.after_finish_date and not asset.is_closed:
                self._close_asset(asset, date)

        active = [asset for asset in self.model_assets if asset.in_month(date)]
        self._apply_scheduled_credits(active)
        self._apply_amortization(active, date)
        gross = self._apply_income(active)
        self._calculate_rmds(active, date)
        self._apply_income_transfers(active, date)
        self._withhold_income_tax(active, gross)
        self._deposit_net_income(active, date)

    def _apply_scheduled_credits(self, active: List[ModelAsset]) -> None:
        for asset in active:
            for memo in asset.due_credit_memos(asset.current_date_int):
                asset.credit(memo.amount, memo.note or "Scheduled credit", kind=MemoKind.SCHEDULED)

    def _apply_amortization(self, active: List[ModelAsset], date: DateInt) -> None:
        for asset in active:
            if not asset.instrument.is_amortizing:
                continue
            result = asset.apply_amortization()
            if result.payment.is_zero():
                continue
            if asset.instrument.is_mortgage:
                self.monthly.mortgage_interest.add(result.interest)
                self.monthly.mortgage_principal.add(result.principal)
            else:
                self.monthly.expense.add(result.payment)
            self._pay_from_expensable(
                result.payment.negated(), date, f"{asset.instrument.label} payment on {asset.display_name}",
                MemoKind.EXPENSE,
            )

    def _apply_income(self, active: List[ModelAsset]) -> Dict[str, Currency]:
        """Gross pay and FICA of every earner; returns gross income by display name."""
        gross: Dict[str, Currency] = {}
        for asset in active:
            if not asset.instrument.is_monthly_income:
                continue
            result = asset.apply_income()
            gross[asset.display_name] = result.total()
            self.monthly.employed_income.add(result.employed_income)
            self.monthly.self_income.add(result.self_income)
            self.monthly.social_security.add(result.social_security)
            asset.net_income_currency = result.total()

            if asset.instrument.is_social_security:
                continue
            fica = self.tax_table.calculate_fica_tax(asset.is_self_employed, result.total())
            self.tax_table.add_yearly_social_security(fica.social_security)
            self.monthly.fica.subtract(fica.fica())
            asset.metrics[Metric.SOCIAL_SECURITY].subtract(fica.social_security)
            asset.metrics[Metric.MEDICARE].subtract(fica.medicare)
            asset.net_income_currency.subtract(fica.fica())
        return gross

    def _withhold_income_tax(self, active: List[ModelAsset], gross: Dict[str, Currency]) -> None:
        """
        Withhold the month's income-tax estimate, split across earners by gross pay.

        Runs after the income transfers so that pre-tax 401K and IRA
        contributions already lower the annualized taxable income.
        """
        total_gross = sum(c.amount for c in gross.values())
        if total_gross <= 0:
            return
        estimate = self.tax_table.estimate_monthly_income_tax(self._regular_month())
        for asset in active:
            if asset.display_name not in gross:
                continue
            share = estimate.times(gross[asset.display_name].amount / total_gross)
            self.monthly.income_tax.subtract(share)
            asset.metrics[Metric.INCOME_TAX].subtract(share)
            asset.net_income_currency.subtract(share)
            asset.metrics[Metric.AFTER_TAX].add(asset.net_income_currency)

    def _calculate_rmds(self, active: List[ModelAsset], date: DateInt) -> None:
        if not self.user.rmd_required():
            return
        for asset in active:
            if asset.instrument.is_tax_deferred:
                asset.monthly_rmd = self.tax_table.calculate_monthly_rmd(date, self.user.age, asset)
                asset.metrics[Metric.RMD].add(asset.monthly_rmd)

    def _apply_income_transfers(self, active: List[ModelAsset], date: DateInt) -> None:
        for asset in active:
            if not asset.instrument.is_monthly_income:
                continue
            moved = Currency()
            for transfer in asset.fund_transfers:
                if not transfer.is_active_for_month(date.month):
                    continue
                self._approve_contribution(transfer)
                result = transfer.execute()
                if result.is_neutral:
                    continue
                moved.add(result.to_asset_change)
                self._record_contribution(transfer.to_model, result.to_asset_change)
            asset.net_income_currency.subtract(moved)

    def _deposit_net_income(self, active: List[ModelAsset], date: DateInt) -> None:
        for asset in active:
            if not asset.instrument.is_monthly_income:
                continue
            remaining = asset.net_income_currency.copy()
            if remaining.amount > _CENT:
                target = first_expensable_account(self.model_assets, date)
                if target is None:
                    transfer_logger.warning(
                        "%s: no expensable account for %s net income from '%s'",
                        date, remaining, asset.display_name,
                    )
                    continue
                target.credit(remaining, f"Net income from {asset.display_name}", kind=MemoKind.INCOME)

    def _approve_contribution(self, transfer) -> None:
        """Cap transfers into retirement accounts at the remaining yearly limit."""
        target = transfer.to_model
        transfer.approved_amount = None
        if target is None:
            return
        age = self.user.age
        if target.instrument is Instrument.FOUR_01K:
            limit = self.tax_table.four01k_contribution_limit(age)
            used = self.yearly.four01k_contribution.plus(self.monthly.four01k_contribution)
        elif target.instrument in (Instrument.IRA, Instrument.ROTH_IRA):
            limit = self.tax_table.ira_contribution_limit(age)
            used = (
                self.yearly.ira_contribution.plus(self.yearly.roth_contribution)
                .plus(self.monthly.ira_contribution)
                .plus(self.monthly.roth_contribution)
            )
        else:
            return
        remaining = limit.minus(used)
        transfer.approved_amount = remaining if remaining.is_positive() else Currency()

    def _record_contribution(self, target: ModelAsset, amount: Currency) -> None:
        kind = target.instrument
        if kind is Instrument.FOUR_01K:
            self.monthly.four01k_contribution.add(amount)
            target.metrics[Metric.FOUR_01K_CONTRIBUTION].add(amount)
        elif kind is Instrument.IRA:
            self.monthly.ira_contribution.add(amount)
            target.metrics[Metric.IRA_CONTRIBUTION].add(amount)
        elif kind is Instrument.ROTH_IRA:
            self.monthly.roth_contribution.add(amount)
            target.metrics[Metric.ROTH_CONTRIBUTION].add(amount)

    # ------------------------------------------------------------------
    # Closing finished assets
    # ------------------------------------------------------------------

    def _close_asset(self, asset: ModelAsset, date: DateInt) -> None:
        """
        Close an asset past its finish date: tax the sale or distribution,
        run its closing transfers, sweep the rest to an expensable account.
        """
        kind = asset.instrument
        if kind.is_flow:
            asset.close()
            init_logger.debug("%s: closed %s", date, asset.display_name)
            return

        proceeds = asset.available_balance()
        if kind.is_basisable:
            self._tax_capital_sale(asset, proceeds)
        elif kind.is_tax_deferred and proceeds.is_positive():
            self._tax_distribution(asset, proceeds)
        elif kind.is_tax_free and proceeds.is_positive():
            self.monthly.roth_distribution.add(proceeds)
        elif kind.is_amortizing and proceeds.is_negative():
            payoff = proceeds.negated()
            account = self._pay_from_expensable(
                payoff, date, f"Payoff of {asset.display_name}", MemoKind.TRANSFER
            )
            if account is not None:
                asset.credit(payoff, f"Payoff of {asset.display_name}", kind=MemoKind.TRANSFER)

        proceeds = asset.available_balance()
        if proceeds.is_positive():
            # closing transfers move percentages of the same proceeds
            asset.net_income_currency = proceeds.copy()
            moved = Currency()
            for transfer in asset.fund_transfers:
                if not transfer.move_on_finish_date or not transfer.is_bound:
                    continue
                if not transfer.to_model.instrument.is_expensable:
                    transfer_logger.warning(
                        "Closing transfer %s skipped: target is not expensable", transfer.describe()
                    )
                    continue
                result = transfer.execute()
                moved.add(result.to_asset_change)
                self._record_contribution(transfer.to_model, result.to_asset_change)
            asset.net_income_currency.zero()

            leftover = proceeds.minus(moved)
            if leftover.amount > _CENT:
                target = first_expensable_account(self.model_assets, date, exclude=asset)
                if target is None:
                    transfer_logger.warning(
                        "%s: no expensable account for %s proceeds of '%s'", date, leftover, asset.display_name
                    )
                else:
                    note = f"Proceeds of {asset.display_name}"
                    asset.debit(leftover, note, skip_gain=True, kind=MemoKind.TRANSFER)
                    target.credit(leftover, note, skip_gain=True, kind=MemoKind.TRANSFER)

        asset.close()
        init_logger.debug("%s: closed %s", date, asset.display_name)

    def _tax_capital_sale(self, asset: ModelAsset, proceeds: Currency) -> None:
        gains = proceeds.minus(asset.finish_basis_currency)
        if not gains.is_positive():
            return
        annualized = self.tax_table.calculate_yearly_taxable_income(self._regular_month().multiply(12.0))
        result = self.tax_table.calculate_capital_gains_tax(
            gains, asset.holding_months(), asset.instrument.is_home, annualized
        )
        if result.long_term.is_positive():
            # the yearly return only sees the gain left after the home-sale exclusion
            taxable = result.long_term.copy()
            if asset.instrument.is_home and asset.holding_months() > HOME_SALE_HOLDING_MONTHS:
                taxable.subtract(self.tax_table.config.home_sale_capital_gains_discount)
                if taxable.is_negative():
                    taxable.zero()
            self.monthly.long_term_capital_gains.add(taxable)
            self._one_off.long_term_capital_gains.add(taxable)
            self.monthly.long_term_capital_gains_tax.subtract(result.tax)
            self._one_off.long_term_capital_gains_tax.subtract(result.tax)
            asset.metrics[Metric.LONG_TERM_CAPITAL_GAIN].add(result.long_term)
        else:
            self.monthly.short_term_capital_gains.add(result.short_term)
            self._one_off.short_term_capital_gains.add(result.short_term)
            self.monthly.estimated_taxes.subtract(result.tax)
            self._one_off.estimated_taxes.subtract(result.tax)
            asset.metrics[Metric.SHORT_TERM_CAPITAL_GAIN].add(result.short_term)
        asset.metrics[Metric.CAPITAL_GAINS_TAX].add(result.tax)
        asset.finish_currency.subtract(result.tax)

    def _tax_distribution(self, asset: ModelAsset, proceeds: Currency) -> None:
        bucket = "ira_distribution" if asset.instrument is Instrument.IRA else "four01k_distribution"
        getattr(self.monthly, bucket).add(proceeds)
        getattr(self._one_off, bucket).add(proceeds)
        annualized = self.tax_table.calculate_yearly_taxable_income(self._regular_month().multiply(12.0))
        tax = self.tax_table.calculate_yearly_income_tax(annualized.plus(proceeds)).minus(
            self.tax_table.calculate_yearly_income_tax(annualized)
        )
        self.monthly.estimated_taxes.subtract(tax)
        self._one_off.estimated_taxes.subtract(tax)
        asset.metrics[Metric.ESTIMATED_TAX].add(tax)
        asset.finish_currency.subtract(tax)

    # ------------------------------------------------------------------
    # Mid-month
    # ------------------------------------------------------------------

    def _apply_property_tax_escrow(self, date: DateInt) -> None:
        for asset in self.model_assets:
            if not asset.instrument.is_home or not asset.in_month(date):
                continue
            tax = asset.monthly_property_tax
            if tax.is_zero():
                continue
            self.monthly.property_taxes.add(tax)
            asset.metrics[Metric.PROPERTY_TAX].add(tax)
            self._pay_from_expensable(tax.negated(), date, f"Property tax on {asset.display_name}", MemoKind.TAX)

    # ------------------------------------------------------------------
    # Last day of the month
    # ------------------------------------------------------------------

    def _apply_last_day_of_month(self, date: DateInt) -> None:
        active = [asset for asset in self.model_assets if asset.in_month(date)]
        self._apply_expense_transfers(active, date)
        self._ensure_rmd_distributions(active, date)
        self._apply_monthly_growth(active)
        self._apply_monthly_taxes(date)

    def _apply_expense_transfers(self, active: List[ModelAsset], date: DateInt) -> None:
        for asset in active:
            if not asset.instrument.is_monthly_expense:
                continue
            expense = asset.finish_currency.copy()
            covered = Currency()
            for transfer in asset.fund_transfers:
                if not transfer.is_active_for_month(date.month):
                    continue
                result = transfer.execute()
                if result.is_neutral:
                    continue
                covered.add(result.to_asset_change)
                self._record_withdrawal(transfer.to_model, result.to_asset_change.negated(), result.realized_gain)

            shortfall = covered.minus(expense)
            if shortfall.amount > _CENT:
                self._withdraw_for_expense(shortfall, asset, date)

    def _withdraw_for_expense(self, amount: Currency, expense: ModelAsset, date: DateInt) -> None:
        """
        Cover an expense shortfall from the first expensable account.

        Withdrawals from a taxable account are grossed up so that the tax on
        the gain they realize is covered too: W = X / (1 - t * g), with t the
        marginal capital-gains rate and g the account's unrealized gain ratio.
        When t * g reaches 1 the net shortfall is withdrawn as is.
        """
        account = first_expensable_account(self.model_assets, date)
        if account is None:
            transfer_logger.warning("%s: no expensable account for '%s' (%s)", date, expense.display_name, amount)
            return
        note = f"Expense {expense.display_name}"
        if account.instrument.is_basisable:
            annualized = self.tax_table.calculate_yearly_taxable_income(self._regular_month().multiply(12.0))
            rate = self.tax_table.marginal_ltcg_rate(annualized)
            ratio = account.unrealized_gain_ratio()
            denominator = 1.0 - rate * ratio
            gross = amount.divided_by(denominator) if denominator > 0 else amount.copy()
            settlement = account.debit(gross, note, kind=MemoKind.EXPENSE)
            self.monthly.estimated_taxes.subtract(gross.minus(amount))
            account.metrics[Metric.ESTIMATED_TAX].add(gross.minus(amount))
            self._record_withdrawal(account, gross, settlement.realized_gain)
        else:
            settlement = account.debit(amount, note, kind=MemoKind.EXPENSE)
            self._record_withdrawal(account, amount, settlement.realized_gain)

    def _record_withdrawal(self, account: ModelAsset, amount: Currency, realized_gain: Currency) -> None:
        if realized_gain.is_positive():
            self.monthly.long_term_capital_gains.add(realized_gain)
        kind = account.instrument
        if kind is Instrument.IRA:
            self.monthly.ira_distribution.add(amount)
        elif kind is Instrument.FOUR_01K:
            self.monthly.four01k_distribution.add(amount)
        elif kind is Instrument.ROTH_IRA:
            self.monthly.roth_distribution.add(amount)

    def _ensure_rmd_distributions(self, active: List[ModelAsset], date: DateInt) -> None:
        for asset in active:
            if not asset.instrument.is_tax_deferred or not asset.monthly_rmd.is_positive():
                continue
            metric = Metric.IRA_DISTRIBUTION if asset.instrument is Instrument.IRA else Metric.FOUR_01K_DISTRIBUTION
            shortfall = asset.monthly_rmd.minus(asset.metrics[metric].current)
            shortfall = Currency(min(shortfall.amount, asset.available_balance().amount))
            if shortfall.amount <= _CENT:
                continue
            target = first_expensable_account(self.model_assets, date, exclude=asset)
            if target is None:
                transfer_logger.warning("%s: no account to receive RMD from '%s'", date, asset.display_name)
                continue
            note = f"RMD from {asset.display_name}"
            asset.debit(shortfall, note, kind=MemoKind.TRANSFER)
            target.credit(shortfall, note, kind=MemoKind.TRANSFER)
            self._record_withdrawal(asset, shortfall, Currency())

    def _apply_monthly_growth(self, active: List[ModelAsset]) -> None:
        for asset in active:
            kind = asset.instrument
            if kind.is_capital:
                result = asset.apply_appreciation()
                self.monthly.asset_appreciation.add(result.growth)
                self.monthly.qualified_dividends.add(result.dividend)
            elif kind.is_income_account:
                self.monthly.interest_income.add(asset.apply_interest().income)
            elif kind.is_monthly_expense:
                self.monthly.expense.add(asset.apply_expense().expense)

    def _apply_monthly_taxes(self, date: DateInt) -> None:
        """Pay estimated tax on this month's income not already withheld."""
        regular = self._regular_month()
        estimate = self.tax_table.estimate_monthly_income_tax(regular)
        paid = regular.income_tax.plus(regular.estimated_taxes).plus(regular.long_term_capital_gains_tax).negated()
        top_up = estimate.minus(paid)
        if top_up.amount <= _CENT:
            return
        self.monthly.estimated_taxes.subtract(top_up)
        account = self._pay_from_expensable(top_up, date, "Estimated taxes", MemoKind.TAX)
        if account is not None:
            account.metrics[Metric.ESTIMATED_TAX].add(top_up)

    # ------------------------------------------------------------------
    # Year end
    # ------------------------------------------------------------------

    def _settle_yearly_taxes(self, liability: YearlyTaxLiability, date: DateInt) -> None:
        due = liability.balance_due()
        self.tax_settlements.append(liability)
        if abs(due.amount) <= _CENT:
            return
        if due.is_positive():
            self._pay_from_expensable(due, date, f"Tax balance due {liability.tax_year}", MemoKind.TAX)
        else:
            account = first_expensable_account(self.model_assets)
            if account is not None:
                account.credit(due.negated(), f"Tax refund {liability.tax_year}", kind=MemoKind.TAX)
        self.total.income_tax.subtract(due)
        tax_logger.info("Tax year %d settled: %s", liability.tax_year, due)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _regular_month(self) -> FinancialPackage:
        """This month's package without one-off closure items (which are taxed on their own)."""
        return self.monthly.copy().subtract(self._one_off)

    def _pay_from_expensable(
        self, amount: Currency, date: Optional[DateInt], note: str, kind: MemoKind
    ) -> Optional[ModelAsset]:
        account = first_expensable_account(self.model_assets, date)
        if account is None:
            transfer_logger.warning("%s: no expensable account to pay %s (%s)", date, note, amount)
            return None
        account.debit(amount, note, kind=kind)
        return account

    def _monthly_sanity_check(self, month: DateInt) -> bool:
        """Transfer memos written during *month* must net to zero."""
        imbalance = 0.0
        for asset in self.model_assets:
            for memo in reversed(asset.memo_ledger):
                if memo.date is None or memo.date != month:
                    break
                if memo.kind is MemoKind.TRANSFER:
                    imbalance += memo.amount.amount
        if abs(imbalance) > SANITY_TOLERANCE:
            self.sanity_failures.append(month.copy())
            sanity_logger.warning("%s: transfers do not net to zero (off by %.2f)", month, imbalance)
            return False
        return True

    # ------------------------------------------------------------------
    # Queries and export
    # ------------------------------------------------------------------

    def net_worth(self) -> Currency:
        total = Currency()
        for asset in self.model_assets:
            if asset.has_started and not asset.is_closed and not asset.instrument.is_flow:
                total.add(asset.available_balance())
        return total

    def months_span(self) -> Optional[MonthsSpan]:
        if self.is_empty:
            return None
        return MonthsSpan.build(self.first_date_int, self.last_date_int)

    def value_frame(self) -> pd.DataFrame:
        """Month-end value of every balance asset, one column per display name."""
        columns = {
            asset.display_name: asset.metrics[Metric.VALUE].history
            for asset in self.model_assets
            if not asset.instrument.is_flow
        }
        months = max((len(h) for h in columns.values()), default=0)
        if self.first_date_int is None or months == 0:
            return pd.DataFrame()
        return pd.DataFrame(columns, index=month_index(self.first_date_int, months))

    def monthly_frame(self) -> pd.DataFrame:
        """One row of FinancialPackage buckets per simulated month."""
        if not self.monthly_history or self.first_date_int is None:
            return pd.DataFrame()
        rows = [package.to_series() for package in self.monthly_history]
        return pd.DataFrame(rows, index=month_index(self.first_date_int, len(rows)))

    def yearly_frame(self) -> pd.DataFrame:
        """Archived yearly packages, one row per simulated year."""
        return yearly_table(self.yearly_history)

    def build_summary(self) -> PortfolioSummary:
        values = self.value_frame()
        if values.empty:
            net_worth = pd.Series([0.0])
        else:
            net_worth = values.sum(axis=1)
        accumulated = sum(
            (asset.metrics[Metric.ACCUMULATED].last() or 0.0)
            for asset in self.model_assets
            if not asset.instrument.is_flow
        )
        start, finish = float(net_worth.iloc[0]), float(net_worth.iloc[-1])
        return PortfolioSummary(
            first_date_int=self.first_date_int.copy(),
            last_date_int=self.last_date_int.copy(),
            total_months=self.total_months,
            start_value=Currency(start),
            finish_value=Currency(finish),
            accumulated=Currency(accumulated),
            total_taxes=self.total.total_taxes(),
            cagr=compute_cagr(start, finish, len(net_worth)),
            max_drawdown=float(np.min(drawdown(net_worth).to_numpy())) if len(net_worth) else 0.0,
        )
