"""
Unit tests for portfolio module.

Tests Portfolio construction, the per-tick work of apply_month, closures,
contribution caps, withdrawals and the monthly sanity check.
"""

import logging

import pytest

from finchron.chronometer import run
from finchron.currency import Currency
from finchron.date_int import DateInt
from finchron.exceptions import ValidationError
from finchron.fund_transfer import FundTransfer
from finchron.instrument import Instrument
from finchron.portfolio import Portfolio
from finchron.results import CreditMemo, MemoKind
from finchron.taxes import TaxTable
from finchron.user import User


# Salary 6,000: FICA 459, withholding 7,454 / 12 on 57,000 taxable
FIRST_MONTH_WITHHOLDING = 7_454.0 / 12.0
FIRST_MONTH_NET = 6_000.0 - 459.0 - FIRST_MONTH_WITHHOLDING


def simulate_month(portfolio: Portfolio, date: DateInt) -> DateInt:
    """Run the seven ticks of *date*'s month and close it; returns the next month."""
    cursor = date.copy()
    for _ in range(7):
        portfolio.apply_month(cursor)
        cursor.next()
    portfolio.monthly_chron(cursor)
    return cursor


# ============================================================================
# INITIALIZATION TESTS
# ============================================================================

class TestPortfolioInit:
    """Test construction and transfer binding."""

    def test_assets_sorted_and_indexed(self, simple_portfolio):
        names = [a.display_name for a in simple_portfolio.model_assets]
        assert names == ["Salary", "Cash", "Living"]
        assert set(simple_portfolio.arena) == {"Salary", "Cash", "Living"}

    def test_span(self, simple_portfolio):
        assert simple_portfolio.first_date_int == DateInt(202501)
        assert simple_portfolio.last_date_int == DateInt(202612)
        assert simple_portfolio.months_span().combine_months == 1

    def test_duplicate_names_rejected(self, cash, asset_factory):
        twin = asset_factory(Instrument.BANK, "Cash", value=1)
        with pytest.raises(ValidationError, match="Duplicate display name"):
            Portfolio([cash, twin])

    def test_transfers_bound_at_construction(self, cash, asset_factory):
        salary = asset_factory(
            Instrument.MONTHLY_SALARY, "Salary", value=5_000,
            fund_transfers=[FundTransfer("Cash", move_value=10), FundTransfer("Missing", move_value=10)],
        )
        portfolio = Portfolio([cash, salary])
        assert salary.fund_transfers[0].to_model is cash
        assert not salary.fund_transfers[1].is_bound
        assert portfolio.bind_fund_transfers() == 1

    def test_defaults(self, cash):
        portfolio = Portfolio([cash])
        assert isinstance(portfolio.tax_table, TaxTable)
        assert portfolio.user.age == 57
        assert portfolio.name == "Portfolio"


# ============================================================================
# EMPTY PORTFOLIO TESTS
# ============================================================================

class TestEmptyPortfolio:
    """Every hook is a no-op without assets."""

    def test_hooks_are_noops(self, empty_portfolio):
        date = DateInt(202501)
        assert empty_portfolio.is_empty
        empty_portfolio.initialize_chron()
        assert empty_portfolio.apply_month(date) == 0
        empty_portfolio.monthly_chron(date)
        empty_portfolio.apply_year(date)
        empty_portfolio.yearly_chron(date)
        empty_portfolio.finalize_chron()
        assert empty_portfolio.monthly_history == []
        assert empty_portfolio.summary is None

    def test_queries(self, empty_portfolio):
        assert empty_portfolio.months_span() is None
        assert empty_portfolio.value_frame().empty
        assert empty_portfolio.net_worth().is_zero()


# ============================================================================
# MONTHLY WORK TESTS
# ============================================================================

class TestApplyMonth:
    """Test the tick dispatch and one simulated month."""

    def test_months_elapsed_only_on_first_tick(self, simple_portfolio):
        simple_portfolio.initialize_chron()
        cursor = DateInt(202501)
        elapsed = []
        for _ in range(7):
            elapsed.append(simple_portfolio.apply_month(cursor))
            cursor.next()
        assert elapsed == [1, 0, 0, 0, 0, 0, 0]

    def test_income_withholding_and_expense(self, simple_portfolio, cash):
        simple_portfolio.initialize_chron()
        simulate_month(simple_portfolio, DateInt(202501))

        month = simple_portfolio.monthly_history[0]
        assert month.employed_income.amount == pytest.approx(6_000.0)
        assert month.fica.amount == pytest.approx(-459.0)
        assert month.income_tax.amount == pytest.approx(-FIRST_MONTH_WITHHOLDING)
        assert month.expense.amount == pytest.approx(-2_000.0)
        assert month.estimated_taxes.amount == pytest.approx(0.0, abs=0.01)

        assert cash.finish_currency.amount == pytest.approx(10_000.0 + FIRST_MONTH_NET - 2_000.0)
        assert simple_portfolio.net_worth().amount == pytest.approx(cash.finish_currency.amount)
        assert simple_portfolio.monthly.is_empty()
        assert simple_portfolio.yearly.employed_income.amount == pytest.approx(6_000.0)

    def test_scheduled_credit(self, asset_factory):
        memo = CreditMemo(Currency(500), "gift", DateInt(202502), MemoKind.SCHEDULED)
        cash = asset_factory(Instrument.CASH, "Cash", finish="2025-03", value=10_000, credit_memos=[memo])
        portfolio = Portfolio([cash], TaxTable(), User(45))
        assert run(portfolio)
        assert cash.finish_currency.amount == pytest.approx(10_500.0)
        assert cash.memo_ledger[0].kind is MemoKind.SCHEDULED

    def test_mortgage_paid_and_paid_off(self, asset_factory):
        cash = asset_factory(Instrument.CASH, "Cash", finish="2026-01", value=200_000)
        loan = asset_factory(
            Instrument.MORTGAGE, "Mortgage", finish="2025-12", value=120_000, months_remaining=120,
        )
        portfolio = Portfolio([cash, loan], TaxTable(), User(45))
        assert run(portfolio)

        assert portfolio.monthly_history[0].mortgage_principal.amount == pytest.approx(-1_000.0)
        assert loan.is_closed
        # 12 payments, then the 108,000 balance is paid off in January
        assert cash.finish_currency.amount == pytest.approx(80_000.0)
        assert portfolio.sanity_failures == []


# ============================================================================
# CLOSURE TESTS
# ============================================================================

class TestClosures:
    """Test the sale of finished assets."""

    def test_short_term_sale_taxed_and_swept(self, asset_factory):
        cash = asset_factory(Instrument.CASH, "Cash", finish="2025-03", value=10_000)
        stock = asset_factory(
            Instrument.TAXABLE_EQUITY, "Brokerage", finish="2025-02", value=20_000,
            basis_currency=Currency(10_000),
        )
        portfolio = Portfolio([cash, stock], TaxTable(), User(45))
        assert run(portfolio)

        # 10,000 short-term gain taxed in the 10% bracket, from the proceeds
        assert stock.is_closed
        assert portfolio.total.short_term_capital_gains.amount == pytest.approx(10_000.0)
        assert portfolio.total.estimated_taxes.amount == pytest.approx(-1_000.0)
        assert cash.finish_currency.amount == pytest.approx(29_000.0)
        assert portfolio.sanity_failures == []

    def test_closing_transfer_moves_proceeds(self, asset_factory):
        cash = asset_factory(Instrument.CASH, "Cash", finish="2025-03", value=0)
        bank = asset_factory(Instrument.BANK, "Savings", finish="2025-03", value=0)
        old = asset_factory(
            Instrument.BANK, "Old", finish="2025-01", value=4_000,
            fund_transfers=[FundTransfer("Savings", move_on_finish_date=True, move_value=25)],
        )
        portfolio = Portfolio([cash, bank, old], TaxTable(), User(45))
        assert run(portfolio)

        assert bank.finish_currency.amount == pytest.approx(1_000.0)
        assert cash.finish_currency.amount == pytest.approx(3_000.0)
        assert old.is_closed

    def test_flow_assets_close_without_proceeds(self, asset_factory):
        cash = asset_factory(Instrument.CASH, "Cash", finish="2025-03", value=1_000)
        salary = asset_factory(Instrument.MONTHLY_SALARY, "Gig", finish="2025-01", value=100)
        portfolio = Portfolio([cash, salary], TaxTable(), User(45))
        assert run(portfolio)
        assert salary.is_closed
        assert len(portfolio.monthly_history) == 3
        assert portfolio.monthly_history[1].employed_income.is_zero()


# ============================================================================
# CONTRIBUTION AND WITHDRAWAL TESTS
# ============================================================================

class TestContributionsAndWithdrawals:
    """Test retirement caps, RMDs and taxable withdrawals."""

    def test_401k_contributions_capped_yearly(self, asset_factory):
        cash = asset_factory(Instrument.CASH, "Cash", finish="2025-12", value=10_000)
        plan = asset_factory(Instrument.FOUR_01K, "401K", finish="2025-12", value=0)
        salary = asset_factory(
            Instrument.MONTHLY_SALARY, "Salary", finish="2025-12", value=6_000,
            fund_transfers=[FundTransfer("401K", move_value=50)],
        )
        portfolio = Portfolio([cash, plan, salary], TaxTable(), User(45))
        assert run(portfolio)

        year, package = portfolio.yearly_history[0]
        assert year == 2025
        assert package.four01k_contribution.amount == pytest.approx(23_500.0)
        assert plan.finish_currency.amount == pytest.approx(23_500.0)
        # half of the pay left after FICA, before income tax
        assert portfolio.monthly_history[0].four01k_contribution.amount == pytest.approx((6_000.0 - 459.0) / 2)
        assert portfolio.sanity_failures == []

    def test_401k_contribution_lowers_withholding(self, asset_factory):
        """Half of 5,541 to the 401K leaves 72,000 - 33,246 - 15,000 = 23,754 taxable."""
        def first_month(transfers):
            cash = asset_factory(Instrument.CASH, "Cash", finish="2025-01", value=10_000)
            plan = asset_factory(Instrument.FOUR_01K, "401K", finish="2025-01")
            salary = asset_factory(
                Instrument.MONTHLY_SALARY, "Salary", finish="2025-01", value=6_000, fund_transfers=transfers,
            )
            portfolio = Portfolio([cash, plan, salary], TaxTable(), User(45))
            assert run(portfolio)
            return portfolio.monthly_history[0], cash

        plain, plain_cash = first_month([])
        saving, saving_cash = first_month([FundTransfer("401K", move_value=50)])

        assert plain.income_tax.amount == pytest.approx(-FIRST_MONTH_WITHHOLDING)
        assert saving.income_tax.amount == pytest.approx(-2_611.98 / 12.0)
        assert saving.four01k_contribution.amount == pytest.approx(2_770.5)
        assert saving_cash.finish_currency.amount == pytest.approx(10_000.0 + 2_770.5 - 2_611.98 / 12.0)
        assert plain_cash.finish_currency.amount == pytest.approx(10_000.0 + FIRST_MONTH_NET)

    def test_rmd_distributed_to_cash(self, asset_factory):
        cash = asset_factory(Instrument.CASH, "Cash", finish="2025-01", value=1_000)
        ira = asset_factory(Instrument.IRA, "IRA", finish="2025-01", value=100_000)
        portfolio = Portfolio([cash, ira], TaxTable(), User(75))
        assert run(portfolio)

        rmd = 100_000.0 / 22.9 / 12.0
        assert portfolio.monthly_history[0].ira_distribution.amount == pytest.approx(rmd)
        assert cash.finish_currency.amount == pytest.approx(1_000.0 + rmd)
        assert ira.finish_currency.amount == pytest.approx(100_000.0 - rmd)

    def test_no_rmd_before_age(self, asset_factory):
        cash = asset_factory(Instrument.CASH, "Cash", finish="2025-01", value=1_000)
        ira = asset_factory(Instrument.IRA, "IRA", finish="2025-01", value=100_000)
        portfolio = Portfolio([cash, ira], TaxTable(), User(60))
        assert run(portfolio)
        assert portfolio.monthly_history[0].ira_distribution.is_zero()

    def test_taxable_withdrawal_grossed_up(self, asset_factory):
        """A 40% gain ratio at the 15% rate grosses 2,000 up to 2,000 / 0.94."""
        stock = asset_factory(
            Instrument.TAXABLE_EQUITY, "Brokerage", finish="2025-01", value=100_000,
            basis_currency=Currency(60_000),
        )
        salary = asset_factory(Instrument.MONTHLY_SALARY, "Salary", finish="2025-01", value=10_000)
        rent = asset_factory(Instrument.MONTHLY_EXPENSE, "Rent", finish="2025-01", value=2_000)
        portfolio = Portfolio([stock, salary, rent], TaxTable(), User(45))
        assert run(portfolio)

        extra = 2_000.0 / 0.94 - 2_000.0
        assert portfolio.monthly_history[0].estimated_taxes.amount == pytest.approx(-extra)

    def test_gross_up_skipped_when_rate_consumes_gain(self, asset_factory, monkeypatch):
        """With t * g past 1 the net shortfall is withdrawn without a gross-up."""
        stock = asset_factory(
            Instrument.TAXABLE_EQUITY, "Brokerage", finish="2025-01", value=100_000,
            basis_currency=Currency(60_000),
        )
        rent = asset_factory(Instrument.MONTHLY_EXPENSE, "Rent", finish="2025-01", value=2_000)
        table = TaxTable()
        monkeypatch.setattr(table, "marginal_ltcg_rate", lambda income: 3.0)
        portfolio = Portfolio([stock, rent], table, User(45))
        assert run(portfolio)

        assert portfolio.monthly_history[0].estimated_taxes.is_zero()
        assert stock.finish_currency.amount == pytest.approx(98_000.0)

    def test_expense_transfer_draws_from_target(self, asset_factory):
        cash = asset_factory(Instrument.CASH, "Cash", finish="2025-01", value=5_000)
        bank = asset_factory(Instrument.BANK, "Savings", finish="2025-01", value=5_000)
        rent = asset_factory(
            Instrument.MONTHLY_EXPENSE, "Rent", finish="2025-01", value=1_000,
            fund_transfers=[FundTransfer("Savings", move_value=100)],
        )
        portfolio = Portfolio([cash, bank, rent], TaxTable(), User(45))
        assert run(portfolio)

        assert bank.finish_currency.amount == pytest.approx(4_000.0)
        assert cash.finish_currency.amount == pytest.approx(5_000.0)

    def test_missing_expensable_account_logs(self, asset_factory, caplog):
        rent = asset_factory(Instrument.MONTHLY_EXPENSE, "Rent", finish="2025-01", value=1_000)
        home = asset_factory(Instrument.HOME, "Home", finish="2025-01", value=300_000)
        portfolio = Portfolio([rent, home], TaxTable(), User(45))
        with caplog.at_level(logging.WARNING, logger="finchron"):
            assert run(portfolio)
        assert "no expensable account" in caplog.text


# ============================================================================
# SANITY AND EXPORT TESTS
# ============================================================================

class TestSanityAndExport:
    """Test the transfer balance check and the result frames."""

    def test_unbalanced_transfer_flagged(self, simple_portfolio, cash, caplog):
        simple_portfolio.initialize_chron()
        cash.handle_current_date(DateInt(202501))
        cash.debit(Currency(100), "leak")
        with caplog.at_level(logging.WARNING, logger="finchron.sanity"):
            simple_portfolio.monthly_chron(DateInt(202502))
        assert simple_portfolio.sanity_failures == [DateInt(202501)]
        assert "do not net to zero" in caplog.text

    def test_frames(self, simple_portfolio):
        assert run(simple_portfolio)
        values = simple_portfolio.value_frame()
        assert list(values.columns) == ["Cash"]
        assert len(values) == 24
        assert len(simple_portfolio.monthly_frame()) == 24
        yearly = simple_portfolio.yearly_frame()
        assert list(yearly.index) == [2025, 2026]
        assert "cash_flow" in yearly.columns

    def test_rerun_is_repeatable(self, simple_portfolio):
        assert run(simple_portfolio)
        first = simple_portfolio.summary.finish_value.amount
        assert run(simple_portfolio)
        assert simple_portfolio.summary.finish_value.amount == pytest.approx(first)
        assert len(simple_portfolio.monthly_history) == 24
