"""
Pytest configuration and fixtures for FinChron test suite.

This module provides reusable fixtures for testing all FinChron components.
Fixtures follow the principle of "arrange-act-assert" with clear separation.
"""

import json
from typing import List

import pytest

from finchron.currency import Currency
from finchron.date_int import DateInt
from finchron.fund_transfer import FundTransfer
from finchron.instrument import Instrument
from finchron.model_asset import ModelAsset
from finchron.portfolio import Portfolio
from finchron.serialization import SCHEMA_VERSION
from finchron.taxes import TaxTable
from finchron.user import User


# ---------------------------------------------------------------------------
# Date Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def start_date() -> DateInt:
    """Standard first month for tests."""
    return DateInt(202501)


@pytest.fixture
def finish_date() -> DateInt:
    """Standard last month for tests (24 months after start_date)."""
    return DateInt(202612)


# ---------------------------------------------------------------------------
# Asset Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def cash(start_date, finish_date) -> ModelAsset:
    """Cash account, $10,000, no growth."""
    return ModelAsset(Instrument.CASH, "Cash", start_date, finish_date, Currency(10_000))


@pytest.fixture
def brokerage(start_date, finish_date) -> ModelAsset:
    """
    Taxable brokerage account.

    Value: $100,000, basis $60,000 (40% unrealized gain)
    Return: 6% annually
    """
    return ModelAsset(
        Instrument.TAXABLE_EQUITY, "Brokerage", start_date, finish_date,
        Currency(100_000), 0.06, basis_currency=Currency(60_000),
    )


@pytest.fixture
def salary(start_date, finish_date) -> ModelAsset:
    """Salary of $6,000/month with a 3% yearly raise."""
    return ModelAsset(Instrument.MONTHLY_SALARY, "Salary", start_date, finish_date, Currency(6_000), 0.03)


@pytest.fixture
def expense(start_date, finish_date) -> ModelAsset:
    """Living expense of $2,000/month, no inflation."""
    return ModelAsset(Instrument.MONTHLY_EXPENSE, "Living", start_date, finish_date, Currency(2_000))


@pytest.fixture
def mortgage(start_date) -> ModelAsset:
    """$120,000 mortgage at 0%, 120 months remaining."""
    return ModelAsset(
        Instrument.MORTGAGE, "Mortgage", start_date, DateInt(203412),
        Currency(120_000), 0.0, months_remaining=120,
    )


@pytest.fixture
def simple_assets(cash, salary, expense) -> List[ModelAsset]:
    """Salary paying into cash, with a living expense drawn from cash."""
    return [cash, salary, expense]


# ---------------------------------------------------------------------------
# Portfolio Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def tax_table() -> TaxTable:
    """Default 2025 single-filer tax table."""
    return TaxTable()


@pytest.fixture
def simple_portfolio(simple_assets, tax_table) -> Portfolio:
    """Two-year portfolio of cash, salary and expense for a 45-year-old."""
    return Portfolio(simple_assets, tax_table, User(45))


@pytest.fixture
def empty_portfolio() -> Portfolio:
    """Portfolio without assets."""
    return Portfolio([])


def make_asset(instrument, name, start="2025-01", finish="2026-12", value=0.0, rate=0.0, **kwargs) -> ModelAsset:
    """Build a ModelAsset from text dates (helper for parametrized tests)."""
    return ModelAsset(
        instrument, name, DateInt.parse(start), DateInt.parse(finish), Currency(value), rate, **kwargs
    )


@pytest.fixture
def asset_factory():
    """Factory for ad hoc model assets."""
    return make_asset


@pytest.fixture
def transfer_to():
    """Factory for a monthly transfer of *percent* to *name*."""
    def _make(name: str, percent: float, **kwargs) -> FundTransfer:
        return FundTransfer(name, move_value=percent, **kwargs)
    return _make


# ---------------------------------------------------------------------------
# Configuration Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def portfolio_data() -> dict:
    """Portfolio file content with income, expense, cash, brokerage and 401K."""
    return {
        "schema_version": SCHEMA_VERSION,
        "name": "Test Plan",
        "user": {"start_age": 55},
        "tax": {"tax_year": 2025, "filing_as": "single"},
        "chronometer": {"animation_delay": 0.0, "reports": False},
        "assets": [
            {
                "instrument": "monthly_salary",
                "display_name": "Salary",
                "start_date": "2025-01",
                "finish_date": "2026-12",
                "start_value": 8000,
                "annual_return_rate": "3%",
                "fund_transfers": [{"to_display_name": "401K", "move_value": 10}],
            },
            {
                "instrument": "monthly_expense",
                "display_name": "Living",
                "start_date": "2025-01",
                "finish_date": "2026-12",
                "start_value": -3000,
            },
            {
                "instrument": "cash",
                "display_name": "Checking",
                "start_date": "2025-01",
                "finish_date": "2026-12",
                "start_value": 15000,
            },
            {
                "instrument": "taxable_equity",
                "display_name": "Brokerage",
                "start_date": "2025-01",
                "finish_date": "2026-12",
                "start_value": 50000,
                "basis_value": 40000,
                "annual_return_rate": 0.06,
            },
            {
                "instrument": "401k",
                "display_name": "401K",
                "start_date": "2025-01",
                "finish_date": "2026-12",
                "start_value": 100000,
                "annual_return_rate": 0.06,
            },
        ],
    }


@pytest.fixture
def portfolio_file(tmp_path, portfolio_data):
    """Portfolio JSON file written to a temporary directory."""
    path = tmp_path / "portfolio.json"
    with open(path, "w") as f:
        json.dump(portfolio_data, f)
    return path
