"""
Unit tests for serialization module.

Tests the persisted forms of fund transfers, credit memos and model
assets, and saving and loading whole portfolio files.
"""

import json
import warnings

import pydantic
import pytest

from finchron.config import ChronometerConfig
from finchron.currency import Currency
from finchron.date_int import DateInt
from finchron.fund_transfer import FundTransfer
from finchron.instrument import Instrument
from finchron.portfolio import Portfolio
from finchron.results import CreditMemo, MemoKind
from finchron.serialization import (
    SCHEMA_VERSION,
    build_portfolio,
    credit_memo_from_dict,
    credit_memo_to_dict,
    fund_transfer_from_dict,
    load_portfolio,
    load_portfolio_config,
    model_asset_from_dict,
    model_asset_to_dict,
    portfolio_to_dict,
    save_portfolio,
)
from finchron.taxes import TaxTable
from finchron.user import User


# ============================================================================
# ELEMENT TESTS
# ============================================================================

class TestElements:
    """Test transfers, memos and assets."""

    def test_fund_transfer_from_dict_validates(self):
        transfer = fund_transfer_from_dict({"to_display_name": "IRA", "move_value": 15, "frequency": "yearly"})
        assert transfer.move_value == 15
        assert transfer.frequency.value == "yearly"
        with pytest.raises(pydantic.ValidationError):
            fund_transfer_from_dict({"to_display_name": "IRA", "move_value": 150})

    def test_credit_memo(self):
        memo = CreditMemo(Currency(250.5), "bonus", DateInt(202507), MemoKind.SCHEDULED)
        data = credit_memo_to_dict(memo)
        assert data == {"date": "2025-07", "amount": 250.5, "note": "bonus"}
        restored = credit_memo_from_dict(data)
        assert restored.date == DateInt(202507)
        assert restored.kind is MemoKind.SCHEDULED
        assert restored.amount.amount == 250.5

    def test_memo_without_note(self):
        memo = CreditMemo(Currency(-10), date=DateInt(202501))
        assert "note" not in credit_memo_to_dict(memo)

    def test_model_asset_dict(self, asset_factory):
        source = asset_factory(
            Instrument.TAXABLE_EQUITY, "Brokerage", value=50_000, rate=0.07,
            basis_currency=Currency(40_000), annual_dividend_rate=0.015,
            fund_transfers=[FundTransfer("Cash", move_on_finish_date=True, move_value=100)],
        )
        data = model_asset_to_dict(source)
        assert data["instrument"] == "taxable_equity"
        assert data["start_date"] == "2025-01"
        assert data["basis_value"] == 40_000
        assert data["fund_transfers"] == [
            {"to_display_name": "Cash", "move_on_finish_date": True, "move_value": 100}
        ]

        restored = model_asset_from_dict(data)
        assert restored.instrument is Instrument.TAXABLE_EQUITY
        assert restored.finish_basis_currency.amount == 40_000
        assert restored.annual_dividend_rate == 0.015
        assert restored.fund_transfers[0].move_on_finish_date

    def test_negative_balances_survive(self, mortgage):
        data = model_asset_to_dict(mortgage)
        assert data["start_value"] == -120_000
        restored = model_asset_from_dict(data)
        assert restored.finish_currency.amount == -120_000
        assert restored.months_remaining == 120

    def test_invalid_asset_dict(self):
        with pytest.raises(pydantic.ValidationError):
            model_asset_from_dict({"instrument": "cash", "display_name": "Cash"})


# ============================================================================
# PORTFOLIO FILE TESTS
# ============================================================================

class TestPortfolioFiles:
    """Test save and load."""

    def test_load(self, portfolio_file):
        portfolio = load_portfolio(portfolio_file)
        assert isinstance(portfolio, Portfolio)
        assert portfolio.name == "Test Plan"
        assert portfolio.user.start_age == 55
        assert set(portfolio.arena) == {"Salary", "Living", "Checking", "Brokerage", "401K"}
        transfer = portfolio.arena["Salary"].fund_transfers[0]
        assert transfer.to_model is portfolio.arena["401K"]
        assert portfolio.arena["Living"].finish_currency.amount == -3_000

    def test_save_then_load(self, tmp_path, simple_portfolio):
        path = tmp_path / "nested" / "plan.json"
        save_portfolio(simple_portfolio, path, ChronometerConfig(animation_delay=0.2))

        with open(path) as f:
            data = json.load(f)
        assert data["schema_version"] == SCHEMA_VERSION
        assert data["chronometer"]["animation_delay"] == 0.2
        assert [a["display_name"] for a in data["assets"]] == ["Salary", "Cash", "Living"]

        loaded = load_portfolio(path)
        assert [a.display_name for a in loaded.model_assets] == ["Salary", "Cash", "Living"]
        assert loaded.user.start_age == 45
        assert loaded.arena["Salary"].annual_return_rate == 0.03

    def test_portfolio_to_dict_keeps_tax_settings(self, cash):
        from finchron.config import TaxConfig

        portfolio = Portfolio([cash], TaxTable(TaxConfig(filing_as="married")), User(60), reports=True)
        data = portfolio_to_dict(portfolio)
        assert data["tax"]["filing_as"] == "married"
        assert data["user"] == {"start_age": 60}
        assert data["chronometer"]["reports"] is True

    def test_schema_version_mismatch_warns(self, tmp_path, portfolio_data):
        portfolio_data["schema_version"] = "0.0.1"
        path = tmp_path / "old.json"
        path.write_text(json.dumps(portfolio_data))
        with pytest.warns(UserWarning, match="schema version 0.0.1 differs"):
            load_portfolio_config(path)

    def test_current_schema_does_not_warn(self, portfolio_file):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            load_portfolio_config(portfolio_file)

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"schema_version": SCHEMA_VERSION, "assets": [{"instrument": "cash"}]}))
        with pytest.raises(pydantic.ValidationError):
            load_portfolio(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_portfolio(tmp_path / "absent.json")

    def test_build_portfolio_runs(self, portfolio_file):
        from finchron.chronometer import run

        portfolio = build_portfolio(load_portfolio_config(portfolio_file))
        assert run(portfolio)
        assert portfolio.total_months == 24
        assert portfolio.sanity_failures == []
