"""
Unit tests for config module.

Tests Pydantic validation of portfolio files and the environment-driven
application settings.
"""

import pytest
from pydantic import ValidationError

from finchron.config import (
    AppSettings,
    ChronometerConfig,
    CreditMemoConfig,
    FundTransferConfig,
    ModelAssetConfig,
    PortfolioConfig,
    TaxConfig,
    UserConfig,
)
from finchron.instrument import Instrument


def asset(**overrides) -> dict:
    data = {
        "instrument": "cash",
        "display_name": "Cash",
        "start_date": "2025-01",
        "finish_date": "2026-12",
        "start_value": 1_000,
    }
    data.update(overrides)
    return data


# ============================================================================
# FUND TRANSFER AND CREDIT MEMO TESTS
# ============================================================================

class TestFundTransferConfig:
    """Test FundTransferConfig validation."""

    def test_defaults(self):
        config = FundTransferConfig(to_display_name="Savings")
        assert config.move_value == 0
        assert config.frequency == "monthly"
        assert not config.move_on_finish_date

    @pytest.mark.parametrize("value", [-5, 101])
    def test_move_value_range(self, value):
        with pytest.raises(ValidationError):
            FundTransferConfig(to_display_name="Savings", move_value=value)

    def test_unknown_frequency(self):
        with pytest.raises(ValidationError):
            FundTransferConfig(to_display_name="Savings", frequency="weekly")

    def test_frozen(self):
        config = FundTransferConfig(to_display_name="Savings")
        with pytest.raises(ValidationError):
            config.move_value = 10


class TestCreditMemoConfig:
    """Test CreditMemoConfig validation."""

    def test_date_normalized(self):
        assert CreditMemoConfig(date="2025-03-15", amount=100).date == "2025-03"

    def test_bad_date(self):
        with pytest.raises(ValidationError, match="Cannot parse"):
            CreditMemoConfig(date="March", amount=100)


# ============================================================================
# MODEL ASSET TESTS
# ============================================================================

class TestModelAssetConfig:
    """Test ModelAssetConfig validation."""

    def test_instrument_parsed(self):
        config = ModelAssetConfig(**asset(instrument="401k"))
        assert config.instrument is Instrument.FOUR_01K

    def test_unknown_instrument(self):
        with pytest.raises(ValidationError):
            ModelAssetConfig(**asset(instrument="crypto"))

    @pytest.mark.parametrize("rate, expected", [("7%", 0.07), (0.05, 0.05), ("", 0.0), ("3.5 %", 0.035)])
    def test_rate_text(self, rate, expected):
        config = ModelAssetConfig(**asset(annual_return_rate=rate))
        assert config.annual_return_rate == pytest.approx(expected)

    def test_rate_must_exceed_minus_one(self):
        with pytest.raises(ValidationError):
            ModelAssetConfig(**asset(annual_return_rate="-100%"))

    def test_finish_before_start(self):
        with pytest.raises(ValidationError, match="must not precede"):
            ModelAssetConfig(**asset(start_date="2026-01", finish_date="2025-01"))

    def test_mortgage_needs_term(self):
        with pytest.raises(ValidationError, match="months_remaining"):
            ModelAssetConfig(**asset(instrument="mortgage", display_name="Loan"))

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            ModelAssetConfig(**asset(colour="blue"))

    def test_negative_basis_rejected(self):
        with pytest.raises(ValidationError):
            ModelAssetConfig(**asset(basis_value=-1))


# ============================================================================
# RUN SETTINGS TESTS
# ============================================================================

class TestRunSettings:
    """Test TaxConfig, UserConfig and ChronometerConfig."""

    def test_tax_defaults(self):
        config = TaxConfig()
        assert config.tax_year == 2025
        assert config.filing_as == "single"
        assert config.inflation_rate == pytest.approx(0.031)

    def test_filing_case_insensitive(self):
        assert TaxConfig(filing_as="MARRIED").filing_as == "married"

    def test_unknown_filing(self):
        with pytest.raises(ValidationError):
            TaxConfig(filing_as="head_of_household")

    def test_unknown_tax_year(self):
        with pytest.raises(ValidationError, match="no tax tables"):
            TaxConfig(tax_year=1999)

    def test_user_age_bounds(self):
        assert UserConfig().start_age == 57
        with pytest.raises(ValidationError):
            UserConfig(start_age=-1)

    def test_chronometer_delay_bounds(self):
        assert ChronometerConfig(animation_delay=0).animation_delay == 0
        with pytest.raises(ValidationError):
            ChronometerConfig(animation_delay=-0.1)


# ============================================================================
# PORTFOLIO TESTS
# ============================================================================

class TestPortfolioConfig:
    """Test whole-portfolio validation."""

    def test_file_content_validates(self, portfolio_data):
        portfolio_data.pop("schema_version")
        config = PortfolioConfig.model_validate(portfolio_data)
        assert config.name == "Test Plan"
        assert len(config.assets) == 5
        assert config.user.start_age == 55
        assert config.assets[0].annual_return_rate == pytest.approx(0.03)

    def test_duplicate_display_names(self):
        with pytest.raises(ValidationError, match="duplicate display_name"):
            PortfolioConfig(assets=[asset(), asset()])

    def test_unknown_transfer_target_warns(self):
        source = asset(fund_transfers=[{"to_display_name": "Nowhere", "move_value": 10}])
        with pytest.warns(UserWarning, match="unknown asset 'Nowhere'"):
            PortfolioConfig(assets=[source])

    def test_empty_portfolio_allowed(self):
        assert PortfolioConfig().assets == []


# ============================================================================
# APPLICATION SETTINGS TESTS
# ============================================================================

class TestAppSettings:
    """Test environment-driven settings."""

    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("FINCHRON_LOG_LEVEL", raising=False)
        monkeypatch.delenv("FINCHRON_DEBUG", raising=False)
        settings = AppSettings()
        assert settings.log_level == "WARNING"
        assert not settings.debug
        assert settings.animation_delay is None

    def test_environment_prefix(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("FINCHRON_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("FINCHRON_ANIMATION_DELAY", "0.5")
        settings = AppSettings()
        assert settings.log_level == "DEBUG"
        assert settings.animation_delay == 0.5

    def test_dotenv_file(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("FINCHRON_DEBUG", raising=False)
        (tmp_path / ".env").write_text("FINCHRON_DEBUG=true\n")
        assert AppSettings().debug

    def test_animation_delay_resolution(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("FINCHRON_ANIMATION_DELAY", raising=False)
        from_file = ChronometerConfig(animation_delay=0.3)
        assert AppSettings().resolve_animation_delay(from_file) == 0.3
        assert AppSettings().resolve_animation_delay() == pytest.approx(0.08)
        assert AppSettings(animation_delay=0.0).resolve_animation_delay(from_file) == 0.0
