"""
Configuration management module for FinChron.

Purpose
-------
Centralized configuration using Pydantic models for type-safe portfolio
definitions, validation and serialization. A portfolio file is a
``PortfolioConfig``: the model assets with their fund transfers and
scheduled credits, plus the tax, user and chronometer settings of a run.
Process-wide settings (log level, debug) come from the environment via
``AppSettings``.

Design Principles
-----------------
- Type-safe: Pydantic enforces types and validates ranges
- Immutable: Frozen models prevent accidental mutation
- Serializable: Direct conversion to/from JSON portfolio files
- Environment-aware: ``FINCHRON_`` variables and .env files
- Defaults: 2025 single-filer tables, 3.1% inflation, user aged 57

Example
-------
>>> from finchron.config import ModelAssetConfig, TaxConfig
>>> asset = ModelAssetConfig(
...     instrument="taxable_equity", display_name="Brokerage",
...     start_date="2025-01", finish_date="2040-12",
...     start_value=250_000, basis_value=180_000, annual_return_rate="7%",
... )
>>> asset.annual_return_rate
0.07
>>> TaxConfig(filing_as="Married").filing_as
'married'
"""

from __future__ import annotations

import warnings
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_ANIMATION_DELAY,
    DEFAULT_FILING_AS,
    DEFAULT_HOME_SALE_DISCOUNT,
    DEFAULT_INFLATION_RATE,
    DEFAULT_PROPERTY_TAX_DEDUCTION_MAX,
    DEFAULT_START_AGE,
    DEFAULT_TAX_YEAR,
)
from .date_int import DateInt
from .exceptions import TimeIndexError
from .instrument import Instrument
from .tax_data import AVAILABLE_TAX_YEARS
from .utils import parse_rate

__all__ = [
    "FundTransferConfig",
    "CreditMemoConfig",
    "ModelAssetConfig",
    "TaxConfig",
    "UserConfig",
    "ChronometerConfig",
    "PortfolioConfig",
    "AppSettings",
]


def _check_month_text(value: str) -> str:
    try:
        return DateInt.parse(value).format()
    except TimeIndexError as e:
        raise ValueError(str(e)) from e


# ---------------------------------------------------------------------------
# Fund Transfers and Credit Memos
# ---------------------------------------------------------------------------

class FundTransferConfig(BaseModel):
    """
    Persisted fund transfer rule.

    Attributes
    ----------
    to_display_name : str
        Target asset display name.
    move_on_finish_date : bool
        Move once when the source reaches its finish date.
    move_value : int
        Percentage 0-100 of the source base amount.
    frequency : str
        "monthly", "quarterly", "half-yearly" or "yearly".
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    to_display_name: str = Field(..., min_length=1, description="Target asset display name")
    move_on_finish_date: bool = Field(default=False, description="Move on source finish date")
    move_value: int = Field(default=0, ge=0, le=100, description="Percentage to move")
    frequency: Literal["monthly", "quarterly", "half-yearly", "yearly"] = Field(
        default="monthly",
        description="Recurring transfer frequency"
    )


class CreditMemoConfig(BaseModel):
    """Scheduled ad hoc credit; negative amounts debit."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    date: str = Field(..., description="Month of the credit (YYYY-MM)")
    amount: float = Field(..., description="Signed amount")
    note: str = Field(default="", description="Free text")

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        return _check_month_text(v)


# ---------------------------------------------------------------------------
# Model Assets
# ---------------------------------------------------------------------------

class ModelAssetConfig(BaseModel):
    """
    Configuration of one simulated instrument.

    Attributes
    ----------
    instrument : Instrument
        Instrument tag ("taxable_equity", "401k", "monthly_salary", ...).
    display_name : str
        Unique display name; fund transfers bind to it.
    start_date, finish_date : str
        First and last active month, "YYYY-MM".
    start_value : float
        Opening balance, or monthly amount for income and expenses.
    basis_value : float
        Cost basis of taxable accounts and homes.
    annual_return_rate : float
        Decimal rate or percent text ("7%").
    annual_tax_rate : float
        Home property tax rate.
    annual_dividend_rate : float
        Qualified dividend yield of a taxable account.
    months_remaining : int
        Amortization term; required for mortgages and debts.
    is_self_employed : bool
        Salary taxed as self-employment income.
    fund_transfers : list of FundTransferConfig
    credit_memos : list of CreditMemoConfig
    """

    model_config = ConfigDict(frozen=True, extra="forbid", use_enum_values=False)

    instrument: Instrument
    display_name: str = Field(..., min_length=1, description="Unique display name")
    start_date: str = Field(..., description="First active month (YYYY-MM)")
    finish_date: str = Field(..., description="Last active month (YYYY-MM)")
    start_value: float = Field(default=0.0, description="Opening balance or monthly amount")
    basis_value: float = Field(default=0.0, ge=0, description="Cost basis")
    annual_return_rate: float = Field(default=0.0, gt=-1, description="Annual rate")
    annual_tax_rate: float = Field(default=0.0, ge=0, le=1, description="Property tax rate")
    annual_dividend_rate: float = Field(default=0.0, ge=0, le=1, description="Dividend yield")
    months_remaining: int = Field(default=0, ge=0, description="Amortization term in months")
    is_self_employed: bool = Field(default=False, description="Self-employment income")
    fund_transfers: List[FundTransferConfig] = Field(default_factory=list)
    credit_memos: List[CreditMemoConfig] = Field(default_factory=list)

    @field_validator("start_date", "finish_date")
    @classmethod
    def validate_month(cls, v):
        return _check_month_text(v)

    @field_validator("annual_return_rate", "annual_tax_rate", "annual_dividend_rate", mode="before")
    @classmethod
    def parse_percent(cls, v):
        return parse_rate(v)

    @model_validator(mode="after")
    def validate_variant(self):
        if DateInt.parse(self.finish_date).is_before(DateInt.parse(self.start_date)):
            raise ValueError(
                f"finish_date ({self.finish_date}) must not precede start_date ({self.start_date})"
            )
        if self.instrument.is_amortizing and self.months_remaining < 1:
            raise ValueError(
                f"{self.instrument.value} '{self.display_name}' requires months_remaining >= 1"
            )
        return self


# ---------------------------------------------------------------------------
# Run Settings
# ---------------------------------------------------------------------------

class TaxConfig(BaseModel):
    """
    Tax engine configuration for one run.

    Attributes
    ----------
    tax_year : int
        Year whose tables seed the run.
    filing_as : str
        "single" or "married" (case-insensitive on input).
    inflation_rate : float
        Applied to brackets and the social-security wage base every year.
    property_tax_deduction_max : float
        Cap on itemized property-tax deductions.
    home_sale_capital_gains_discount : float
        Gain excluded on the sale of a home held over 24 months.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    tax_year: int = Field(default=DEFAULT_TAX_YEAR, description="Tax table year")
    filing_as: Literal["single", "married"] = Field(default=DEFAULT_FILING_AS)
    inflation_rate: float = Field(default=DEFAULT_INFLATION_RATE, ge=-0.1, le=0.5)
    property_tax_deduction_max: float = Field(default=DEFAULT_PROPERTY_TAX_DEDUCTION_MAX, ge=0)
    home_sale_capital_gains_discount: float = Field(default=DEFAULT_HOME_SALE_DISCOUNT, ge=0)

    @field_validator("tax_year")
    @classmethod
    def validate_tax_year(cls, v):
        if v not in AVAILABLE_TAX_YEARS:
            raise ValueError(f"no tax tables for {v}; available: {list(AVAILABLE_TAX_YEARS)}")
        return v

    @field_validator("filing_as", mode="before")
    @classmethod
    def normalize_filing_as(cls, v):
        return v.lower() if isinstance(v, str) else v


class UserConfig(BaseModel):
    """The simulated person."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    start_age: int = Field(default=DEFAULT_START_AGE, ge=0, le=120, description="Age in first month")


class ChronometerConfig(BaseModel):
    """Pacing of animated runs."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    animation_delay: float = Field(default=DEFAULT_ANIMATION_DELAY, ge=0, le=5, description="Seconds per tick")
    reports: bool = Field(default=False, description="Log a yearly report at every year boundary")


class PortfolioConfig(BaseModel):
    """
    Complete portfolio definition.

    Display names must be unique. Transfers naming an unknown asset are
    accepted (they settle nothing) but raise a UserWarning.

    Examples
    --------
    >>> cfg = PortfolioConfig(assets=[
    ...     ModelAssetConfig(instrument="cash", display_name="Cash",
    ...                      start_date="2025-01", finish_date="2026-12", start_value=10_000),
    ... ])
    >>> cfg.tax.tax_year
    2025
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(default="Portfolio", description="Portfolio name")
    assets: List[ModelAssetConfig] = Field(default_factory=list)
    tax: TaxConfig = Field(default_factory=TaxConfig)
    user: UserConfig = Field(default_factory=UserConfig)
    chronometer: ChronometerConfig = Field(default_factory=ChronometerConfig)

    @field_validator("assets")
    @classmethod
    def validate_unique_names(cls, v):
        seen = set()
        for asset in v:
            if asset.display_name in seen:
                raise ValueError(f"duplicate display_name '{asset.display_name}'")
            seen.add(asset.display_name)
        return v

    @model_validator(mode="after")
    def warn_unknown_targets(self):
        names = {asset.display_name for asset in self.assets}
        for asset in self.assets:
            for transfer in asset.fund_transfers:
                if transfer.to_display_name not in names:
                    warnings.warn(
                        f"Transfer from '{asset.display_name}' targets unknown asset "
                        f"'{transfer.to_display_name}'; it will not settle.",
                        UserWarning,
                    )
        return self


# ---------------------------------------------------------------------------
# Application Settings
# ---------------------------------------------------------------------------

class AppSettings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Environment variables are prefixed with FINCHRON_ (e.g.
    FINCHRON_LOG_LEVEL=DEBUG). A .env file in the working directory is
    read as well.

    Attributes
    ----------
    debug : bool
        Force DEBUG logging.
    log_level : str
        Logging level: "DEBUG", "INFO", "WARNING", "ERROR".
    animation_delay : float, optional
        Override of the per-tick delay of animated runs.
    """

    model_config = SettingsConfigDict(
        env_prefix="FINCHRON_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging level"
    )
    animation_delay: Optional[float] = Field(
        default=None,
        ge=0,
        description="Override of the animated run delay"
    )

    def resolve_animation_delay(self, chronometer: Optional[ChronometerConfig] = None) -> float:
        """Per-tick delay of an animated run: this override, else the portfolio file's."""
        if self.animation_delay is not None:
            return self.animation_delay
        if chronometer is not None:
            return chronometer.animation_delay
        return DEFAULT_ANIMATION_DELAY
