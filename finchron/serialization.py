"""
Serialization module for FinChron portfolio persistence.

Purpose
-------
JSON persistence of portfolio definitions: model assets with their fund
transfers and scheduled credits, plus the tax, user and chronometer
settings of a run. Run state (balances, metrics, memo ledgers) is never
persisted; a loaded portfolio always starts from its configured values.

Every dictionary read back is validated through the pydantic models of
:mod:`finchron.config` before anything is built from it.

Design Principles
-----------------
- Type-safe: Uses Pydantic configs for validation
- Human-readable: indented JSON for easy editing
- Backward compatible: Validates schema versions (mismatch warns)

Example
-------
>>> from pathlib import Path
>>> from finchron.serialization import save_portfolio, load_portfolio
>>> save_portfolio(portfolio, Path("retirement.json"))
>>> loaded = load_portfolio(Path("retirement.json"))
>>> [a.display_name for a in loaded.model_assets] == [a.display_name for a in portfolio.model_assets]
True
"""

from __future__ import annotations

import json
import warnings
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

from .config import (
    ChronometerConfig,
    CreditMemoConfig,
    FundTransferConfig,
    ModelAssetConfig,
    PortfolioConfig,
    UserConfig,
)
from .currency import Currency
from .date_int import DateInt
from .fund_transfer import FundTransfer
from .results import CreditMemo, MemoKind
from .utils import LogCategory, get_logger

if TYPE_CHECKING:
    from .model_asset import ModelAsset
    from .portfolio import Portfolio

__all__ = [
    "SCHEMA_VERSION",
    "fund_transfer_to_dict",
    "fund_transfer_from_dict",
    "credit_memo_to_dict",
    "credit_memo_from_dict",
    "model_asset_to_dict",
    "model_asset_from_dict",
    "portfolio_to_dict",
    "build_portfolio",
    "save_portfolio",
    "load_portfolio_config",
    "load_portfolio",
]

logger = get_logger(LogCategory.STORAGE)


# ---------------------------------------------------------------------------
# Schema Version
# ---------------------------------------------------------------------------

SCHEMA_VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Fund Transfers and Credit Memos
# ---------------------------------------------------------------------------

def fund_transfer_to_dict(transfer: FundTransfer) -> Dict[str, Any]:
    """Persisted form; ``frequency`` only when not monthly."""
    return dict(transfer.to_dict())


def fund_transfer_from_dict(data: Dict[str, Any]) -> FundTransfer:
    config = FundTransferConfig.model_validate(data)
    return FundTransfer(
        to_display_name=config.to_display_name,
        move_on_finish_date=config.move_on_finish_date,
        move_value=config.move_value,
        frequency=config.frequency,
    )


def credit_memo_to_dict(memo: CreditMemo) -> Dict[str, Any]:
    data: Dict[str, Any] = {"date": memo.date.format() if memo.date else "", "amount": memo.amount.to_fixed()}
    if memo.note:
        data["note"] = memo.note
    return data


def credit_memo_from_dict(data: Dict[str, Any]) -> CreditMemo:
    config = CreditMemoConfig.model_validate(data)
    return CreditMemo(
        amount=Currency(config.amount),
        note=config.note,
        date=DateInt.parse(config.date),
        kind=MemoKind.SCHEDULED,
    )


# ---------------------------------------------------------------------------
# Model Assets
# ---------------------------------------------------------------------------

def model_asset_to_dict(asset: ModelAsset) -> Dict[str, Any]:
    """
    Convert a ModelAsset to its persisted dictionary.

    Parameters
    ----------
    asset : ModelAsset
        Asset to serialize (its configured values, not its run state)

    Returns
    -------
    dict
        Dictionary accepted by ``ModelAssetConfig``
    """
    return {
        "instrument": asset.instrument.value,
        "display_name": asset.display_name,
        "start_date": asset.start_date_int.format(),
        "finish_date": asset.finish_date_int.format(),
        "start_value": asset.start_currency.to_fixed(),
        "basis_value": asset.basis_currency.to_fixed(),
        "annual_return_rate": asset.annual_return_rate,
        "annual_tax_rate": asset.annual_tax_rate,
        "annual_dividend_rate": asset.annual_dividend_rate,
        "months_remaining": asset.months_remaining,
        "is_self_employed": asset.is_self_employed,
        "fund_transfers": [fund_transfer_to_dict(t) for t in asset.fund_transfers],
        "credit_memos": [credit_memo_to_dict(m) for m in asset.credit_memos],
    }


def _asset_from_config(config: ModelAssetConfig) -> ModelAsset:
    from .model_asset import ModelAsset

    return ModelAsset(
        config.instrument,
        config.display_name,
        DateInt.parse(config.start_date),
        DateInt.parse(config.finish_date),
        Currency(config.start_value),
        config.annual_return_rate,
        basis_currency=Currency(config.basis_value),
        annual_tax_rate=config.annual_tax_rate,
        annual_dividend_rate=config.annual_dividend_rate,
        months_remaining=config.months_remaining,
        is_self_employed=config.is_self_employed,
        fund_transfers=[fund_transfer_from_dict(t.model_dump()) for t in config.fund_transfers],
        credit_memos=[credit_memo_from_dict(m.model_dump()) for m in config.credit_memos],
    )


def model_asset_from_dict(data: Dict[str, Any]) -> ModelAsset:
    """
    Create a ModelAsset from its persisted dictionary.

    Raises
    ------
    pydantic.ValidationError
        If the dictionary does not describe a valid asset.
    """
    return _asset_from_config(ModelAssetConfig.model_validate(data))


# ---------------------------------------------------------------------------
# Portfolios
# ---------------------------------------------------------------------------

def build_portfolio(config: PortfolioConfig) -> Portfolio:
    """Build a ready-to-run Portfolio (with its TaxTable and User) from a validated config."""
    from .portfolio import Portfolio
    from .taxes import TaxTable
    from .user import User

    assets = [_asset_from_config(asset) for asset in config.assets]
    return Portfolio(
        assets,
        TaxTable(config.tax),
        User(config.user.start_age),
        reports=config.chronometer.reports,
        name=config.name,
    )


def portfolio_to_dict(
    portfolio: Portfolio,
    chronometer: Optional[ChronometerConfig] = None,
) -> Dict[str, Any]:
    chronometer = chronometer or ChronometerConfig(reports=portfolio.reports)
    return {
        "schema_version": SCHEMA_VERSION,
        "name": portfolio.name,
        "user": UserConfig(start_age=portfolio.user.start_age).model_dump(),
        "tax": portfolio.tax_table.config.model_dump(),
        "chronometer": chronometer.model_dump(),
        "assets": [model_asset_to_dict(asset) for asset in portfolio.model_assets],
    }


def save_portfolio(
    portfolio: Portfolio,
    path: Path,
    chronometer: Optional[ChronometerConfig] = None,
) -> None:
    """
    Save a portfolio definition to a JSON file.

    Parameters
    ----------
    portfolio : Portfolio
        Portfolio to save
    path : Path
        Output file path (parent directories are created)
    chronometer : ChronometerConfig, optional
        Pacing settings to store alongside
    """
    config = portfolio_to_dict(portfolio, chronometer)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(config, f, indent=2)
    logger.info("Saved %s (%d assets) to %s", portfolio.name, len(portfolio.model_assets), path)


def load_portfolio_config(path: Path) -> PortfolioConfig:
    """
    Read and validate a portfolio JSON file.

    Warns (UserWarning) when the file's schema version differs from
    ``SCHEMA_VERSION``.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    json.JSONDecodeError
        If the file is not JSON.
    pydantic.ValidationError
        If the content is not a valid portfolio.
    """
    with open(path, "r") as f:
        data = json.load(f)

    schema_version = data.pop("schema_version", "0.0.0")
    if schema_version != SCHEMA_VERSION:
        warnings.warn(
            f"Config schema version {schema_version} differs from current "
            f"version {SCHEMA_VERSION}. May encounter compatibility issues.",
            UserWarning,
        )
    config = PortfolioConfig.model_validate(data)
    logger.info("Loaded %s (%d assets) from %s", config.name, len(config.assets), path)
    return config


def load_portfolio(path: Path) -> Portfolio:
    return build_portfolio(load_portfolio_config(path))
