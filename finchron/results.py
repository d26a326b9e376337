"""
Result records exchanged between model assets and the portfolio.

Purpose
-------
Small immutable records returned by the per-month calculations of a
ModelAsset (income, amortization, growth, withholding) and by the
settlement protocol (debit/credit, fund transfers). The Portfolio folds
them into its FinancialPackage buckets.

Key components
--------------
- MemoKind, CreditMemo : dated ledger entries; TRANSFER memos must net to
  zero across the portfolio every month
- SettlementResult : outcome of one debit or credit on one asset
- FundTransferResult : both sides of one executed transfer
- IncomeResult, MortgageResult, AppreciationResult, InterestResult,
  ExpenseResult, WithholdingResult, CapitalGainsResult
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .currency import Currency
from .date_int import DateInt

__all__ = [
    "MemoKind",
    "CreditMemo",
    "SettlementResult",
    "FundTransferResult",
    "IncomeResult",
    "MortgageResult",
    "AppreciationResult",
    "InterestResult",
    "ExpenseResult",
    "WithholdingResult",
    "CapitalGainsResult",
]


class MemoKind(str, Enum):
    """Why money moved; the sanity check nets TRANSFER memos to zero."""

    TRANSFER = "transfer"
    INCOME = "income"
    EXPENSE = "expense"
    TAX = "tax"
    SCHEDULED = "scheduled"


@dataclass(frozen=True)
class CreditMemo:
    """
    One dated ledger entry on a model asset.

    Positive amounts credit the asset, negative amounts debit it.
    """

    amount: Currency
    note: str = ""
    date: Optional[DateInt] = None
    kind: MemoKind = MemoKind.TRANSFER


# ---------------------------------------------------------------------------
# Settlement
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SettlementResult:
    """
    Outcome of a debit or credit on one asset.

    Attributes
    ----------
    asset_change : Currency
        Signed amount applied to the asset's ledger.
    realized_gain : Currency
        Long-term gain realized by a withdrawal from a taxable account.
    memo : CreditMemo, optional
        Ledger entry written for the settlement.
    """

    asset_change: Currency = field(default_factory=Currency)
    realized_gain: Currency = field(default_factory=Currency)
    memo: Optional[CreditMemo] = None


@dataclass(frozen=True)
class FundTransferResult:
    """Both sides of one fund transfer. A neutral result has zero changes."""

    from_asset_change: Currency = field(default_factory=Currency)
    to_asset_change: Currency = field(default_factory=Currency)
    from_memo: Optional[CreditMemo] = None
    to_memo: Optional[CreditMemo] = None
    realized_gain: Currency = field(default_factory=Currency)

    @property
    def is_neutral(self) -> bool:
        return self.from_asset_change.is_zero() and self.to_asset_change.is_zero()


# ---------------------------------------------------------------------------
# Monthly calculations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IncomeResult:
    employed_income: Currency = field(default_factory=Currency)
    self_income: Currency = field(default_factory=Currency)
    social_security: Currency = field(default_factory=Currency)

    def total(self) -> Currency:
        return self.employed_income.plus(self.self_income).plus(self.social_security)


@dataclass(frozen=True)
class MortgageResult:
    """Amortization components; all negative for a negative balance."""

    payment: Currency = field(default_factory=Currency)
    interest: Currency = field(default_factory=Currency)
    principal: Currency = field(default_factory=Currency)


@dataclass(frozen=True)
class AppreciationResult:
    growth: Currency = field(default_factory=Currency)
    dividend: Currency = field(default_factory=Currency)


@dataclass(frozen=True)
class InterestResult:
    income: Currency = field(default_factory=Currency)


@dataclass(frozen=True)
class ExpenseResult:
    expense: Currency = field(default_factory=Currency)
    next_expense: Currency = field(default_factory=Currency)


@dataclass(frozen=True)
class WithholdingResult:
    """FICA and income-tax withholding; positive amounts owed."""

    social_security: Currency = field(default_factory=Currency)
    medicare: Currency = field(default_factory=Currency)
    income: Currency = field(default_factory=Currency)

    def fica(self) -> Currency:
        return self.social_security.plus(self.medicare)

    def total(self) -> Currency:
        return self.fica().plus(self.income)


@dataclass(frozen=True)
class CapitalGainsResult:
    short_term: Currency = field(default_factory=Currency)
    long_term: Currency = field(default_factory=Currency)
    tax: Currency = field(default_factory=Currency)

    def total(self) -> Currency:
        return self.short_term.plus(self.long_term)
