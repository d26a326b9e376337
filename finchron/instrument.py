"""
Instrument kinds and their classification.

Purpose
-------
A ModelAsset is tagged with one Instrument. What an asset does each month
(earn a salary, amortize, grow, pay interest, drain an expense) follows
from the classification sets below rather than from a class hierarchy, so
adding a kind means adding it to the right sets.

Key components
--------------
- Instrument : closed set of instrument tags (str-valued Enum)
- classification properties : ``Instrument.IRA.is_tax_deferred`` etc.
- EXPENSABLE_PRIORITY : order in which implicit debits and credits (taxes,
  leftover income, shortfalls) look for an account

Example
-------
>>> Instrument("401k").is_tax_deferred
True
>>> sorted([Instrument.CASH, Instrument.HOME], key=lambda i: i.sort_order)
[<Instrument.HOME: 'home'>, <Instrument.CASH: 'cash'>]
"""

from __future__ import annotations

from enum import Enum
from typing import FrozenSet, Tuple

__all__ = [
    "Instrument",
    "EXPENSABLE_PRIORITY",
]


class Instrument(str, Enum):
    """Closed set of instrument kinds."""

    HOME = "home"
    MORTGAGE = "mortgage"
    MONTHLY_SALARY = "monthly_salary"
    SOCIAL_SECURITY = "social_security"
    US_BOND = "us_bond"
    CORP_BOND = "corp_bond"
    BANK = "bank"
    ROTH_IRA = "roth_ira"
    IRA = "ira"
    FOUR_01K = "401k"
    TAXABLE_EQUITY = "taxable_equity"
    CASH = "cash"
    DEBT = "debt"
    MONTHLY_EXPENSE = "monthly_expense"

    # ------------------------------------------------------------------
    # Display metadata
    # ------------------------------------------------------------------

    @property
    def label(self) -> str:
        return _META[self][0]

    @property
    def sort_order(self) -> int:
        return _META[self][1]

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    @property
    def is_home(self) -> bool:
        return self is Instrument.HOME

    @property
    def is_mortgage(self) -> bool:
        return self is Instrument.MORTGAGE

    @property
    def is_debt(self) -> bool:
        return self is Instrument.DEBT

    @property
    def is_monthly_income(self) -> bool:
        return self in _MONTHLY_INCOME

    @property
    def is_monthly_expense(self) -> bool:
        return self is Instrument.MONTHLY_EXPENSE

    @property
    def is_flow(self) -> bool:
        """Income and expense streams carry a monthly rate, not a balance."""
        return self in _MONTHLY_INCOME or self is Instrument.MONTHLY_EXPENSE

    @property
    def is_social_security(self) -> bool:
        return self is Instrument.SOCIAL_SECURITY

    @property
    def is_tax_deferred(self) -> bool:
        return self in _TAX_DEFERRED

    @property
    def is_tax_free(self) -> bool:
        return self is Instrument.ROTH_IRA

    @property
    def is_taxable_account(self) -> bool:
        return self is Instrument.TAXABLE_EQUITY

    @property
    def is_income_account(self) -> bool:
        return self in _INCOME_ACCOUNT

    @property
    def is_capital(self) -> bool:
        return self in _CAPITAL

    @property
    def is_fundable(self) -> bool:
        return self in _FUNDABLE

    @property
    def is_expensable(self) -> bool:
        return self in _EXPENSABLE

    @property
    def is_liquid(self) -> bool:
        return self in _LIQUID

    @property
    def is_amortizing(self) -> bool:
        """Instruments paid down over ``months_remaining``."""
        return self in _AMORTIZING

    @property
    def is_basisable(self) -> bool:
        """Instruments whose withdrawals and sales realize capital gains."""
        return self in _BASISABLE

    @property
    def is_asset(self) -> bool:
        return self in _FUNDABLE or self is Instrument.HOME or self is Instrument.MORTGAGE


# label, sort order
_META = {
    Instrument.HOME: ("House", 0),
    Instrument.MORTGAGE: ("Mortgage", 1),
    Instrument.MONTHLY_SALARY: ("Monthly Income", 2),
    Instrument.SOCIAL_SECURITY: ("Social Security", 3),
    Instrument.US_BOND: ("US Treasury", 4),
    Instrument.CORP_BOND: ("Corporate Bond", 5),
    Instrument.BANK: ("Savings", 6),
    Instrument.ROTH_IRA: ("Roth IRA", 7),
    Instrument.IRA: ("IRA", 8),
    Instrument.FOUR_01K: ("401K", 9),
    Instrument.TAXABLE_EQUITY: ("Taxable Account", 10),
    Instrument.CASH: ("Cash", 11),
    Instrument.DEBT: ("Debt", 12),
    Instrument.MONTHLY_EXPENSE: ("Monthly Expense", 13),
}

_MONTHLY_INCOME: FrozenSet[Instrument] = frozenset({
    Instrument.MONTHLY_SALARY,
    Instrument.SOCIAL_SECURITY,
})

_TAX_DEFERRED: FrozenSet[Instrument] = frozenset({
    Instrument.IRA,
    Instrument.FOUR_01K,
})

_INCOME_ACCOUNT: FrozenSet[Instrument] = frozenset({
    Instrument.BANK,
    Instrument.US_BOND,
    Instrument.CORP_BOND,
})

_CAPITAL: FrozenSet[Instrument] = frozenset({
    Instrument.TAXABLE_EQUITY,
    Instrument.IRA,
    Instrument.FOUR_01K,
    Instrument.ROTH_IRA,
    Instrument.HOME,
})

_FUNDABLE: FrozenSet[Instrument] = frozenset({
    Instrument.CASH,
    Instrument.BANK,
    Instrument.TAXABLE_EQUITY,
    Instrument.FOUR_01K,
    Instrument.IRA,
    Instrument.ROTH_IRA,
    Instrument.US_BOND,
    Instrument.CORP_BOND,
    Instrument.DEBT,
})

_EXPENSABLE: FrozenSet[Instrument] = frozenset({
    Instrument.CASH,
    Instrument.BANK,
    Instrument.TAXABLE_EQUITY,
    Instrument.FOUR_01K,
    Instrument.IRA,
    Instrument.ROTH_IRA,
})

_LIQUID: FrozenSet[Instrument] = frozenset({
    Instrument.TAXABLE_EQUITY,
    Instrument.CASH,
    Instrument.BANK,
})

_AMORTIZING: FrozenSet[Instrument] = frozenset({
    Instrument.MORTGAGE,
    Instrument.DEBT,
})

_BASISABLE: FrozenSet[Instrument] = frozenset({
    Instrument.TAXABLE_EQUITY,
    Instrument.HOME,
})

EXPENSABLE_PRIORITY: Tuple[Instrument, ...] = (
    Instrument.CASH,
    Instrument.BANK,
    Instrument.TAXABLE_EQUITY,
    Instrument.FOUR_01K,
    Instrument.IRA,
    Instrument.ROTH_IRA,
)
"""Liquid taxable accounts first, tax-advantaged accounts as a last resort."""
