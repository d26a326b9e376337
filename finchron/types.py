"""
Type definitions for FinChron.

Purpose
-------
TypedDict definitions for the dictionary forms that cross the package
boundary: persisted JSON records and values handed to the charting
collaborator.

Type Definitions
----------------
DateIntDict
    Serialized DateInt: {"year", "month"}
CurrencyDict
    Serialized Currency: {"amount"} rounded to cents
FundTransferDict
    Persisted fund transfer: {"to_display_name", "move_on_finish_date",
    "move_value"} and optional "frequency"
CreditMemoDict
    Scheduled ad hoc credit: {"date", "amount", "note"}
MonthsSpanDict
    Chart bucketing: {"total_months", "combine_months", "offset_months"}
"""

from typing_extensions import NotRequired, TypedDict

__all__ = [
    "DateIntDict",
    "CurrencyDict",
    "FundTransferDict",
    "CreditMemoDict",
    "MonthsSpanDict",
]


class DateIntDict(TypedDict):
    """Serialized DateInt (tick is never persisted)."""

    year: int
    month: int


class CurrencyDict(TypedDict):
    """Serialized Currency, rounded to two decimals."""

    amount: float


class FundTransferDict(TypedDict):
    """
    Persisted fund transfer rule.

    Keys
    ----
    to_display_name : str
        Display name of the target model asset.
    move_on_finish_date : bool
        Move once, when the source reaches its finish date.
    move_value : int
        Percentage (0-100) of the source base amount to move.
    frequency : str, optional
        "monthly" (default), "quarterly", "half-yearly" or "yearly".
    """

    to_display_name: str
    move_on_finish_date: bool
    move_value: int
    frequency: NotRequired[str]


class CreditMemoDict(TypedDict):
    """Scheduled ad hoc credit applied on the first tick of its month."""

    date: str
    amount: float
    note: NotRequired[str]


class MonthsSpanDict(TypedDict):
    """Chart bucketing consumed by the charting collaborator."""

    total_months: int
    combine_months: int
    offset_months: int
