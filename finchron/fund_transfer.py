"""
Percentage-based money movement between two model assets.

Purpose
-------
A FundTransfer is owned by its source ModelAsset and names its target by
display name. The Portfolio resolves the name against its asset arena in
a binding pass before a run; an unbound transfer, or one whose target is
closed, settles nothing.

Settlement is zero-sum by construction: ``execute()`` computes the amount
once and uses that single value for both the debit on the source and the
credit on the target.

Key components
--------------
- Frequency : how often a recurring transfer fires
- FundTransfer : the rule, its binding state, ``calculate`` and ``execute``

Example
-------
>>> rule = FundTransfer("Brokerage", move_value=10)
>>> rule.bind(salary, {"Brokerage": brokerage})
>>> result = rule.execute()
>>> result.from_asset_change.amount == -result.to_asset_change.amount
True
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Mapping, Optional

from .currency import Currency
from .exceptions import ConfigurationError
from .results import FundTransferResult, MemoKind
from .types import FundTransferDict
from .utils import LogCategory, get_logger

if TYPE_CHECKING:
    from .model_asset import ModelAsset

__all__ = ["Frequency", "FundTransfer"]

logger = get_logger(LogCategory.TRANSFER)


class Frequency(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    HALF_YEARLY = "half-yearly"
    YEARLY = "yearly"


class FundTransfer:
    """
    Move ``move_value`` percent of a source's base amount to a target.

    Parameters
    ----------
    to_display_name : str
        Display name of the target asset.
    move_on_finish_date : bool, default False
        Fire once, when the source reaches its finish date, instead of
        every active month.
    move_value : int, default 0
        Percentage 0..100.
    frequency : Frequency, default MONTHLY
        Months on which a recurring transfer fires (Mar/Jun/Sep/Dec for
        quarterly, Jun/Dec for half-yearly, Dec for yearly).

    Raises
    ------
    ConfigurationError
        If ``move_value`` is outside 0..100.
    """

    def __init__(
        self,
        to_display_name: str,
        move_on_finish_date: bool = False,
        move_value: float = 0,
        frequency: Frequency | str = Frequency.MONTHLY,
    ):
        if not 0 <= move_value <= 100:
            raise ConfigurationError(
                f"move_value must be a percentage in 0..100, got {move_value} "
                f"(transfer to '{to_display_name}')"
            )
        self.to_display_name = to_display_name
        self.move_on_finish_date = bool(move_on_finish_date)
        self.move_value = move_value
        self.frequency = Frequency(frequency)

        self.from_model: Optional[ModelAsset] = None
        self.to_model: Optional[ModelAsset] = None
        self.approved_amount: Optional[Currency] = None

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    def bind(self, from_model: ModelAsset, arena: Mapping[str, ModelAsset]) -> bool:
        """Resolve the target by display name. Returns True when bound."""
        self.from_model = from_model
        self.to_model = arena.get(self.to_display_name)
        self.approved_amount = None
        if self.to_model is None:
            logger.warning(
                "Transfer from '%s' names unknown target '%s'; it will not settle",
                from_model.display_name, self.to_display_name,
            )
        elif self.to_model is from_model:
            logger.warning("Transfer from '%s' targets itself; ignored", from_model.display_name)
            self.to_model = None
        return self.is_bound

    def unbind(self) -> None:
        self.from_model = None
        self.to_model = None
        self.approved_amount = None

    @property
    def is_bound(self) -> bool:
        return self.from_model is not None and self.to_model is not None

    def is_active_for_month(self, month: int) -> bool:
        if self.move_on_finish_date:
            return False
        if self.frequency is Frequency.MONTHLY:
            return True
        if self.frequency is Frequency.QUARTERLY:
            return month % 3 == 0
        if self.frequency is Frequency.HALF_YEARLY:
            return month in (6, 12)
        return month == 12

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def calculate(self) -> Currency:
        """
        Amount this transfer would move now.

        Zero when unbound or when the target is closed. Otherwise the
        source's net income (if positive) or finish value, times
        ``move_value / 100``, capped at ``approved_amount`` when set.
        """
        if not self.is_bound or self.to_model.is_closed:
            return Currency()
        source = self.from_model
        if source.net_income_currency.is_positive():
            base = source.net_income_currency
        else:
            base = source.finish_currency
        amount = base.times(self.move_value / 100.0)
        if self.approved_amount is not None and amount.amount > self.approved_amount.amount:
            amount = self.approved_amount.copy()
        return amount

    def execute(self) -> FundTransferResult:
        """
        Debit the source and credit the target with one computed amount.

        Neutral (no mutation) when unbound, when the target is closed, or
        when ``move_on_finish_date`` is set and the source has not reached
        its finish date.
        """
        if not self.is_bound or self.to_model.is_closed:
            return FundTransferResult()
        source = self.from_model
        if self.move_on_finish_date and not (source.on_finish_date or source.after_finish_date):
            return FundTransferResult()

        amount = self.calculate()
        if amount.is_zero():
            return FundTransferResult()

        note = f"Transfer {self.describe()}"
        skip_gain = self.move_on_finish_date
        debit = source.debit(amount, note, skip_gain=skip_gain, kind=MemoKind.TRANSFER)
        credit = self.to_model.credit(amount, note, skip_gain=skip_gain, kind=MemoKind.TRANSFER)
        logger.debug("%s: %s", note, amount)
        return FundTransferResult(
            from_asset_change=debit.asset_change,
            to_asset_change=credit.asset_change,
            from_memo=debit.memo,
            to_memo=credit.memo,
            realized_gain=credit.realized_gain,
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def describe(self) -> str:
        source = self.from_model.display_name if self.from_model is not None else "?"
        when = "on finish" if self.move_on_finish_date else self.frequency.value
        return f"{self.move_value}% {source} -> {self.to_display_name} ({when})"

    def to_dict(self) -> FundTransferDict:
        data: FundTransferDict = {
            "to_display_name": self.to_display_name,
            "move_on_finish_date": self.move_on_finish_date,
            "move_value": self.move_value,
        }
        if self.frequency is not Frequency.MONTHLY:
            data["frequency"] = self.frequency.value
        return data

    @classmethod
    def from_dict(cls, data: FundTransferDict) -> "FundTransfer":
        return cls(
            to_display_name=data["to_display_name"],
            move_on_finish_date=data.get("move_on_finish_date", False),
            move_value=data.get("move_value", 0),
            frequency=data.get("frequency", Frequency.MONTHLY),
        )

    def copy(self) -> "FundTransfer":
        return FundTransfer.from_dict(self.to_dict())

    def __repr__(self) -> str:
        return (
            f"FundTransfer(to_display_name={self.to_display_name!r}, "
            f"move_on_finish_date={self.move_on_finish_date}, move_value={self.move_value})"
        )
