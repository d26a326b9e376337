"""The simulated person: age tracking and retirement-account rules."""

from __future__ import annotations

from dataclasses import dataclass

from .constants import CATCH_UP_AGE, DEFAULT_START_AGE, RMD_START_AGE

__all__ = ["User"]


@dataclass
class User:
    """
    Age of the simulated person, advanced once per year boundary.

    Examples
    --------
    >>> user = User(start_age=72)
    >>> user.rmd_required()
    False
    >>> user.add_years(1).rmd_required()
    True
    """

    start_age: int = DEFAULT_START_AGE

    def __post_init__(self):
        if self.start_age < 0:
            raise ValueError(f"start_age must be non-negative, got {self.start_age}")
        self.age = self.start_age

    def reset(self) -> None:
        self.age = self.start_age

    def add_years(self, years: int) -> "User":
        self.age += years
        return self

    def rmd_required(self) -> bool:
        return self.age >= RMD_START_AGE

    def catch_up_eligible(self) -> bool:
        return self.age >= CATCH_UP_AGE
