"""Tax bracket, FICA, contribution-limit and RMD reference data."""

from __future__ import annotations

from typing import Dict, Final, List, Optional, Tuple

__all__ = [
    "FILING_STATUSES",
    "AVAILABLE_TAX_YEARS",
    "FEDERAL_BRACKETS",
    "CAPITAL_GAINS_BRACKETS",
    "STANDARD_DEDUCTIONS",
    "FICA",
    "CONTRIBUTION_LIMITS",
    "UNIFORM_LIFETIME_DIVISORS",
]

Brackets = List[Tuple[Optional[float], float]]

FILING_STATUSES: Final[Tuple[str, ...]] = ("single", "married")

# Brackets are (upper_bound, marginal_rate). Upper bound None means infinity.
FEDERAL_BRACKETS: Final[Dict[int, Dict[str, Brackets]]] = {
    2025: {
        "single": [
            (11_925.0, 0.10),
            (48_475.0, 0.12),
            (103_350.0, 0.22),
            (197_300.0, 0.24),
            (250_525.0, 0.32),
            (626_350.0, 0.35),
            (None, 0.37),
        ],
        "married": [
            (23_850.0, 0.10),
            (96_950.0, 0.12),
            (206_700.0, 0.22),
            (394_600.0, 0.24),
            (501_050.0, 0.32),
            (751_600.0, 0.35),
            (None, 0.37),
        ],
    }
}

# Long-term capital gains brackets, stacked on top of ordinary taxable income.
CAPITAL_GAINS_BRACKETS: Final[Dict[int, Dict[str, Brackets]]] = {
    2025: {
        "single": [(48_350.0, 0.00), (533_400.0, 0.15), (None, 0.20)],
        "married": [(96_700.0, 0.00), (600_050.0, 0.15), (None, 0.20)],
    }
}

STANDARD_DEDUCTIONS: Final[Dict[int, Dict[str, float]]] = {
    2025: {"single": 15_000.0, "married": 30_000.0},
}

FICA: Final[Dict[int, Dict[str, float]]] = {
    2025: {
        "ss_half_rate": 0.062,
        "ss_full_rate": 0.124,
        "medicare_half_rate": 0.0145,
        "medicare_full_rate": 0.029,
        "max_ss_earnings": 176_100.0,
    }
}

# (below catch-up age, catch-up age and over)
CONTRIBUTION_LIMITS: Final[Dict[int, Dict[str, Dict[str, Tuple[float, float]]]]] = {
    2025: {
        "single": {"ira": (7_000.0, 8_000.0), "401k": (23_500.0, 31_000.0)},
        "married": {"ira": (14_000.0, 16_000.0), "401k": (23_500.0, 31_000.0)},
    }
}

AVAILABLE_TAX_YEARS: Final[Tuple[int, ...]] = tuple(sorted(FEDERAL_BRACKETS))

# IRS Uniform Lifetime Table.
UNIFORM_LIFETIME_DIVISORS: Final[Dict[int, float]] = {
    70: 27.4, 71: 26.5, 72: 25.6, 73: 24.7, 74: 23.8,
    75: 22.9, 76: 22.0, 77: 21.2, 78: 20.3, 79: 19.5,
    80: 18.7, 81: 17.9, 82: 17.1, 83: 16.3, 84: 15.5,
    85: 14.8, 86: 14.1, 87: 13.4, 88: 12.7, 89: 12.0,
    90: 11.4, 91: 10.8, 92: 10.2, 93: 9.6, 94: 9.1,
    95: 8.6, 96: 8.1, 97: 7.6, 98: 7.1, 99: 6.7,
    100: 6.3, 101: 5.9, 102: 5.5, 103: 5.2, 104: 4.9,
    105: 4.5, 106: 4.2, 107: 3.9, 108: 3.7, 109: 3.4,
    110: 3.1, 111: 2.9, 112: 2.6, 113: 2.4, 114: 2.1,
    115: 1.9, 116: 1.7, 117: 1.5, 118: 1.3, 119: 1.1,
    120: 1.0,
}
