"""
FinChron: month-by-month portfolio simulation with US taxes

Simulates a portfolio of heterogeneous instruments (brokerage, IRA/401K/Roth,
salaries, social security, bank accounts and bonds, homes, mortgages, debts,
cash and expenses) through calendar-accurate ticks, applying growth, fund
transfers, capital-gains accounting and progressive taxes.

Modules
-------
- date_int      : DateInt year/month value with a sub-month tick
- currency      : Currency money value
- model_asset   : ModelAsset instruments and the debit/credit protocol
- fund_transfer : FundTransfer rules between assets
- portfolio     : Portfolio aggregate and lifecycle hooks
- taxes         : TaxTable tax engine
- chronometer   : run / run_animated drivers
- months_span   : chart bucketing
- config        : pydantic configuration models and settings
- serialization : JSON portfolio files
- utils         : Shared utilities (logging, rates, reporting)

"""

__version__ = "0.1.0"

from .currency import Currency
from .date_int import DateInt
from .instrument import Instrument
from .fund_transfer import FundTransfer
from .model_asset import ModelAsset
from .taxes import TaxTable
from .user import User
from .portfolio import Portfolio
from .chronometer import run, run_animated
from . import utils
