"""Database models."""

from database import Base

from models.account import Account
from models.daily_account_stats import DailyAccountStats
from models.daily_toot_stats import DailyTootStats
from models.toot import Toot

__all__ = [
    "Base",
    "Account",
    "DailyAccountStats",
    "DailyTootStats",
    "Toot",
]
