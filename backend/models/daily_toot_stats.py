"""DailyTootStats model - lifetime engagement counters, one row per day."""

from datetime import date

from sqlalchemy import Date, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


class DailyTootStats(Base):
    """Lifetime replies/boosts/favourites summed over all toots of an account.

    Counters only grow in principle, but a resync or a deleted toot can make
    them drop from one day to the next.
    """

    __tablename__ = "daily_toot_stats"
    __table_args__ = (
        UniqueConstraint("account_id", "day", name="uix_daily_toot_stats_account_day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    day: Mapped[date] = mapped_column(Date, nullable=False)

    replies_count: Mapped[int] = mapped_column(Integer, default=0)
    boosts_count: Mapped[int] = mapped_column(Integer, default=0)
    favourites_count: Mapped[int] = mapped_column(Integer, default=0)

    def __repr__(self) -> str:
        return f"<DailyTootStats {self.account_id}:{self.day} boosts={self.boosts_count}>"
