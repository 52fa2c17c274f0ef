"""DailyAccountStats model - point-in-time account totals, one row per day."""

from datetime import date

from sqlalchemy import Date, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


class DailyAccountStats(Base):
    """Follower, following and status counts as observed on `day`.

    Values are totals at capture time, not deltas.
    """

    __tablename__ = "daily_account_stats"
    __table_args__ = (
        UniqueConstraint("account_id", "day", name="uix_daily_account_stats_account_day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    day: Mapped[date] = mapped_column(Date, nullable=False)

    followers_count: Mapped[int] = mapped_column(Integer, default=0)
    following_count: Mapped[int] = mapped_column(Integer, default=0)
    statuses_count: Mapped[int] = mapped_column(Integer, default=0)

    def __repr__(self) -> str:
        return f"<DailyAccountStats {self.account_id}:{self.day} followers={self.followers_count}>"
