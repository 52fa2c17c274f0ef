"""Top toots of an account ranked by engagement."""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional

from services.errors import InvalidArgument
from services.metrics import parse_selector
from services.snapshot_store import ContentRecord, SnapshotStore

logger = logging.getLogger(__name__)


class RankBy(str, enum.Enum):
    """Scoring used to rank toots."""
    TOP = "top"  # boosts + replies
    REPLIES = "replies"
    BOOSTS = "boosts"
    FAVOURITES = "favourites"


SCORERS: dict[RankBy, Callable[[ContentRecord], int]] = {
    RankBy.TOP: lambda toot: toot.reblogs_count + toot.replies_count,
    RankBy.REPLIES: lambda toot: toot.replies_count,
    RankBy.BOOSTS: lambda toot: toot.reblogs_count,
    RankBy.FAVOURITES: lambda toot: toot.favourites_count,
}


@dataclass(frozen=True)
class RankedToot:
    toot: ContentRecord
    rank: int


def rank_toots(toots: Iterable[ContentRecord], rank_by: RankBy, limit: int) -> list[RankedToot]:
    """Score, drop non-positive scores, sort and cut to `limit`.

    Order is score desc, then created_at desc, then id asc, so equal
    scores and timestamps still come out in the same order every run.
    """
    score = SCORERS[rank_by]
    ranked = [RankedToot(toot=toot, rank=score(toot)) for toot in toots]
    ranked = [item for item in ranked if item.rank > 0]

    ranked.sort(key=lambda item: item.toot.id)
    ranked.sort(key=lambda item: (item.rank, item.toot.created_at), reverse=True)
    return ranked[:limit]


async def top_content(
    store: SnapshotStore,
    account_id: str,
    rank_by: RankBy | str = RankBy.TOP,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    limit: int = 5,
) -> list[RankedToot]:
    """Best performing toots created in [date_from, date_to)."""
    rank_by = parse_selector(RankBy, rank_by, "ranking")
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise InvalidArgument(f"limit must be a positive integer, got {limit!r}")
    if date_from is not None and date_to is not None and date_from > date_to:
        raise InvalidArgument(f"date_from {date_from} is after date_to {date_to}")

    toots = await store.content_between(account_id, date_from, date_to)
    ranked = rank_toots(toots, rank_by, limit)
    logger.debug(f"Ranked {len(ranked)} of {len(toots)} toots by {rank_by.value} for account {account_id}")
    return ranked
