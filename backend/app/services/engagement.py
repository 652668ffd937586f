"""
Read-only engagement rollups for the digest progress UI and profile panel.
"""

import logging
import math
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session, selectinload

from app.core.errors import NotFoundError
from app.models.interaction import UserArticleInteraction
from app.models.user import User
from app.models.user_stats import UserStats
from app.services.editions import (
    EditionService,
    current_edition,
    edition_window_start,
    local_now,
)

logger = logging.getLogger(__name__)

TOP_CATEGORY_COUNT = 3


def top_categories(stats: Optional[UserStats], n: int = TOP_CATEGORY_COUNT) -> List[str]:
    """
    Names of the ``n`` most engaged categories.

    Ranked by ``time_spent + articles_read``; equal scores keep the order the
    categories were first recorded in.
    """
    if stats is None:
        return []
    buckets = sorted(
        stats.category_engagement.values(),
        key=lambda bucket: bucket.id if bucket.id is not None else math.inf,
    )
    ranked = sorted(buckets, key=lambda bucket: bucket.score, reverse=True)
    return [bucket.category for bucket in ranked[:n]]


def progress_percentage(articles_read: int, total_articles: int) -> int:
    """Share of the edition read, as a whole percentage capped at 100."""
    if not total_articles:
        return 0
    # Halves round up, as the digest UI displays them
    percentage = math.floor(100 * articles_read / total_articles + 0.5)
    return min(100, percentage)


def current_period_read_count(
    interactions: Iterable[UserArticleInteraction], now: Optional[datetime] = None
) -> int:
    """
    Items completed since the current edition window opened.

    Counts completed news item sub-entries when any interaction has them,
    otherwise completed top-level interactions.
    """
    interactions = list(interactions)
    window_start = edition_window_start(now)

    def in_window(record) -> bool:
        return bool(
            record.completed
            and record.interaction_date is not None
            and record.interaction_date >= window_start
        )

    if any(interaction.news_items for interaction in interactions):
        return sum(
            1
            for interaction in interactions
            for entry in interaction.news_items.values()
            if in_window(entry)
        )
    return sum(1 for interaction in interactions if in_window(interaction))


def average_read_minutes(stats: Optional[UserStats]) -> int:
    """Average minutes per article read, 0 before anything has been read."""
    if stats is None or not stats.articles_read:
        return 0
    return round(stats.total_time_spent / stats.articles_read / 60)


class EngagementAggregator:
    def __init__(self, db: Session):
        self.db = db

    def summary(self, user_id: int, now: Optional[datetime] = None) -> Dict:
        """Everything the digest UI shows about a user's reading."""
        if now is None:
            now = local_now()

        if not self.db.query(User.id).filter(User.id == user_id).first():
            raise NotFoundError("User not found", user_id=user_id)

        stats = self.db.query(UserStats).filter(UserStats.user_id == user_id).first()
        interactions = (
            self.db.query(UserArticleInteraction)
            .options(selectinload(UserArticleInteraction.news_items))
            .filter(UserArticleInteraction.user_id == user_id)
            .all()
        )

        edition_key = str(current_edition(now))
        total_articles = 0
        try:
            edition = EditionService(self.db).get_by_key(edition_key)
            total_articles = len(edition.news_items)
        except NotFoundError:
            logger.info(f"No edition {edition_key} yet; progress reported as 0")

        period_read = current_period_read_count(interactions, now)

        return {
            "user_id": user_id,
            "edition_key": edition_key,
            "total_time_spent": stats.total_time_spent if stats else 0,
            "articles_read": stats.articles_read if stats else 0,
            "average_read_minutes": average_read_minutes(stats),
            "top_categories": top_categories(stats),
            "current_period_read": period_read,
            "total_articles": total_articles,
            "progress_percentage": progress_percentage(period_read, total_articles),
        }
