"""
Edition windows and edition lookups.

Two editions are published per day, at 06:00 and 18:00 local time. An edition
key looks like ``2025-04-06_18:00``. The overnight hours before 06:00 belong
to the previous day's evening edition.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from app.core.errors import DigestValidationError, NotFoundError
from app.models.edition import Edition, NewsItem

logger = logging.getLogger(__name__)

MORNING_HOUR = 6
EVENING_HOUR = 18
EDITION_HOURS = (MORNING_HOUR, EVENING_HOUR)

EDITION_KEY_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})_(\d{2}):00$")


def local_now() -> datetime:
    """Current local wall-clock time (naive)."""
    return datetime.now()


@dataclass(frozen=True)
class EditionKey:
    """Parsed edition key: the publication date and its hour (6 or 18)."""

    day: date
    hour: int

    @classmethod
    def parse(cls, value: str) -> "EditionKey":
        match = EDITION_KEY_PATTERN.match(value or "")
        if not match:
            raise DigestValidationError(
                f"Invalid edition key '{value}': expected YYYY-MM-DD_HH:00"
            )
        year, month, day, hour = (int(part) for part in match.groups())
        if hour not in EDITION_HOURS:
            raise DigestValidationError(
                f"Invalid edition key '{value}': hour must be 06 or 18"
            )
        try:
            return cls(day=date(year, month, day), hour=hour)
        except ValueError as e:
            raise DigestValidationError(f"Invalid edition key '{value}': {e}")

    @property
    def starts_at(self) -> datetime:
        return datetime(self.day.year, self.day.month, self.day.day, self.hour)

    def __str__(self) -> str:
        return f"{self.day.isoformat()}_{self.hour:02d}:00"


def current_edition(now: Optional[datetime] = None) -> EditionKey:
    """Edition whose window contains ``now``."""
    if now is None:
        now = local_now()

    if now.hour >= EVENING_HOUR:
        return EditionKey(now.date(), EVENING_HOUR)
    if now.hour >= MORNING_HOUR:
        return EditionKey(now.date(), MORNING_HOUR)
    return EditionKey(now.date() - timedelta(days=1), EVENING_HOUR)


def resolve_edition_key(now: Optional[datetime] = None) -> str:
    """
    Map wall-clock time to the key of the edition to show.

    18:00-23:59 -> today's 18:00 edition
    06:00-17:59 -> today's 06:00 edition
    00:00-05:59 -> yesterday's 18:00 edition
    """
    return str(current_edition(now))


def edition_key_for(date_override: Optional[str], now: Optional[datetime] = None) -> str:
    """Use an explicit key verbatim when given, otherwise resolve from the clock."""
    if date_override:
        return date_override
    return resolve_edition_key(now)


def edition_window_start(now: Optional[datetime] = None) -> datetime:
    """Latest 06:00/18:00 boundary at or before ``now``."""
    return current_edition(now).starts_at


def format_edition_date(key: str) -> str:
    """Human label for an edition key, e.g. "April 6, 2025"."""
    try:
        day = EditionKey.parse(key).day
    except DigestValidationError:
        logger.warning(f"Cannot format edition key {key!r}")
        return key
    return f"{day.strftime('%B')} {day.day}, {day.year}"


class EditionService:
    """Read access to editions plus view counting on their news items."""

    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Edition).options(selectinload(Edition.news_items))

    def get(self, document_id: int) -> Edition:
        edition = self._query().filter(Edition.id == document_id).first()
        if not edition:
            raise NotFoundError(
                f"Edition {document_id} not found", document_id=document_id
            )
        return edition

    def get_by_key(self, key: str) -> Edition:
        edition = self._query().filter(Edition.key == key).first()
        if not edition:
            raise NotFoundError(f"No edition found for {key}", date_key=key)
        return edition

    def current(
        self, date_override: Optional[str] = None, now: Optional[datetime] = None
    ) -> Edition:
        key = edition_key_for(date_override, now)
        logger.info(f"Using edition key {key}")
        return self.get_by_key(key)

    def find_news_item(self, document_id: int, item_id: int) -> Optional[NewsItem]:
        return (
            self.db.query(NewsItem)
            .filter(NewsItem.edition_id == document_id, NewsItem.item_id == item_id)
            .first()
        )

    def increment_view(self, document_id: int, item_id: int) -> int:
        """Atomically add one view to a news item and return the new count."""
        if not self.db.query(Edition.id).filter(Edition.id == document_id).first():
            raise NotFoundError(
                "Document not found", document_id=document_id
            )

        updated = (
            self.db.query(NewsItem)
            .filter(NewsItem.edition_id == document_id, NewsItem.item_id == item_id)
            .update({NewsItem.views: NewsItem.views + 1}, synchronize_session=False)
        )
        if updated == 0:
            self.db.rollback()
            raise NotFoundError(
                "News item not found in edition",
                document_id=document_id,
                news_item_id=item_id,
            )
        self.db.commit()

        item = self.find_news_item(document_id, item_id)
        self.db.refresh(item)
        logger.info(
            f"Incremented views for news item {item_id} in edition {document_id} "
            f"to {item.views}"
        )
        return item.views


def popular_items(edition: Edition, n: int = 4) -> List[NewsItem]:
    """Most viewed news items of an edition."""
    return sorted(edition.news_items, key=lambda item: item.views or 0, reverse=True)[
        :n
    ]


def trending_topics(edition: Edition, n: int = 5) -> List[str]:
    """Categories with the most news items in an edition."""
    counts = Counter(item.category for item in edition.news_items if item.category)
    return [category for category, _ in counts.most_common(n)]
