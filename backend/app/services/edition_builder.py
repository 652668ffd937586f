"""
Turns a summarization payload into an Edition with news items.

Payload shape::

    {
        "overall_introduction": "...",
        "categories": {
            "Technology": {"title": "...", "summary": "...",
                           "article_count": 12, "source_count": 4},
            ...
        }
    }
"""

import logging
import re
from typing import Dict, List, Optional
from urllib.parse import quote

from sqlalchemy.orm import Session

from app.core.errors import ConflictError, DigestValidationError
from app.models.edition import Edition, NewsItem
from app.services.editions import EditionKey, format_edition_date

logger = logging.getLogger(__name__)

# Summaries at or below this length are too thin to show as a news item
MIN_SUMMARY_LENGTH = 100
MAX_SLUG_LENGTH = 50
OVERVIEW_CATEGORY = "Overview"


def clean_title(title: str) -> str:
    """Strip markdown bold markers and link brackets."""
    return title.replace("**", "").replace("[", "").replace("]", "")


def slugify(title: str) -> str:
    slug = re.sub(r"[^\w\s]", "", title.lower())
    slug = re.sub(r"\s+", "-", slug)
    return slug[:MAX_SLUG_LENGTH]


class EditionBuilder:
    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def news_items_from_summary(key: str, payload: Dict) -> List[NewsItem]:
        """Build unsaved news items, numbered from 1 in payload order."""
        items = []
        next_id = 1

        introduction = payload.get("overall_introduction") or ""
        if len(introduction) > MIN_SUMMARY_LENGTH:
            items.append(
                NewsItem(
                    item_id=next_id,
                    title=f"News Overview for {format_edition_date(key)}",
                    summary=introduction,
                    category=OVERVIEW_CATEGORY,
                    slug=f"news-overview-{key.replace(':', '-')}",
                    image="/placeholder.svg?height=400&width=600&text=News+Overview",
                    views=0,
                )
            )
            next_id += 1

        categories = payload.get("categories") or {}
        if not isinstance(categories, dict):
            raise DigestValidationError("'categories' must be an object")

        for category_name, data in categories.items():
            if not isinstance(data, dict):
                continue
            summary = data.get("summary") or ""
            if len(summary) <= MIN_SUMMARY_LENGTH:
                logger.info(f"Skipping category {category_name}: summary too short")
                continue

            title = clean_title(data.get("title") or f"Latest in {category_name}")
            items.append(
                NewsItem(
                    item_id=next_id,
                    title=title,
                    summary=summary,
                    category=category_name,
                    slug=slugify(title),
                    image=(
                        "/placeholder.svg?height=400&width=600&category="
                        f"{quote(category_name, safe='')}"
                    ),
                    views=0,
                    article_count=data.get("article_count") or 0,
                    source_count=data.get("source_count") or 0,
                )
            )
            next_id += 1

        return items

    def create_from_summary(
        self, key: str, payload: Dict, replace: bool = False
    ) -> Edition:
        """Store a new edition for ``key``; with ``replace`` an existing one is rebuilt."""
        key = str(EditionKey.parse(key))
        items = self.news_items_from_summary(key, payload)

        existing: Optional[Edition] = (
            self.db.query(Edition).filter(Edition.key == key).first()
        )
        if existing and not replace:
            raise ConflictError(f"Edition {key} already exists", date_key=key)

        if existing:
            existing.news_items.clear()
            self.db.flush()
            edition = existing
        else:
            edition = Edition(key=key)
            self.db.add(edition)

        edition.overall_introduction = payload.get("overall_introduction")
        edition.news_items.extend(items)
        self.db.commit()
        self.db.refresh(edition)

        logger.info(f"Stored edition {key} with {len(items)} news items")
        return edition
