"""
Records reading activity and folds completed reads into user stats.

Clients address what was read with an ``articleId`` that is either a plain
article id (``"42"``) or a compound edition id (``"{documentId}_{rest}"``).
The compound form is parsed once, here, into an ``ArticleRef``; the rest of
the service only sees the two explicit fields.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple, Union

from sqlalchemy.orm import Session

from app.core.database import MAX_DB_INT
from app.core.errors import DigestValidationError, NotFoundError
from app.models.article import Article
from app.models.edition import Edition, NewsItem
from app.models.interaction import InteractionNewsItem, UserArticleInteraction
from app.models.user import User
from app.models.user_stats import UserStats
from app.services.editions import EditionService, local_now

logger = logging.getLogger(__name__)

NUMERIC_ID = re.compile(r"^\d+$")

RawId = Union[str, int, None]


def _parse_id(value: RawId, name: str) -> int:
    """Coerce an id to int, rejecting anything that is not a storable non-negative integer."""
    if isinstance(value, bool):
        raise DigestValidationError(f"Invalid {name}: must be a number")
    if isinstance(value, int):
        parsed = value
    else:
        text = str(value).strip()
        if not NUMERIC_ID.match(text):
            raise DigestValidationError(
                f"Invalid {name} '{value}': must be a number",
                **{name.replace(" ", "_"): value},
            )
        parsed = int(text)
    if parsed < 0:
        raise DigestValidationError(f"Invalid {name}: must be non-negative")
    if parsed > MAX_DB_INT:
        raise DigestValidationError(f"Invalid {name}: must be at most {MAX_DB_INT}")
    return parsed


@dataclass(frozen=True)
class ArticleRef:
    """What an interaction is about: an edition document or a plain article."""

    document_id: Optional[int] = None
    article_id: Optional[int] = None
    news_item_id: Optional[int] = None

    @property
    def is_edition(self) -> bool:
        return self.document_id is not None

    @classmethod
    def parse(cls, article_id: RawId, news_item_id: RawId = None) -> "ArticleRef":
        """
        Parse the client's ``articleId``/``newsItemId`` pair.

        ``"12_3"`` splits on the first underscore: 12 is the edition document
        id and the remainder is discarded; ``news_item_id`` is the
        authoritative item id. Non-numeric ids are rejected.
        """
        if article_id is None or str(article_id).strip() == "":
            raise DigestValidationError("Article ID is required")

        item_id = None
        if news_item_id is not None and str(news_item_id).strip() != "":
            item_id = _parse_id(news_item_id, "news item id")

        raw = str(article_id).strip()
        if "_" in raw:
            document_part, _ = raw.split("_", 1)
            return cls(
                document_id=_parse_id(document_part, "document id"),
                news_item_id=item_id,
            )
        return cls(article_id=_parse_id(raw, "article id"), news_item_id=item_id)


class InteractionRecorder:
    """
    Upserts a user's interaction record and keeps UserStats in step.

    Completing an item that the user already completed adds its time to the
    totals but does not count it as another article read.
    """

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        user_id: Optional[int],
        article_id: RawId,
        time_spent: Optional[int] = 0,
        completed: Optional[bool] = None,
        news_item_id: RawId = None,
        last_position: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> UserArticleInteraction:
        if user_id is None:
            raise DigestValidationError("User ID is required")
        ref = ArticleRef.parse(article_id, news_item_id)
        time_spent = time_spent or 0
        if time_spent < 0:
            raise DigestValidationError("timeSpent must be non-negative")
        if now is None:
            now = local_now()

        self._ensure_targets_exist(user_id, ref)

        interaction = self._find_interaction(user_id, ref)
        already_completed = self._already_completed(interaction, ref)

        if interaction is None:
            interaction = UserArticleInteraction(
                user_id=user_id,
                document_id=ref.document_id,
                article_id=ref.article_id,
                time_spent=time_spent,
                completed=bool(completed),
                interaction_date=now,
                last_position=last_position or 0,
            )
            self.db.add(interaction)
            logger.info(f"Creating interaction for user {user_id} on {ref}")
        else:
            interaction.time_spent = (interaction.time_spent or 0) + time_spent
            if completed is not None:
                interaction.completed = completed
            if last_position is not None:
                interaction.last_position = last_position
            interaction.interaction_date = now

        if ref.is_edition and ref.news_item_id is not None:
            self._merge_news_item(interaction, ref.news_item_id, time_spent, completed, now)

        if not ref.is_edition and time_spent:
            article = self.db.get(Article, ref.article_id)
            article.record_read(time_spent)

        if completed:
            counts_as_read = not already_completed
            self._update_stats(user_id, ref, time_spent, counts_as_read, now)
        else:
            logger.debug(f"Interaction for user {user_id} on {ref} not completed")

        self.db.commit()
        self.db.refresh(interaction)
        return interaction

    def _ensure_targets_exist(self, user_id: int, ref: ArticleRef) -> None:
        if not self.db.query(User.id).filter(User.id == user_id).first():
            raise NotFoundError("User not found", user_id=user_id)
        if ref.is_edition:
            if not self.db.query(Edition.id).filter(Edition.id == ref.document_id).first():
                raise NotFoundError(
                    "Document not found", document_id=ref.document_id
                )
            if ref.news_item_id is not None and not (
                self.db.query(NewsItem.id)
                .filter(
                    NewsItem.edition_id == ref.document_id,
                    NewsItem.item_id == ref.news_item_id,
                )
                .first()
            ):
                raise NotFoundError(
                    "News item not found",
                    document_id=ref.document_id,
                    news_item_id=ref.news_item_id,
                )
        elif not self.db.query(Article.id).filter(Article.id == ref.article_id).first():
            raise NotFoundError("Article not found", article_id=ref.article_id)

    def _find_interaction(
        self, user_id: int, ref: ArticleRef
    ) -> Optional[UserArticleInteraction]:
        query = self.db.query(UserArticleInteraction).filter(
            UserArticleInteraction.user_id == user_id
        )
        if ref.is_edition:
            query = query.filter(UserArticleInteraction.document_id == ref.document_id)
        else:
            query = query.filter(UserArticleInteraction.article_id == ref.article_id)
        # Row lock narrows the read-modify-write race where supported
        return query.with_for_update().first()

    @staticmethod
    def _already_completed(
        interaction: Optional[UserArticleInteraction], ref: ArticleRef
    ) -> bool:
        if interaction is None:
            return False
        if ref.is_edition and ref.news_item_id is not None:
            entry = interaction.news_items.get(ref.news_item_id)
            return bool(entry and entry.completed)
        return bool(interaction.completed)

    @staticmethod
    def _merge_news_item(
        interaction: UserArticleInteraction,
        news_item_id: int,
        time_spent: int,
        completed: Optional[bool],
        now: datetime,
    ) -> InteractionNewsItem:
        entry = interaction.news_items.get(news_item_id)
        if entry is None:
            entry = InteractionNewsItem(
                news_item_id=news_item_id,
                time_spent=time_spent,
                completed=bool(completed),
                interaction_date=now,
            )
            interaction.news_items[news_item_id] = entry
            return entry

        entry.time_spent = (entry.time_spent or 0) + time_spent
        if completed is not None:
            entry.completed = completed
        entry.interaction_date = now
        return entry

    def _get_or_create_stats(self, user_id: int) -> UserStats:
        stats = (
            self.db.query(UserStats)
            .filter(UserStats.user_id == user_id)
            .with_for_update()
            .first()
        )
        if stats is None:
            logger.info(f"Creating stats for user {user_id}")
            stats = UserStats.empty(user_id)
            self.db.add(stats)
        return stats

    def _update_stats(
        self,
        user_id: int,
        ref: ArticleRef,
        time_spent: int,
        counts_as_read: bool,
        now: datetime,
    ) -> None:
        stats = self._get_or_create_stats(user_id)
        read_increment = 1 if counts_as_read else 0

        stats.articles_read = (stats.articles_read or 0) + read_increment
        stats.total_time_spent = (stats.total_time_spent or 0) + time_spent
        stats.last_activity = now

        category = self._resolve_category(ref)
        if category:
            stats.fold_category(category, time_spent, read_increment)

        stats.fold_daily(now.date(), time_spent, read_increment)

        if not counts_as_read:
            logger.info(
                f"User {user_id} re-completed {ref}; articles read left at "
                f"{stats.articles_read}"
            )

    def _resolve_category(self, ref: ArticleRef) -> Optional[str]:
        """Category of the item read, or None when it cannot be determined."""
        try:
            if ref.is_edition:
                if ref.news_item_id is None:
                    return None
                item = EditionService(self.db).find_news_item(
                    ref.document_id, ref.news_item_id
                )
                return item.category if item else None
            article = self.db.get(Article, ref.article_id)
            return article.category if article else None
        except Exception as e:
            # Category engagement is an enrichment; the primary write goes on
            logger.warning(f"Category lookup failed for {ref}: {e}")
            return None

    def list_interactions(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 10,
        completed: Optional[bool] = None,
    ) -> Tuple[List[UserArticleInteraction], int]:
        """One page of a user's interactions, most recent first, and the total."""
        query = self.db.query(UserArticleInteraction).filter(
            UserArticleInteraction.user_id == user_id
        )
        if completed is not None:
            query = query.filter(UserArticleInteraction.completed == completed)

        total = query.count()
        interactions = (
            query.order_by(UserArticleInteraction.interaction_date.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return interactions, total
