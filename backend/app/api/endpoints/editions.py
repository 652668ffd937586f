from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.database import get_db
from app.core.auth import require_admin_token
from app.core.errors import DigestValidationError
from app.core.logging_config import log_security_event, get_client_ip
from app.schemas.edition import (
    Edition as EditionSchema,
    EditionIngest,
    NewsItem as NewsItemSchema,
    TrendingTopics,
    ViewRequest,
    ViewResponse,
)
from app.services.edition_builder import EditionBuilder
from app.services.editions import EditionService, popular_items, trending_topics
from app.services.interaction_recorder import ArticleRef
from app.api.validation import DocumentIdPath, EditionKeyParam

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)
logger = logging.getLogger(__name__)


@router.get("/current", response_model=EditionSchema)
def get_current_edition(
    date: Optional[str] = EditionKeyParam,
    db: Session = Depends(get_db),
):
    """
    Edition for the current 12-hour window.

    ``date`` (e.g. ``2025-04-06_18:00``) selects a specific edition instead.
    """
    return EditionService(db).current(date_override=date)


@router.get("/current/popular", response_model=List[NewsItemSchema])
def get_popular_news_items(
    date: Optional[str] = EditionKeyParam,
    db: Session = Depends(get_db),
):
    """Most viewed news items of the current edition."""
    return popular_items(EditionService(db).current(date_override=date))


@router.get("/current/trending", response_model=TrendingTopics)
def get_trending_topics(
    date: Optional[str] = EditionKeyParam,
    db: Session = Depends(get_db),
):
    """Categories with the most news items in the current edition."""
    edition = EditionService(db).current(date_override=date)
    return {"edition_key": edition.key, "topics": trending_topics(edition)}


@router.post("/view", response_model=ViewResponse)
@limiter.limit("120/minute")
def increment_news_item_view(
    request: Request, view: ViewRequest, db: Session = Depends(get_db)
):
    """Count one view of a news item, addressed by ``articleId`` + ``newsItemId``."""
    ref = ArticleRef.parse(view.article_id, view.news_item_id)
    if not ref.is_edition:
        raise DigestValidationError(
            "articleId must be an edition id like '12_3'; "
            "plain articles use /api/articles/{id}/view"
        )
    if ref.news_item_id is None:
        raise DigestValidationError("News item ID is required")

    views = EditionService(db).increment_view(ref.document_id, ref.news_item_id)
    return {"success": True, "views": views}


@router.get("/{document_id}", response_model=EditionSchema)
def get_edition(document_id: int = DocumentIdPath, db: Session = Depends(get_db)):
    return EditionService(db).get(document_id)


@router.post(
    "/",
    response_model=EditionSchema,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin_token)],
)
@limiter.limit("10/minute")
def ingest_edition(
    request: Request, payload: EditionIngest, db: Session = Depends(get_db)
):
    """
    Store the summarization pipeline's output for one edition window.

    Requires the ``X-Admin-Token`` header. An existing edition for the same
    key is a conflict unless ``replace`` is set.
    """
    edition = EditionBuilder(db).create_from_summary(
        payload.key,
        payload.model_dump(include={"overall_introduction", "categories"}),
        replace=payload.replace,
    )

    log_security_event(
        event_type="edition.ingested",
        message=f"Edition {edition.key} stored",
        ip_address=get_client_ip(request),
        request_method="POST",
        request_path="/api/editions",
        event_category="content",
        edition_key=edition.key,
        news_items=len(edition.news_items),
    )
    return edition
