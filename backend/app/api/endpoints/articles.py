from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
import logging
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.database import get_db
from app.core.errors import NotFoundError
from app.models.article import Article
from app.schemas.article import Article as ArticleSchema, ArticleViewResponse
from app.api.validation import ArticleIdPath

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)
logger = logging.getLogger(__name__)


def _active_article_query(db: Session, article_id: int):
    return db.query(Article).filter(Article.id == article_id, Article.is_active == True)


@router.get("/{article_id}", response_model=ArticleSchema)
def get_article(article_id: int = ArticleIdPath, db: Session = Depends(get_db)):
    article = _active_article_query(db, article_id).first()
    if not article:
        raise NotFoundError("Article not found", article_id=article_id)
    return article


@router.post("/{article_id}/view", response_model=ArticleViewResponse)
@limiter.limit("120/minute")
def increment_article_view(
    request: Request, article_id: int = ArticleIdPath, db: Session = Depends(get_db)
):
    """Count one view of a plain article."""
    updated = _active_article_query(db, article_id).update(
        {Article.view_count: Article.view_count + 1}, synchronize_session=False
    )
    if updated == 0:
        db.rollback()
        raise NotFoundError("Article not found", article_id=article_id)
    db.commit()

    view_count = db.query(Article.view_count).filter(Article.id == article_id).scalar()
    logger.info(f"Incremented views for article {article_id} to {view_count}")
    return {"success": True, "view_count": view_count}
