from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import Optional
import logging
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.database import get_db
from app.core.auth import get_current_user, ensure_same_user, require_admin_token
from app.core.logging_config import log_security_event, get_client_ip
from app.models.user import User
from app.models.user_stats import UserStats
from app.schemas.user import User as UserSchema, UserList, UserUpdate
from app.schemas.stats import (
    UserStats as UserStatsSchema,
    UserStatsUpdate,
    DailyStatsUpdate,
    EngagementSummary,
)
from app.schemas.interaction import (
    InteractionCreate,
    InteractionList,
    InteractionRecorded,
)
from app.services.engagement import EngagementAggregator
from app.services.interaction_recorder import InteractionRecorder
from app.services.users import UserService
from app.api.validation import PageParam, LimitParam, UserIdPath

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)
logger = logging.getLogger(__name__)


@router.get(
    "/", response_model=UserList, dependencies=[Depends(require_admin_token)]
)
def list_users(
    page: int = PageParam,
    limit: int = LimitParam,
    active: Optional[bool] = None,
    db: Session = Depends(get_db),
):
    """
    List users, newest first. ``active`` filters on the soft-delete flag.

    Admin only (``X-Admin-Token``); readers can see just their own account.
    """
    users, total = UserService(db).list(page=page, limit=limit, active=active)
    return {"items": users, "total": total, "page": page, "limit": limit}


@router.get("/{user_id}", response_model=UserSchema)
def get_user(
    user_id: int = UserIdPath,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_same_user(current_user, user_id)
    return UserService(db).get(user_id)


@router.put("/{user_id}", response_model=UserSchema)
@limiter.limit("30/minute")
def update_user(
    request: Request,
    user_update: UserUpdate,
    user_id: int = UserIdPath,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_same_user(current_user, user_id)
    changes = user_update.model_dump(exclude_unset=True)
    user = UserService(db).update(user_id, **changes)

    log_security_event(
        event_type="user.updated",
        message="User account updated",
        user_id=user_id,
        ip_address=get_client_ip(request),
        request_method="PUT",
        request_path=f"/api/users/{user_id}",
        event_category="account",
        fields=sorted(changes),
    )
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
def delete_user(
    request: Request,
    user_id: int = UserIdPath,
    hard_delete: bool = Query(False, description="Remove the user and their data"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Deactivate the account, or delete it outright with ``hard_delete=true``."""
    ensure_same_user(current_user, user_id)
    UserService(db).delete(user_id, hard_delete=hard_delete)

    log_security_event(
        event_type="user.deleted" if hard_delete else "user.deactivated",
        message="User account removed" if hard_delete else "User account deactivated",
        level=logging.WARNING,
        user_id=user_id,
        ip_address=get_client_ip(request),
        request_method="DELETE",
        request_path=f"/api/users/{user_id}",
        event_category="account",
    )
    return None


def _stats_for(db: Session, user_id: int) -> UserStats:
    """Stats row for an existing user, created on first access."""
    UserService(db).get(user_id)
    stats = db.query(UserStats).filter(UserStats.user_id == user_id).first()
    if stats is None:
        stats = UserStats.empty(user_id)
        db.add(stats)
        db.commit()
        db.refresh(stats)
    return stats


@router.get("/{user_id}/stats", response_model=UserStatsSchema)
def get_user_stats(
    user_id: int = UserIdPath,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_same_user(current_user, user_id)
    return _stats_for(db, user_id)


@router.put("/{user_id}/stats", response_model=UserStatsSchema)
@limiter.limit("30/minute")
def update_user_stats(
    request: Request,
    stats_update: UserStatsUpdate,
    user_id: int = UserIdPath,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Overwrite stored counters.

    Categories named in ``category_engagement`` are set to the given values;
    categories not named are left alone.
    """
    ensure_same_user(current_user, user_id)
    stats = _stats_for(db, user_id)

    for field in ("total_time_spent", "card_reading_time", "articles_read"):
        value = getattr(stats_update, field)
        if value is not None:
            setattr(stats, field, value)

    for category, counts in (stats_update.category_engagement or {}).items():
        bucket = stats.fold_category(category)
        bucket.time_spent = counts.time_spent
        bucket.articles_read = counts.articles_read

    db.commit()
    db.refresh(stats)
    logger.info(f"Stats overwritten for user {user_id}")
    return stats


@router.post("/{user_id}/daily-stats", response_model=UserStatsSchema)
@limiter.limit("60/minute")
def set_daily_stats(
    request: Request,
    daily: DailyStatsUpdate,
    user_id: int = UserIdPath,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Set one day's bucket to the given values."""
    ensure_same_user(current_user, user_id)
    stats = _stats_for(db, user_id)

    bucket = stats.fold_daily(daily.date)
    bucket.time_spent = daily.time_spent
    bucket.articles_read = daily.articles_read

    db.commit()
    db.refresh(stats)
    return stats


@router.get("/{user_id}/stats/summary", response_model=EngagementSummary)
def get_engagement_summary(
    user_id: int = UserIdPath,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Totals, top categories and current-edition progress for the digest UI."""
    ensure_same_user(current_user, user_id)
    return EngagementAggregator(db).summary(user_id)


@router.post(
    "/{user_id}/interactions",
    response_model=InteractionRecorded,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit("120/minute")
def record_interaction(
    request: Request,
    event: InteractionCreate,
    user_id: int = UserIdPath,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Record time spent on (and optionally completion of) an edition item or article.

    Completing an item adds to the user's stats; completing it again only
    adds time.
    """
    ensure_same_user(current_user, user_id)
    interaction = InteractionRecorder(db).record(
        user_id=user_id,
        article_id=event.article_id,
        time_spent=event.time_spent,
        completed=event.completed,
        news_item_id=event.news_item_id,
        last_position=event.last_position,
    )

    log_security_event(
        event_type="interaction.recorded",
        message="Reading interaction recorded",
        user_id=user_id,
        ip_address=get_client_ip(request),
        request_method="POST",
        request_path=f"/api/users/{user_id}/interactions",
        event_category="activity",
        document_id=interaction.document_id,
        article_id=interaction.article_id,
        completed=bool(event.completed),
    )
    return {"message": "Interaction recorded successfully", "interaction": interaction}


@router.get("/{user_id}/interactions", response_model=InteractionList)
def list_interactions(
    user_id: int = UserIdPath,
    page: int = PageParam,
    limit: int = LimitParam,
    completed: Optional[bool] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_same_user(current_user, user_id)
    interactions, total = InteractionRecorder(db).list_interactions(
        user_id, page=page, limit=limit, completed=completed
    )
    return {"items": interactions, "total": total, "page": page, "limit": limit}
