from pydantic import BaseModel, Field, field_validator
import datetime as dt
from datetime import datetime
from typing import Dict, List, Optional


class CategoryEngagement(BaseModel):
    category: str
    time_spent: int
    articles_read: int

    class Config:
        from_attributes = True


class DailyStats(BaseModel):
    date: dt.date
    time_spent: int
    articles_read: int

    class Config:
        from_attributes = True


class UserStats(BaseModel):
    user_id: int
    total_time_spent: int
    card_reading_time: int
    articles_read: int
    last_activity: Optional[datetime] = None
    category_engagement: List[CategoryEngagement] = []
    daily_stats: List[DailyStats] = []

    @field_validator("category_engagement", "daily_stats", mode="before")
    @classmethod
    def buckets_as_list(cls, v):
        # ORM exposes the buckets as keyed dicts
        if isinstance(v, dict):
            return list(v.values())
        return v

    class Config:
        from_attributes = True


class CategoryCounts(BaseModel):
    time_spent: int = Field(0, ge=0, alias="timeSpent")
    articles_read: int = Field(0, ge=0, alias="articlesRead")

    class Config:
        populate_by_name = True


class UserStatsUpdate(BaseModel):
    """Overwrite counters; omitted fields keep their stored value."""

    total_time_spent: Optional[int] = Field(None, ge=0, alias="totalTimeSpent")
    card_reading_time: Optional[int] = Field(None, ge=0, alias="cardReadingTime")
    articles_read: Optional[int] = Field(None, ge=0, alias="articlesRead")
    category_engagement: Optional[Dict[str, CategoryCounts]] = Field(
        None, alias="categoryEngagement"
    )

    class Config:
        populate_by_name = True


class DailyStatsUpdate(BaseModel):
    date: dt.date
    time_spent: int = Field(0, ge=0, alias="timeSpent")
    articles_read: int = Field(0, ge=0, alias="articlesRead")

    class Config:
        populate_by_name = True


class EngagementSummary(BaseModel):
    user_id: int
    edition_key: str
    total_time_spent: int
    articles_read: int
    average_read_minutes: int
    top_categories: List[str]
    current_period_read: int
    total_articles: int
    progress_percentage: int
