from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List


class Article(BaseModel):
    id: int
    title: str
    content: str
    summary: Optional[str] = None
    category: str
    day_time_category: str
    tags: Optional[List[str]] = None
    publish_date: Optional[datetime] = None

    # Reading metrics
    view_count: int = 0
    total_time_spent: int = 0
    average_read_time: float = 0.0

    class Config:
        from_attributes = True


class ArticleViewResponse(BaseModel):
    success: bool = True
    view_count: int
