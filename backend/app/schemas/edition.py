from pydantic import BaseModel, Field
from datetime import datetime
from typing import Dict, List, Optional, Union


class NewsItem(BaseModel):
    item_id: int
    article_id: str  # "{documentId}_{itemId}", sent back with interactions
    title: str
    summary: Optional[str] = None
    category: str
    slug: Optional[str] = None
    image: Optional[str] = None
    views: int = 0
    article_count: Optional[int] = 0
    source_count: Optional[int] = 0

    class Config:
        from_attributes = True


class Edition(BaseModel):
    id: int
    key: str
    overall_introduction: Optional[str] = None
    created_at: datetime
    news_items: List[NewsItem] = []

    class Config:
        from_attributes = True


class CategorySummary(BaseModel):
    title: Optional[str] = None
    summary: str = ""
    article_count: int = Field(0, ge=0)
    source_count: int = Field(0, ge=0)


class EditionIngest(BaseModel):
    """Output of the summarization pipeline for one edition window."""

    key: str = Field(..., alias="date", max_length=16)
    overall_introduction: Optional[str] = None
    categories: Dict[str, CategorySummary] = {}
    replace: bool = False

    class Config:
        populate_by_name = True


class ViewRequest(BaseModel):
    article_id: Optional[Union[int, str]] = Field(None, alias="articleId")
    news_item_id: Optional[Union[int, str]] = Field(None, alias="newsItemId")

    class Config:
        populate_by_name = True


class ViewResponse(BaseModel):
    success: bool = True
    views: int


class TrendingTopics(BaseModel):
    edition_key: str
    topics: List[str]
