from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import List, Optional, Union


class InteractionCreate(BaseModel):
    """
    Body of a reading event.

    ``article_id`` is a plain article id or an edition compound id
    (``"{documentId}_{newsItemId}"``); ids are checked by the recorder so a
    malformed one is reported as a 400 with the offending value.
    """

    article_id: Optional[Union[int, str]] = Field(None, alias="articleId")
    news_item_id: Optional[Union[int, str]] = Field(None, alias="newsItemId")
    time_spent: Optional[int] = Field(0, alias="timeSpent")
    completed: Optional[bool] = None
    last_position: Optional[int] = Field(None, ge=0, alias="lastPosition")

    class Config:
        populate_by_name = True


class InteractionNewsItem(BaseModel):
    news_item_id: int
    time_spent: int
    completed: bool
    interaction_date: Optional[datetime] = None

    class Config:
        from_attributes = True


class Interaction(BaseModel):
    id: int
    user_id: int
    document_id: Optional[int] = None
    article_id: Optional[int] = None
    time_spent: int
    completed: bool
    interaction_date: Optional[datetime] = None
    last_position: Optional[int] = None
    news_items: List[InteractionNewsItem] = []

    @field_validator("news_items", mode="before")
    @classmethod
    def news_items_as_list(cls, v):
        if isinstance(v, dict):
            return sorted(v.values(), key=lambda entry: entry.news_item_id)
        return v

    class Config:
        from_attributes = True


class InteractionRecorded(BaseModel):
    message: str
    interaction: Interaction


class InteractionList(BaseModel):
    items: List[Interaction]
    total: int
    page: int
    limit: int
