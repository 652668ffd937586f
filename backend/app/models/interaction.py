from sqlalchemy import (
    Column,
    Integer,
    DateTime,
    Boolean,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.orm.collections import attribute_keyed_dict
from datetime import datetime
from app.core.database import Base


class UserArticleInteraction(Base):
    """
    A user's reading activity on one edition document or one plain article.

    Exactly one of ``document_id`` / ``article_id`` is set. Edition
    interactions carry one ``InteractionNewsItem`` per news item read.
    """

    __tablename__ = "user_article_interactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    document_id = Column(
        Integer, ForeignKey("editions.id", ondelete="CASCADE"), nullable=True
    )
    article_id = Column(
        Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=True
    )

    # Rollups mirroring the most recent update
    time_spent = Column(Integer, default=0, nullable=False)  # seconds, accumulated
    completed = Column(Boolean, default=False, nullable=False)
    interaction_date = Column(DateTime, default=datetime.now, index=True)
    last_position = Column(Integer, default=0)  # Scroll position for resuming

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="interactions")
    edition = relationship("Edition")
    article = relationship("Article")
    # news item id -> InteractionNewsItem
    news_items = relationship(
        "InteractionNewsItem",
        collection_class=attribute_keyed_dict("news_item_id"),
        back_populates="interaction",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "document_id", name="uq_interaction_user_document"),
        UniqueConstraint("user_id", "article_id", name="uq_interaction_user_article"),
        CheckConstraint(
            "(document_id IS NULL) <> (article_id IS NULL)",
            name="ck_interaction_single_target",
        ),
    )


class InteractionNewsItem(Base):
    __tablename__ = "interaction_news_items"

    id = Column(Integer, primary_key=True, index=True)
    interaction_id = Column(
        Integer,
        ForeignKey("user_article_interactions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    news_item_id = Column(Integer, nullable=False)
    time_spent = Column(Integer, default=0, nullable=False)
    completed = Column(Boolean, default=False, nullable=False)
    interaction_date = Column(DateTime, default=datetime.now)

    interaction = relationship("UserArticleInteraction", back_populates="news_items")

    __table_args__ = (
        UniqueConstraint(
            "interaction_id", "news_item_id", name="uq_interaction_news_item"
        ),
    )
