from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime
from app.core.database import Base


class Edition(Base):
    """One 12-hour news cycle. ``id`` is the document id clients address."""

    __tablename__ = "editions"

    id = Column(Integer, primary_key=True, index=True)
    # Format: "2025-04-06_18:00" (hour is always 06 or 18)
    key = Column(String, unique=True, nullable=False, index=True)
    overall_introduction = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    news_items = relationship(
        "NewsItem",
        back_populates="edition",
        cascade="all, delete-orphan",
        order_by="NewsItem.item_id",
    )


class NewsItem(Base):
    __tablename__ = "news_items"

    id = Column(Integer, primary_key=True, index=True)
    edition_id = Column(
        Integer,
        ForeignKey("editions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_id = Column(Integer, nullable=False)  # Position id inside the edition

    title = Column(String, nullable=False)
    summary = Column(Text)
    category = Column(String, nullable=False, index=True)
    slug = Column(String)
    image = Column(String)

    views = Column(Integer, default=0, nullable=False)  # Only ever incremented
    article_count = Column(Integer, default=0)
    source_count = Column(Integer, default=0)

    # Relationships
    edition = relationship("Edition", back_populates="news_items")

    __table_args__ = (
        UniqueConstraint("edition_id", "item_id", name="uq_news_items_edition_item"),
    )

    @property
    def article_id(self) -> str:
        """Compound id the frontend sends back when recording interactions."""
        return f"{self.edition_id}_{self.item_id}"
