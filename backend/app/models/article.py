from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Boolean,
    Float,
    JSON,
)
from datetime import datetime
from app.core.database import Base

DAY_TIME_CATEGORIES = ("morning", "afternoon", "evening", "night")


class Article(Base):
    """Standalone article addressed by a plain (non-compound) id."""

    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, index=True)

    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    summary = Column(Text)
    category = Column(String, nullable=False, index=True)
    day_time_category = Column(String, nullable=False)  # One of DAY_TIME_CATEGORIES
    tags = Column(JSON, default=list)
    publish_date = Column(DateTime, default=datetime.utcnow)

    # Reading metrics
    view_count = Column(Integer, default=0, nullable=False)
    total_time_spent = Column(Integer, default=0, nullable=False)  # seconds
    average_read_time = Column(Float, default=0.0, nullable=False)  # seconds

    # Metadata
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def record_read(self, time_spent: int) -> None:
        """Count one more read of ``time_spent`` seconds."""
        self.view_count = (self.view_count or 0) + 1
        self.total_time_spent = (self.total_time_spent or 0) + time_spent
        self.average_read_time = self.total_time_spent / self.view_count
