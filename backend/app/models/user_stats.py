from sqlalchemy import (
    Column,
    Integer,
    DateTime,
    Date,
    String,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.orm.collections import attribute_keyed_dict
from datetime import date, datetime
from app.core.database import Base


class UserStats(Base):
    __tablename__ = "user_stats"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    # Rollups; only ever incremented by the interaction recorder
    total_time_spent = Column(Integer, default=0, nullable=False)  # seconds
    card_reading_time = Column(Integer, default=0, nullable=False)  # seconds
    articles_read = Column(Integer, default=0, nullable=False)
    last_activity = Column(DateTime, default=datetime.now)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="stats")

    # category name -> CategoryEngagement
    category_engagement = relationship(
        "CategoryEngagement",
        collection_class=attribute_keyed_dict("category"),
        back_populates="stats",
        cascade="all, delete-orphan",
    )
    # calendar date -> DailyStats
    daily_stats = relationship(
        "DailyStats",
        collection_class=attribute_keyed_dict("date"),
        back_populates="stats",
        cascade="all, delete-orphan",
    )

    @classmethod
    def empty(cls, user_id: int) -> "UserStats":
        """Zeroed stats row for a user."""
        return cls(
            user_id=user_id,
            total_time_spent=0,
            card_reading_time=0,
            articles_read=0,
            last_activity=datetime.now(),
        )

    def fold_category(
        self, category: str, time_spent: int = 0, articles_read: int = 0
    ) -> "CategoryEngagement":
        """Add to a category bucket, creating it with zero counters if absent."""
        bucket = self.category_engagement.get(category)
        if bucket is None:
            bucket = CategoryEngagement(category=category, time_spent=0, articles_read=0)
            self.category_engagement[category] = bucket
        bucket.time_spent += time_spent
        bucket.articles_read += articles_read
        return bucket

    def fold_daily(
        self, day: date, time_spent: int = 0, articles_read: int = 0
    ) -> "DailyStats":
        """Add to the bucket for a calendar day, creating it if absent."""
        bucket = self.daily_stats.get(day)
        if bucket is None:
            bucket = DailyStats(date=day, time_spent=0, articles_read=0)
            self.daily_stats[day] = bucket
        bucket.time_spent += time_spent
        bucket.articles_read += articles_read
        return bucket


class CategoryEngagement(Base):
    __tablename__ = "category_engagement"

    id = Column(Integer, primary_key=True, index=True)
    user_stats_id = Column(
        Integer,
        ForeignKey("user_stats.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category = Column(String, nullable=False)
    time_spent = Column(Integer, default=0, nullable=False)
    articles_read = Column(Integer, default=0, nullable=False)

    stats = relationship("UserStats", back_populates="category_engagement")

    __table_args__ = (
        UniqueConstraint("user_stats_id", "category", name="uq_category_engagement"),
    )

    @property
    def score(self) -> int:
        """Unitless engagement score used to rank categories."""
        return (self.time_spent or 0) + (self.articles_read or 0)


class DailyStats(Base):
    __tablename__ = "daily_stats"

    id = Column(Integer, primary_key=True, index=True)
    user_stats_id = Column(
        Integer,
        ForeignKey("user_stats.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date = Column(Date, nullable=False)
    time_spent = Column(Integer, default=0, nullable=False)
    articles_read = Column(Integer, default=0, nullable=False)

    stats = relationship("UserStats", back_populates="daily_stats")

    __table_args__ = (
        UniqueConstraint("user_stats_id", "date", name="uq_daily_stats_day"),
    )
