from sqlalchemy import Column, Integer, String, DateTime, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from app.core.database import Base

AUTH_PROVIDERS = ("email", "google", "github")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    email = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    profile_picture = Column(String)

    # Sign-in method: "email", "google" or "github"
    auth_provider = Column(String, nullable=False, default="email")
    password_hash = Column(String, nullable=True)  # Only for the email provider
    provider_account_id = Column(String, nullable=True)  # Google/GitHub account id

    # Metadata
    is_active = Column(Boolean, default=True)  # False = soft deleted
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    last_login = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    stats = relationship(
        "UserStats",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    interactions = relationship(
        "UserArticleInteraction",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    # Email is unique per sign-in method
    __table_args__ = (
        UniqueConstraint("email", "auth_provider", name="uq_users_email_provider"),
    )
