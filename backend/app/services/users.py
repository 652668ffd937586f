"""
User accounts: registration, sign-in and account maintenance.

Every new user gets a zeroed UserStats row so the stats endpoints and the
interaction recorder always find one.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.auth import hash_password, verify_password
from app.core.config import settings
from app.core.errors import ConflictError, DigestValidationError, NotFoundError
from app.models.user import AUTH_PROVIDERS, User
from app.models.user_stats import UserStats

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found", user_id=user_id)
        return user

    def find_by_email(self, email: str, provider: str = "email") -> Optional[User]:
        return (
            self.db.query(User)
            .filter(User.email == email.lower(), User.auth_provider == provider)
            .first()
        )

    def _create(self, **fields) -> User:
        user = User(
            profile_picture=fields.pop("profile_picture", None)
            or settings.DEFAULT_PROFILE_PICTURE,
            is_active=True,
            last_login=datetime.utcnow(),
            **fields,
        )
        user.stats = UserStats.empty(user_id=None)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Created user {user.id} ({user.auth_provider})")
        return user

    def register(self, email: str, name: str, password: str) -> User:
        """Create an email/password account."""
        if self.find_by_email(email):
            raise ConflictError("User already exists", email=email)
        return self._create(
            email=email.lower(),
            name=name,
            auth_provider="email",
            password_hash=hash_password(password),
        )

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the active email user matching the credentials, else None."""
        user = self.find_by_email(email)
        if not user or not user.is_active:
            return None
        if not verify_password(password, user.password_hash):
            return None
        user.last_login = datetime.utcnow()
        self.db.commit()
        return user

    def provider_sign_in(
        self,
        email: str,
        name: str,
        provider: str,
        provider_account_id: Optional[str] = None,
        profile_picture: Optional[str] = None,
    ) -> Tuple[User, bool]:
        """Find or create the user for a Google/GitHub profile; returns (user, created)."""
        if provider not in AUTH_PROVIDERS or provider == "email":
            raise DigestValidationError(f"Unsupported provider '{provider}'")

        user = self.find_by_email(email, provider)
        if user is None:
            user = self._create(
                email=email.lower(),
                name=name,
                auth_provider=provider,
                provider_account_id=provider_account_id,
                profile_picture=profile_picture,
            )
            return user, True

        if not user.is_active:
            raise DigestValidationError("Account is deactivated", user_id=user.id)
        user.name = name or user.name
        if profile_picture:
            user.profile_picture = profile_picture
        if provider_account_id:
            user.provider_account_id = provider_account_id
        user.last_login = datetime.utcnow()
        self.db.commit()
        self.db.refresh(user)
        return user, False

    def list(
        self, page: int = 1, limit: int = 10, active: Optional[bool] = None
    ) -> Tuple[List[User], int]:
        query = self.db.query(User)
        if active is not None:
            query = query.filter(User.is_active == active)
        total = query.count()
        users = (
            query.order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return users, total

    def update(self, user_id: int, **changes) -> User:
        user = self.get(user_id)
        password = changes.pop("password", None)
        if password is not None:
            if user.auth_provider != "email":
                raise DigestValidationError(
                    "Password can only be set for email accounts", user_id=user_id
                )
            user.password_hash = hash_password(password)
        for field, value in changes.items():
            if value is not None:
                setattr(user, field, value)
        self.db.commit()
        self.db.refresh(user)
        return user

    def delete(self, user_id: int, hard_delete: bool = False) -> None:
        """Deactivate a user, or with ``hard_delete`` remove them and their data."""
        user = self.get(user_id)
        if hard_delete:
            self.db.delete(user)
            logger.info(f"Deleted user {user_id} and their reading data")
        else:
            user.is_active = False
            logger.info(f"Deactivated user {user_id}")
        self.db.commit()
