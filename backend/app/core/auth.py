from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.core.config import settings
from app.models.user import User
from typing import Optional, Tuple
from datetime import datetime, timedelta, timezone
import bcrypt
import logging
import secrets
import uuid

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

# JWT settings
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60
REFRESH_TOKEN_EXPIRE_DAYS = 7

ACCESS_COOKIE = "auth_token"
REFRESH_COOKIE = "refresh_token"


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Check a password against a stored bcrypt hash; False when there is none."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def _encode(user_id: int, token_type: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        # JWT requires sub to be a string
        "sub": str(user_id),
        "exp": now + expires_delta,
        "iat": now,
        "jti": str(uuid.uuid4()),
        "type": token_type,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        user_id: Subject of the token
        expires_delta: Optional custom lifetime

    Returns:
        Encoded JWT token
    """
    return _encode(
        user_id, "access", expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )


def create_refresh_token(user_id: int) -> str:
    return _encode(user_id, "refresh", timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS))


def create_token_pair(user_id: int) -> Tuple[str, str]:
    """Access and refresh tokens for a user, in that order."""
    return create_access_token(user_id), create_refresh_token(user_id)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str, token_type: str = "access") -> dict:
    """
    Decode and validate a JWT.

    Raises:
        HTTPException: 401 if the token is invalid, expired or of the wrong type
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.warning("Token expired")
        raise _unauthorized("Token has expired")
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        raise _unauthorized("Could not validate credentials")

    if payload.get("type") != token_type:
        logger.warning(
            f"Token type mismatch: expected {token_type}, got {payload.get('type')}"
        )
        raise _unauthorized("Invalid token type")
    return payload


def user_id_from_payload(payload: dict) -> int:
    try:
        return int(payload.get("sub"))
    except (ValueError, TypeError):
        raise _unauthorized("Invalid user ID in token")


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get the current authenticated user from JWT token (cookie or Authorization header)."""
    token = request.cookies.get(ACCESS_COOKIE)

    # Fall back to Authorization header if no cookie
    if not token and credentials:
        token = credentials.credentials

    if not token:
        raise _unauthorized("Not authenticated")

    user_id = user_id_from_payload(decode_token(token))

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user",
        )

    return user


def ensure_same_user(current_user: User, user_id: int) -> None:
    """Users may only read and write their own stats and interactions."""
    if current_user.id != user_id:
        logger.warning(
            f"User {current_user.id} attempted to access data of user {user_id}"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to access another user's data",
        )


def _require_shared_secret(request: Request, header: str, expected: Optional[str]) -> None:
    supplied = request.headers.get(header)
    if not expected or not supplied or not secrets.compare_digest(
        supplied.encode(), expected.encode()
    ):
        logger.warning(f"Rejected request to {request.url.path}: missing or bad {header}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"{header} header required",
        )


def require_admin_token(request: Request) -> None:
    """Guard for pipeline-only routes: the X-Admin-Token header must match."""
    _require_shared_secret(request, "X-Admin-Token", settings.ADMIN_TOKEN)


def require_auth_bridge_token(request: Request) -> None:
    """
    Guard for the provider sign-in route.

    Only the frontend auth layer, which completes the Google/GitHub handshake,
    holds AUTH_BRIDGE_TOKEN and may exchange a verified profile for tokens.
    """
    _require_shared_secret(request, "X-Auth-Bridge-Token", settings.AUTH_BRIDGE_TOKEN)
