from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.core.config import settings
from app.core.auth import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    REFRESH_TOKEN_EXPIRE_DAYS,
    create_token_pair,
    create_access_token,
    decode_token,
    get_current_user,
    require_auth_bridge_token,
    user_id_from_payload,
)
from app.models.user import User
from app.schemas.user import (
    User as UserSchema,
    UserRegister,
    UserLogin,
    ProviderSignIn,
    TokenResponse,
)
from app.services.users import UserService
import logging
from slowapi import Limiter
from slowapi.util import get_remote_address
from app.core.logging_config import log_security_event, get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)


def _cookie_kwargs(max_age: int) -> dict:
    """Cookie settings shared by the auth and refresh cookies."""
    cookie_kwargs = {
        "httponly": True,  # XSS protection
        "secure": settings.COOKIE_SECURE,  # HTTPS only in production
        "samesite": settings.COOKIE_SAMESITE,  # CSRF protection
        "max_age": max_age,
    }
    if settings.COOKIE_DOMAIN:
        cookie_kwargs["domain"] = settings.COOKIE_DOMAIN
    return cookie_kwargs


def _token_response(user: User, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """Issue a token pair in the body and as HttpOnly cookies."""
    access_token, refresh_token = create_token_pair(user.id)
    body = TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        user=UserSchema.model_validate(user),
    )
    response = JSONResponse(content=body.model_dump(mode="json"), status_code=status_code)
    response.set_cookie(
        key=ACCESS_COOKIE,
        value=access_token,
        **_cookie_kwargs(ACCESS_TOKEN_EXPIRE_MINUTES * 60),
    )
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=refresh_token,
        **_cookie_kwargs(REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60),
    )
    return response


@router.post("/register", response_model=TokenResponse, status_code=201)
@limiter.limit("10/minute")
async def register(
    request: Request, user_data: UserRegister, db: Session = Depends(get_db)
):
    """Create an email/password account and sign it in."""
    user = UserService(db).register(user_data.email, user_data.name, user_data.password)

    log_security_event(
        event_type="auth.user.created",
        message="New user account created",
        user_id=user.id,
        username=user.email,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        request_method="POST",
        request_path="/api/auth/register",
        event_category="authentication",
        auth_provider="email",
    )

    return _token_response(user, status_code=status.HTTP_201_CREATED)


@router.post("/login", response_model=TokenResponse)
@limiter.limit("10/minute")
async def login(request: Request, credentials: UserLogin, db: Session = Depends(get_db)):
    """Sign in with email and password."""
    client_ip = get_client_ip(request)
    user = UserService(db).authenticate(credentials.email, credentials.password)

    if user is None:
        log_security_event(
            event_type="auth.login.failure",
            message="Invalid email or password",
            level=logging.WARNING,
            username=credentials.email,
            ip_address=client_ip,
            user_agent=request.headers.get("user-agent"),
            request_method="POST",
            request_path="/api/auth/login",
            event_category="authentication",
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    log_security_event(
        event_type="auth.login.success",
        message="User logged in successfully",
        user_id=user.id,
        username=user.email,
        ip_address=client_ip,
        user_agent=request.headers.get("user-agent"),
        request_method="POST",
        request_path="/api/auth/login",
        event_category="authentication",
        auth_method="password",
    )

    return _token_response(user)


@router.post(
    "/oauth",
    response_model=TokenResponse,
    dependencies=[Depends(require_auth_bridge_token)],
)
@limiter.limit("20/minute")
async def provider_sign_in(
    request: Request, profile: ProviderSignIn, db: Session = Depends(get_db)
):
    """
    Find or create the user behind a Google/GitHub sign-in.

    The provider handshake happens in the frontend auth layer; this endpoint
    only receives the verified profile and requires the
    ``X-Auth-Bridge-Token`` header that layer shares with us.
    """
    user, created = UserService(db).provider_sign_in(
        email=profile.email,
        name=profile.name,
        provider=profile.provider,
        provider_account_id=profile.provider_account_id,
        profile_picture=profile.profile_picture,
    )

    log_security_event(
        event_type="auth.user.created" if created else "auth.login.success",
        message=f"User signed in via {profile.provider}",
        user_id=user.id,
        username=user.email,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        request_method="POST",
        request_path="/api/auth/oauth",
        event_category="authentication",
        auth_method=profile.provider,
    )

    return _token_response(
        user, status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK
    )


@router.post("/refresh")
@limiter.limit("30/minute")
async def refresh_access_token(request: Request, db: Session = Depends(get_db)):
    """
    Refresh access token using refresh token.

    The refresh token must be valid and not expired; it is kept as is.
    """
    refresh_token = request.cookies.get(REFRESH_COOKIE)
    if not refresh_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token not found"
        )

    user_id = user_id_from_payload(decode_token(refresh_token, token_type="refresh"))

    # Verify user still exists and is active
    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    log_security_event(
        event_type="auth.token.refreshed",
        message="Access token refreshed successfully",
        user_id=user_id,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        request_method="POST",
        request_path="/api/auth/refresh",
        event_category="authentication",
    )

    response = JSONResponse(content={"message": "Token refreshed successfully"})
    response.set_cookie(
        key=ACCESS_COOKIE,
        value=create_access_token(user_id),
        **_cookie_kwargs(ACCESS_TOKEN_EXPIRE_MINUTES * 60),
    )
    return response


@router.post("/logout")
async def logout(request: Request):
    """Logout endpoint - clears both auth and refresh tokens."""
    auth_token = request.cookies.get(ACCESS_COOKIE)
    if auth_token:
        try:
            user_id = decode_token(auth_token).get("sub")
        except HTTPException:
            # An expired or invalid token still gets its cookie cleared
            user_id = None
        log_security_event(
            event_type="auth.logout.success",
            message="User logged out successfully",
            user_id=user_id,
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("user-agent"),
            request_method="POST",
            request_path="/api/auth/logout",
            event_category="authentication",
        )

    response = JSONResponse(content={"message": "Logged out successfully"})
    for key in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            key=key,
            httponly=True,
            secure=settings.COOKIE_SECURE,
            samesite=settings.COOKIE_SAMESITE,
            domain=settings.COOKIE_DOMAIN,
        )
    return response


@router.get("/me", response_model=UserSchema)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return current_user
