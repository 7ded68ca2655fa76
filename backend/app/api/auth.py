"""Authentication API endpoints and the session dependencies."""

import logging
import time
from collections import defaultdict
from datetime import UTC, datetime
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import get_db, settings
from app.core.exceptions import AuthenticationError, StorageError
from app.core.request_utils import get_client_ip
from app.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserResponse,
)
from app.services.auth import (
    AuthService,
    InvalidCredentialsError,
    Principal,
    auth_token_ttl,
    issue_auth_token,
)
from app.services.blacklist import TokenBlacklistStore
from app.services.session import (
    Authenticated,
    Rejected,
    RejectionReason,
    SessionAuthenticator,
)
from app.services.tokens import TokenCodecs, build_token_codecs

logger = logging.getLogger(__name__)

# Failed login attempts per client IP (monotonic timestamps)
_login_attempts: dict[str, list[float]] = defaultdict(list)


def _check_login_rate_limit(client_ip: str) -> None:
    """Check if a client IP has exceeded the failed login limit."""
    now = time.monotonic()
    window = settings.login_rate_limit_window_seconds
    attempts = [t for t in _login_attempts[client_ip] if now - t < window]
    _login_attempts[client_ip] = attempts
    if len(attempts) >= settings.login_rate_limit_attempts:
        logger.warning("Login rate limit exceeded for %s", client_ip)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts. Please try again later.",
        )


def _record_login_attempt(client_ip: str) -> None:
    """Record a failed login attempt for rate limiting."""
    _login_attempts[client_ip].append(time.monotonic())


# --- Dependencies ---


@lru_cache
def get_token_codecs() -> TokenCodecs:
    """The auth and invite codecs built from settings (one pair per process)."""
    return build_token_codecs(
        settings.jwt_secret_auth,
        settings.jwt_secret_invite,
        algorithm=settings.jwt_algorithm,
    )


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """Dependency to get auth service."""
    return AuthService(db)


def get_blacklist_store(db: AsyncSession = Depends(get_db)) -> TokenBlacklistStore:
    return TokenBlacklistStore(db)


async def get_session(
    request: Request,
    codecs: TokenCodecs = Depends(get_token_codecs),
    blacklist: TokenBlacklistStore = Depends(get_blacklist_store),
) -> Authenticated:
    """Dependency that authenticates the request's bearer token."""
    authenticator = SessionAuthenticator(codecs.auth, blacklist)
    result = await authenticator.authenticate(request.headers.get("Authorization"))
    if isinstance(result, Rejected):
        logger.info(f"{request.method} {request.url.path} rejected: {result.reason.value}")
        raise result.to_error()
    return result


async def get_current_user(session: Authenticated = Depends(get_session)) -> Principal:
    """Dependency to get the authenticated principal."""
    return session.principal


# --- Routes ---

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _auth_response(message: str, token: str, user) -> AuthResponse:
    return AuthResponse(
        message=message,
        token=token,
        expires_in=int(auth_token_ttl().total_seconds()),
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
    codecs: TokenCodecs = Depends(get_token_codecs),
) -> AuthResponse:
    """Register a new user and log them in.

    Returns 409 Conflict if the email is already registered.
    """
    user = await auth_service.register(
        username=request.username,
        email=request.email,
        password=request.password,
    )
    issued = issue_auth_token(codecs.auth, user)
    return _auth_response("Registration successful", issued.token, user)


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    http_request: Request,
    auth_service: AuthService = Depends(get_auth_service),
    codecs: TokenCodecs = Depends(get_token_codecs),
) -> AuthResponse:
    """Authenticate and get a bearer token.

    Failed attempts are rate limited per client IP.
    """
    client_ip = get_client_ip(http_request) or "unknown"
    _check_login_rate_limit(client_ip)

    try:
        user = await auth_service.authenticate(email=request.email, password=request.password)
    except InvalidCredentialsError as e:
        _record_login_attempt(client_ip)
        logger.warning(f"Failed login from {client_ip}")
        raise AuthenticationError("Invalid credentials", reason="bad_credentials") from e

    issued = issue_auth_token(codecs.auth, user)
    logger.info(f"User {user.id} logged in")
    return _auth_response("Login successful", issued.token, user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    session: Authenticated = Depends(get_session),
    blacklist: TokenBlacklistStore = Depends(get_blacklist_store),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Log out the current session.

    Blacklists the presented token until its own expiry so it cannot be
    reused for the remainder of its TTL.
    """
    expires_at = datetime.fromtimestamp(session.expires_at, tz=UTC)
    await blacklist.revoke(session.token, expires_at)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        raise StorageError("Could not revoke token") from e
    logger.info(f"User {session.principal.user_id} logged out")
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    principal: Principal = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Get the current user's information."""
    user = await auth_service.get_user_by_id(principal.user_id)
    if user is None:
        # Deleted accounts answer exactly like forged tokens
        raise Rejected(RejectionReason.INVALID).to_error()
    return UserResponse.model_validate(user)
