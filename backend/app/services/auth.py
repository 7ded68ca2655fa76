"""Account service: credential verification, registration, login tokens."""

import logging
from dataclasses import dataclass
from datetime import timedelta

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import settings
from app.core.exceptions import ConflictError
from app.models.user import User
from app.services.tokens import IssuedToken, TokenCodec

logger = logging.getLogger(__name__)

# Argon2id; cost factors are tunable through settings
ph = PasswordHasher(
    time_cost=settings.password_hash_time_cost,
    memory_cost=settings.password_hash_memory_cost,
    parallelism=settings.password_hash_parallelism,
    hash_len=32,
    salt_len=16,
)

# Verified against when the email is unknown so both paths cost the same
_DUMMY_HASH = ph.hash("spectrum-sync-dummy-password")


class AuthError(Exception):
    """Base authentication error."""

    pass


class InvalidCredentialsError(AuthError):
    """Invalid email or password."""

    pass


@dataclass(frozen=True)
class Principal:
    """The authenticated actor attached to a request."""

    user_id: int
    role: str | None = None


def hash_password(password: str) -> str:
    """Hash a password using Argon2id with a fresh random salt."""
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash. Never raises on bad input."""
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def auth_token_ttl() -> timedelta:
    return timedelta(minutes=settings.auth_token_expire_minutes)


def issue_auth_token(codec: TokenCodec, user: User) -> IssuedToken:
    """Mint a bearer token for ``user`` in the auth signing domain."""
    claims: dict[str, object] = {"userId": user.id}
    if user.role:
        claims["role"] = user.role
    return codec.issue(claims, auth_token_ttl())


class AuthService:
    """Service for account operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self.session.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: int) -> User | None:
        return await self.session.get(User, user_id)

    async def user_exists(self, user_id: int) -> bool:
        return await self.get_user_by_id(user_id) is not None

    async def register(self, username: str, email: str, password: str) -> User:
        """Create a new user account."""
        email = email.lower()
        if await self.get_user_by_email(email) is not None:
            logger.warning("Registration rejected: email already registered")
            raise ConflictError("User already exists")

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
        )
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration of the same email
            await self.session.rollback()
            raise ConflictError("User already exists") from e
        await self.session.refresh(user)

        logger.info(f"Registered user {user.id}")
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Authenticate a user and return the user object.

        Raises InvalidCredentialsError for both "user not found" and
        "wrong password" to prevent user enumeration.
        """
        user = await self.get_user_by_email(email)

        if user is None:
            verify_password(password, _DUMMY_HASH)
            raise InvalidCredentialsError("Invalid credentials")

        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError("Invalid credentials")

        return user
