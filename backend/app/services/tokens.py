"""Signed, time-limited tokens for the auth and invite signing domains.

A ``TokenCodec`` wraps PyJWT with one secret key and one domain name. The
two codecs the application uses are built by ``build_token_codecs`` which
refuses to create them with a shared key: an auth token must never verify
as an invite token, and vice versa.
"""

import hashlib
import logging
import math
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import jwt
from jwt.exceptions import PyJWTError

logger = logging.getLogger(__name__)

AUTH_DOMAIN = "auth"
INVITE_DOMAIN = "invite"

# Claims managed by the codec itself; callers may not set them.
RESERVED_CLAIMS = frozenset({"iat", "exp", "jti", "typ"})

Clock = Callable[[], float]


class TokenError(Exception):
    """Base token error."""

    pass


class TokenExpiredError(TokenError):
    """Token was well-formed and signed, but is past its expiry."""

    pass


class InvalidTokenError(TokenError):
    """Token is unparseable, forged, or minted for another domain."""

    pass


@dataclass(frozen=True)
class IssuedToken:
    """A freshly minted token plus the timestamps baked into it."""

    token: str
    issued_at: int
    expires_at: int


@dataclass(frozen=True)
class VerifiedToken:
    """Claims recovered from a verified token."""

    claims: dict[str, Any]
    issued_at: int
    expires_at: int


def token_digest(token: str) -> str:
    """Deterministic SHA-256 hex digest of a raw token.

    Unsalted on purpose: the digest is a lookup key for the blacklist,
    not a password hash.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class TokenCodec:
    """Issue and verify JWTs for a single signing domain."""

    def __init__(
        self,
        domain: str,
        secret_key: str,
        algorithm: str = "HS256",
        clock: Clock = time.time,
    ):
        if not domain:
            raise ValueError("Token codec requires a domain name")
        if not secret_key:
            raise ValueError(f"Token codec for domain {domain!r} requires a secret key")
        self.domain = domain
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._clock = clock

    def __repr__(self) -> str:
        return f"<TokenCodec domain={self.domain!r} alg={self._algorithm}>"

    def issue(self, claims: dict[str, Any], ttl: timedelta) -> IssuedToken:
        """Sign ``claims`` with an issue time and ``now + ttl`` expiry."""
        if ttl <= timedelta(0):
            raise ValueError("Token TTL must be positive")
        clashing = RESERVED_CLAIMS.intersection(claims)
        if clashing:
            raise ValueError(f"Reserved claim names cannot be set by callers: {sorted(clashing)}")

        now = self._clock()
        issued_at = int(now)
        # NumericDate is whole seconds; round up so the token never dies before now + ttl
        expires_at = math.ceil(now + ttl.total_seconds())
        payload = {
            **claims,
            "iat": issued_at,
            "exp": expires_at,
            "typ": self.domain,
            # Two tokens with identical claims issued in the same second still differ
            "jti": secrets.token_hex(16),
        }
        token = jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
        # PyJWT 2.x returns str; older type stubs may declare bytes
        return IssuedToken(token=str(token), issued_at=issued_at, expires_at=expires_at)

    def decode(self, token: str) -> VerifiedToken:
        """Verify signature, domain and expiry; return the caller's claims.

        Raises TokenExpiredError once the current time is past ``exp`` and
        InvalidTokenError for everything else that is wrong with the token.
        Expiry is checked against the codec clock, not PyJWT's wall clock.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": ["iat", "exp", "typ"],
                },
            )
        except PyJWTError as e:
            raise InvalidTokenError(f"Invalid {self.domain} token: {e}") from e

        if payload.get("typ") != self.domain:
            raise InvalidTokenError(f"Not an {self.domain} token")

        expires_at = payload["exp"]
        issued_at = payload["iat"]
        if not isinstance(expires_at, int) or not isinstance(issued_at, int):
            raise InvalidTokenError(f"Invalid {self.domain} token: bad timestamps")

        if self._clock() > expires_at:
            raise TokenExpiredError(f"{self.domain.capitalize()} token has expired")

        claims = {k: v for k, v in payload.items() if k not in RESERVED_CLAIMS}
        return VerifiedToken(claims=claims, issued_at=issued_at, expires_at=expires_at)

    def verify(self, token: str) -> dict[str, Any]:
        """Return exactly the claim map passed to ``issue``."""
        return self.decode(token).claims


@dataclass(frozen=True)
class TokenCodecs:
    auth: TokenCodec
    invite: TokenCodec


def build_token_codecs(
    auth_secret: str,
    invite_secret: str,
    algorithm: str = "HS256",
    clock: Clock = time.time,
) -> TokenCodecs:
    """Create the auth and invite codecs, enforcing distinct keys."""
    if auth_secret == invite_secret:
        raise ValueError("Auth and invite signing domains must not share a key")
    return TokenCodecs(
        auth=TokenCodec(AUTH_DOMAIN, auth_secret, algorithm=algorithm, clock=clock),
        invite=TokenCodec(INVITE_DOMAIN, invite_secret, algorithm=algorithm, clock=clock),
    )
