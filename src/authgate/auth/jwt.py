"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
- Access token: short-lived (15min), authorizes individual requests
- Refresh token: long-lived (7 days), only mints new access tokens
  and authenticates WebSocket handshakes

Each token class gets its own TokenSigner (secret + lifetime + type).
They never share a key, so a leaked refresh secret cannot forge access
tokens and vice versa. There is no revocation list: a token is valid
while its signature checks out and its expiry has not passed.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import jwt

from authgate.config import settings

ACCESS = "access"
REFRESH = "refresh"

HANDSHAKE_TOKEN_FIELD = "token"

# One message for every failure. Callers can't tell a bad signature
# from an expired token from garbage input.
_INVALID = "Invalid or expired token"


class TokenError(Exception):
    """Raised when token verification fails."""

    def __init__(self, message: str = _INVALID):
        super().__init__(message)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenPayload:
    """Decoded claims of a verified token."""

    subject: int
    display_name: str
    token_type: str
    issued_at: datetime
    expires_at: datetime


class TokenSigner:
    """A signing context: one secret, one lifetime, one token type.

    The clock is injectable so expiry can be checked at any instant
    without sleeping in tests.
    """

    def __init__(
        self,
        secret: str,
        lifetime: timedelta,
        token_type: str,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = utcnow,
    ):
        self.secret = secret
        self.lifetime = lifetime
        self.token_type = token_type
        self.algorithm = algorithm
        self.clock = clock

    def issue(self, subject: int, display_name: str = "") -> str:
        now = self.clock()
        payload = {
            "sub": str(subject),
            "name": display_name,
            "type": self.token_type,
            "iat": now,
            "exp": now + self.lifetime,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenPayload:
        """Verify signature, type and expiry. Raises TokenError on any failure."""
        payload = _decode(token, self.secret, self.algorithm)
        if payload.get("type") != self.token_type:
            raise TokenError()
        return _check_expiry(payload, self.clock())


def _decode(token: Any, secret: str, algorithm: str) -> dict:
    """Check the signature only; expiry is compared against our own clock."""
    if not isinstance(token, str) or not token:
        raise TokenError()
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={
                "verify_exp": False,
                "verify_iat": False,
                "require": ["sub", "exp", "iat"],
            },
        )
    except jwt.InvalidTokenError:
        raise TokenError()


def _check_expiry(payload: dict, now: datetime) -> TokenPayload:
    try:
        subject = int(payload["sub"])
        issued_at = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        raise TokenError()
    if now >= expires_at:
        raise TokenError()
    return TokenPayload(
        subject=subject,
        display_name=str(payload.get("name") or ""),
        token_type=str(payload.get("type") or ""),
        issued_at=issued_at,
        expires_at=expires_at,
    )


access_signer = TokenSigner(
    secret=settings.access_token_secret,
    lifetime=timedelta(minutes=settings.access_token_expire_minutes),
    token_type=ACCESS,
    algorithm=settings.jwt_algorithm,
)

refresh_signer = TokenSigner(
    secret=settings.refresh_token_secret,
    lifetime=timedelta(days=settings.refresh_token_expire_days),
    token_type=REFRESH,
    algorithm=settings.jwt_algorithm,
)


def create_access_token(subject: int, display_name: str = "") -> str:
    """Create a JWT access token."""
    return access_signer.issue(subject, display_name)


def create_refresh_token(subject: int, display_name: str = "") -> str:
    """Create a JWT refresh token."""
    return refresh_signer.issue(subject, display_name)


def verify_access_token(token: str) -> TokenPayload:
    return access_signer.verify(token)


def verify_refresh_token(token: str) -> TokenPayload:
    return refresh_signer.verify(token)


def verify_token(
    token: str,
    secret: str,
    algorithm: Optional[str] = None,
    now: Optional[datetime] = None,
) -> TokenPayload:
    """Verify a token against an arbitrary secret, whatever its type.

    Returns the payload on success.
    Raises TokenError on failure.
    """
    payload = _decode(token, secret, algorithm or settings.jwt_algorithm)
    return _check_expiry(payload, now or utcnow())


def extract_token_from_handshake(params: Any) -> Optional[str]:
    """Pull the token out of a connection-open payload, if there is one."""
    if not isinstance(params, dict):
        return None
    token = params.get(HANDSHAKE_TOKEN_FIELD)
    if not isinstance(token, str) or not token:
        return None
    return token
