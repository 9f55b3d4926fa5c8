"""Auth service — registration, login, refresh, logout.

Learn: Service layer separates business logic from the GraphQL resolvers.
Resolvers unpack arguments and call into here; this class talks to the
user store and the token signers, and records cookie writes on the
per-request ResponseCookies.

Token lifecycle:
1. register / login → issue access + refresh tokens, set both cookies
2. refreshToken     → verify refresh cookie, issue a new access token only
3. logout           → clear both cookies (nothing to revoke server-side)
"""

from typing import Any, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.auth.cookies import ACCESS_COOKIE, REFRESH_COOKIE, ResponseCookies
from authgate.auth.jwt import (
    TokenError,
    access_signer,
    create_access_token,
    create_refresh_token,
    refresh_signer,
    verify_refresh_token,
)
from authgate.auth.password import hash_password, verify_password
from authgate.db.models import User
from authgate.errors import (
    BadRequestError,
    ConflictError,
    UnauthorizedError,
    ValidationError,
)
from authgate.schemas.auth import LoginInput, RegisterInput, parse_input
from authgate.services.user_store import UserStore

logger = structlog.get_logger()

LOGOUT_MESSAGE = "Successfully logged out"


class AuthService:
    """Business logic for the account token lifecycle."""

    def __init__(self, db: AsyncSession, cookies: ResponseCookies):
        self.users = UserStore(db)
        self.cookies = cookies

    # ─── Register ───────────────────────────────────────

    async def register(self, data: dict[str, Any]) -> dict[str, User]:
        body = parse_input(RegisterInput, data)
        if body.password != body.confirm_password:
            raise ValidationError(
                {"confirmPassword": "Password and confirm password don't match"}
            )

        # Cheap early answer; the unique constraint still settles races.
        if await self.users.find_by_email(body.email):
            raise ConflictError()

        user = await self.users.create(
            fullname=body.fullname,
            email=body.email,
            password_hash=hash_password(body.password),
        )
        self._issue_tokens(user)
        logger.info("auth.registered", user_id=user.id)
        return {"user": user}

    # ─── Login ──────────────────────────────────────────

    async def login(self, data: dict[str, Any]) -> dict[str, User]:
        body = parse_input(LoginInput, data)
        user = await self.users.find_by_email(body.email)

        # Same error for unknown email and wrong password
        if not user or not verify_password(body.password, user.password):
            logger.info("auth.login_failed")
            raise UnauthorizedError("Invalid credentials")

        self._issue_tokens(user)
        logger.info("auth.logged_in", user_id=user.id)
        return {"user": user}

    # ─── Refresh ────────────────────────────────────────

    async def refresh(self, refresh_token: Optional[str]) -> str:
        """Mint a new access token from the refresh cookie.

        The refresh token itself is left alone. It keeps its original
        expiry, so a session can't be extended forever by refreshing.
        """
        if not refresh_token:
            raise UnauthorizedError("Refresh token not found")
        try:
            payload = verify_refresh_token(refresh_token)
        except TokenError:
            logger.info("auth.refresh_rejected")
            raise UnauthorizedError("Invalid or expired refresh token")

        user = await self.users.find_by_id(payload.subject)
        if not user:
            raise BadRequestError("User no longer exists")

        access_token = create_access_token(user.id, user.fullname)
        self.cookies.set(ACCESS_COOKIE, access_token, _seconds(access_signer))
        logger.info("auth.token_refreshed", user_id=user.id)
        return access_token

    # ─── Logout ─────────────────────────────────────────

    def logout(self) -> str:
        self.cookies.delete(ACCESS_COOKIE)
        self.cookies.delete(REFRESH_COOKIE)
        return LOGOUT_MESSAGE

    def _issue_tokens(self, user: User) -> None:
        self.cookies.set(
            ACCESS_COOKIE,
            create_access_token(user.id, user.fullname),
            _seconds(access_signer),
        )
        self.cookies.set(
            REFRESH_COOKIE,
            create_refresh_token(user.id, user.fullname),
            _seconds(refresh_signer),
        )


def _seconds(signer) -> int:
    return int(signer.lifetime.total_seconds())
