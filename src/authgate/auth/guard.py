"""Per-operation auth guard for GraphQL resolvers.

Learn: @login_required wraps a resolver and runs before its body:
1. Read the access_token cookie from the HTTP request
2. Verify it with the access-token signer
3. Put the CurrentIdentity into info.context["identity"]

Missing cookie or any verification failure raises UnauthorizedError and
the resolver never runs. Only resolvers that carry the decorator are
guarded; everything else (register, login, ...) is open.
"""

import functools
from typing import Optional

import structlog

from authgate.auth.cookies import ACCESS_COOKIE
from authgate.auth.jwt import TokenError, TokenPayload, verify_access_token
from authgate.errors import UnauthorizedError

logger = structlog.get_logger()


class CurrentIdentity:
    """Represents the authenticated user behind a request or connection.

    Learn: Built from a verified token's claims. Downstream code reads
    user_id from here instead of re-reading cookies or tokens.
    """

    def __init__(self, user_id: int, display_name: str = ""):
        self.user_id = user_id
        self.display_name = display_name

    @classmethod
    def from_payload(cls, payload: TokenPayload) -> "CurrentIdentity":
        return cls(user_id=payload.subject, display_name=payload.display_name)

    def __repr__(self) -> str:
        return f"CurrentIdentity(user_id={self.user_id!r})"


def authenticate_request(request) -> CurrentIdentity:
    """Verify the access_token cookie on `request`. Raises UnauthorizedError."""
    token: Optional[str] = request.cookies.get(ACCESS_COOKIE) if request else None
    if not token:
        logger.info("guard.rejected", reason="missing_token")
        raise UnauthorizedError()
    try:
        payload = verify_access_token(token)
    except TokenError:
        logger.info("guard.rejected", reason="invalid_token")
        raise UnauthorizedError()
    return CurrentIdentity.from_payload(payload)


def login_required(resolver):
    """Decorator: run `resolver` only for a request with a valid access token."""

    @functools.wraps(resolver)
    async def wrapper(obj, info, **kwargs):
        info.context["identity"] = authenticate_request(info.context.get("request"))
        return await resolver(obj, info, **kwargs)

    return wrapper
