"""WebSocket handshake authenticator for GraphQL subscriptions.

Learn: A subscription connection is authenticated once, when it opens,
not per message. The client sends its refresh token in the
connection_init payload ({"token": "..."}). Cookies aren't read here.

This is a different check from the per-request guard: it runs at
connection open instead of per operation, and verifies with the
refresh secret instead of the access secret. On failure the
connection is refused outright; on success the identity is pinned to
the connection scope and every subscription on it reads it from there.
"""

import structlog
from ariadne.exceptions import WebSocketConnectionError

from authgate.auth.guard import CurrentIdentity
from authgate.auth.jwt import (
    TokenError,
    extract_token_from_handshake,
    verify_refresh_token,
)

logger = structlog.get_logger()

IDENTITY_SCOPE_KEY = "identity"


def verify_handshake(payload) -> CurrentIdentity:
    """Resolve the identity for a connection_init payload.

    Raises WebSocketConnectionError when the token is missing or invalid.
    """
    token = extract_token_from_handshake(payload)
    if token is None:
        logger.info("handshake.rejected", reason="missing_token")
        raise WebSocketConnectionError({"message": "Authentication required"})
    try:
        return CurrentIdentity.from_payload(verify_refresh_token(token))
    except TokenError:
        logger.info("handshake.rejected", reason="invalid_token")
        raise WebSocketConnectionError({"message": "Invalid or expired token"})


async def authenticate_connection(websocket, payload) -> None:
    """ariadne on_connect hook: binds the identity to the connection."""
    identity = verify_handshake(payload)
    websocket.scope[IDENTITY_SCOPE_KEY] = identity
    logger.info("handshake.accepted", user_id=identity.user_id)
