"""Authentication and authorization.

Learn: Two tokens, two signing contexts, two checks:
1. Access token (cookie) → @login_required guard on individual resolvers
2. Refresh token (cookie) → minting new access tokens, and
   (connection_init payload) → WebSocket handshake authenticator

Both resolve to a CurrentIdentity carrying the user id.
"""
