"""Resolvers — thin adapters from GraphQL arguments to services.

Learn: Each resolver pulls what it needs out of info.context (db
session, pending cookies, request, identity) and hands off to a
service. No business rules live here; only argument unpacking and the
@login_required guard on the operations that need a signed-in user.
"""

from datetime import datetime

from ariadne import MutationType, QueryType, ScalarType, SubscriptionType, upload_scalar

from authgate.auth.cookies import REFRESH_COOKIE
from authgate.auth.guard import login_required
from authgate.errors import BadRequestError, UnauthorizedError
from authgate.middleware.rate_limit import enforce_auth_rate_limit
from authgate.services.auth_service import AuthService
from authgate.services.profile_service import ProfileService
from authgate.services.user_store import UserStore

query = QueryType()
mutation = MutationType()
subscription = SubscriptionType()
datetime_scalar = ScalarType("DateTime")


@datetime_scalar.serializer
def serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _auth_service(info) -> AuthService:
    return AuthService(info.context["db"], info.context["cookies"])


# ─── Queries ────────────────────────────────────────────


@query.field("hello")
async def resolve_hello(*_):
    return "hello"


@query.field("me")
@login_required
async def resolve_me(_, info):
    user = await UserStore(info.context["db"]).find_by_id(
        info.context["identity"].user_id
    )
    if user is None:
        raise BadRequestError("User no longer exists")
    return user


# ─── Auth mutations ─────────────────────────────────────


@mutation.field("register")
async def resolve_register(_, info, register_input):
    await enforce_auth_rate_limit(info.context["request"])
    return await _auth_service(info).register(register_input)


@mutation.field("login")
async def resolve_login(_, info, login_input):
    await enforce_auth_rate_limit(info.context["request"])
    return await _auth_service(info).login(login_input)


@mutation.field("refreshToken")
async def resolve_refresh_token(_, info):
    request = info.context["request"]
    return await _auth_service(info).refresh(request.cookies.get(REFRESH_COOKIE))


@mutation.field("logout")
async def resolve_logout(_, info):
    return _auth_service(info).logout()


# ─── Profile ────────────────────────────────────────────


@mutation.field("updateProfile")
@login_required
async def resolve_update_profile(_, info, fullname=None, file=None):
    service = ProfileService(info.context["db"], info.context["storage"])
    return await service.update_profile(
        info.context["identity"].user_id,
        fullname=fullname,
        upload=file,
    )


# ─── Subscriptions ──────────────────────────────────────


@subscription.source("session")
async def session_source(_, info):
    """Yield the connection's identity once.

    The identity was verified by the handshake authenticator when the
    connection opened; nothing is re-verified here.
    """
    identity = info.context.get("identity")
    if identity is None:
        raise UnauthorizedError()
    yield identity


@subscription.field("session")
def resolve_session(identity, info):
    return identity


bindables = [query, mutation, subscription, datetime_scalar, upload_scalar]
