"""GraphQL ASGI wiring: executable schema, context, HTTP + WebSocket routes.

Learn: ariadne's GraphQL app is driven from ordinary FastAPI routes, so
the database session comes from the same get_db dependency as any other
route. Request flow for POST /graphql:
1. Multipart bodies are parsed first, with a hard file-count cap and a
   byte cap counted while the body is still arriving
2. db session + an empty ResponseCookies are stashed on request.state
3. ariadne executes the operation (resolvers read both from the context)
4. Cookie operations recorded by resolvers are applied to the response

WebSocket connections speak graphql-transport-ws; the handshake
authenticator runs as the on_connect hook.
"""

from ariadne import make_executable_schema
from ariadne.asgi import GraphQL
from ariadne.asgi.handlers import GraphQLHTTPHandler, GraphQLTransportWSHandler
from fastapi import APIRouter, Depends, Request, WebSocket
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.types import Message, Receive

from authgate.auth.cookies import ResponseCookies
from authgate.auth.handshake import IDENTITY_SCOPE_KEY, authenticate_connection
from authgate.config import settings
from authgate.db.engine import get_db
from authgate.errors import UploadTooLargeError
from authgate.gql.errors import format_error
from authgate.gql.resolvers import bindables
from authgate.gql.schema import type_defs

# Room for the operations/map parts and the multipart framing.
MULTIPART_OVERHEAD = 64 * 1024

schema = make_executable_schema(type_defs, *bindables, convert_names_case=True)


def get_context_value(request, data=None) -> dict:
    """Build the per-operation context for HTTP requests and WebSockets alike."""
    state = request.state
    cookies = getattr(state, "cookies", None)
    if cookies is None:
        cookies = ResponseCookies()
    return {
        "request": request,
        "db": getattr(state, "db", None),
        "cookies": cookies,
        "storage": getattr(request.app.state, "avatar_storage", None),
        "identity": request.scope.get(IDENTITY_SCOPE_KEY),
    }


graphql_app = GraphQL(
    schema,
    context_value=get_context_value,
    debug=settings.debug,
    error_formatter=format_error,
    http_handler=GraphQLHTTPHandler(),
    websocket_handler=GraphQLTransportWSHandler(
        on_connect=authenticate_connection,
    ),
)

router = APIRouter()


# ─── Multipart limits ───────────────────────────────────


def multipart_body_limit(storage) -> int:
    return storage.max_file_size * settings.upload_max_files + MULTIPART_OVERHEAD


def bounded_receive(receive: Receive, limit: int) -> Receive:
    """Wrap an ASGI receive so the body stops once `limit` bytes arrive."""
    received = 0

    async def receive_within_limit() -> Message:
        nonlocal received
        message = await receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > limit:
                raise UploadTooLargeError(f"Request body exceeds {limit} bytes")
        return message

    return receive_within_limit


def _too_large(error: UploadTooLargeError) -> JSONResponse:
    return JSONResponse(
        status_code=413,
        content={
            "data": None,
            "errors": [{"message": error.message, "extensions": error.extensions}],
        },
    )


async def _parse_multipart(request: Request) -> Request:
    """Parse the form up front; ariadne reuses the cached form afterwards."""
    limit = multipart_body_limit(request.app.state.avatar_storage)

    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise UploadTooLargeError(f"Request body exceeds {limit} bytes")

    request = Request(request.scope, receive=bounded_receive(request.receive, limit))
    await request.form(max_files=settings.upload_max_files)
    return request


# ─── Routes ─────────────────────────────────────────────


@router.get("/graphql")
async def graphql_explorer(request: Request):
    return await graphql_app.handle_request(request)


@router.post("/graphql")
async def graphql_http(request: Request, db: AsyncSession = Depends(get_db)):
    if request.headers.get("content-type", "").startswith("multipart/form-data"):
        try:
            request = await _parse_multipart(request)
        except UploadTooLargeError as e:
            return _too_large(e)

    request.state.db = db
    request.state.cookies = ResponseCookies()
    response = await graphql_app.handle_request(request)
    return request.state.cookies.apply(response)


@router.websocket("/graphql")
async def graphql_websocket(websocket: WebSocket):
    await graphql_app.handle_websocket(websocket)
