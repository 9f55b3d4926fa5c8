"""FastAPI application factory.

Learn: App factory pattern: create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (Redis, database engine).
Middleware, CORS, GraphQL routes and the avatar static mount are all
registered here.
"""

from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from authgate import __version__
from authgate.api import api_router
from authgate.config import settings
from authgate.gql.app import router as graphql_router
from authgate.storage.avatars import AvatarStorage

logger = structlog.get_logger()

UPLOADS_MOUNT = "/uploads"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "authgate.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    from authgate.redis_pool import close_redis, init_redis
    try:
        await init_redis()
        logger.info("authgate.redis_connected", url=settings.redis_url)
    except Exception as e:
        logger.warning("authgate.redis_unavailable", error=str(e))
        # Redis is optional; the app works without rate limiting

    yield

    logger.info("authgate.shutdown")
    await close_redis()

    from authgate.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="authgate",
        description="GraphQL account backend: registration, login, cookie tokens, profiles",
        version=__version__,
        lifespan=lifespan,
    )

    upload_root = Path(settings.upload_dir)
    app.state.avatar_storage = AvatarStorage(
        root=upload_root,
        public_url=settings.public_url,
        max_file_size=settings.upload_max_file_size,
        chunk_size=settings.upload_chunk_size,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from authgate.middleware.rate_limit import RateLimitMiddleware
    from authgate.middleware.request_id import RequestIdMiddleware
    from authgate.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RateLimitMiddleware, default_rpm=settings.rate_limit_rpm)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,  # auth rides on cookies
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=[
            "Accept",
            "Authorization",
            "Content-Type",
            "X-Requested-With",
            "X-Request-ID",
            "Apollo-Require-Preflight",
        ],
    )

    app.include_router(api_router)
    app.include_router(graphql_router)

    # Uploaded avatars, served back at <public_url>/<uuid>/<filename>
    app.mount(
        UPLOADS_MOUNT,
        StaticFiles(directory=upload_root, check_dir=False),
        name="uploads",
    )

    return app


# Default app instance (used by uvicorn: authgate.main:app)
app = create_app()
