"""REST route aggregation.

Everything account-related goes through GraphQL (authgate.gql.app); the
REST side only carries operational endpoints.
"""

from fastapi import APIRouter

from authgate.api.health import router as health_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
