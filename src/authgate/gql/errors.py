"""GraphQL error formatting.

Learn: Every error in a GraphQL response gets `extensions.code`:
- AuthGateError subclasses → their own code (+ `fields` for validation)
- PersistenceError → logged, reported as-is with PERSISTENCE_ERROR
- anything unexpected → logged, message masked as INTERNAL_SERVER_ERROR
  (unless debug is on, then ariadne's default output with the traceback)
- query syntax/validation errors → left as graphql-core formats them
"""

import structlog
from ariadne import format_error as default_format_error
from ariadne import unwrap_graphql_error
from graphql import GraphQLError

from authgate.errors import AuthGateError, ErrorCode, PersistenceError

logger = structlog.get_logger()


def format_error(error: GraphQLError, debug: bool = False) -> dict:
    formatted = default_format_error(error, debug)
    original = unwrap_graphql_error(error)

    if original is None or isinstance(original, GraphQLError):
        return formatted

    if isinstance(original, AuthGateError):
        if isinstance(original, PersistenceError):
            logger.error("graphql.persistence_error", path=error.path, error=str(original))
        formatted["message"] = original.message
        formatted["extensions"] = original.extensions
        return formatted

    logger.error(
        "graphql.unhandled_error",
        path=error.path,
        error_type=type(original).__name__,
        error=str(original),
    )
    if debug:
        formatted.setdefault("extensions", {})["code"] = str(
            ErrorCode.INTERNAL_SERVER_ERROR
        )
        return formatted
    formatted["message"] = "Internal server error"
    formatted["extensions"] = {"code": str(ErrorCode.INTERNAL_SERVER_ERROR)}
    return formatted
