"""SetlistScout API layer: routes, schemas and middleware."""

from setlistscout.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from setlistscout.api.routes import router
from setlistscout.api.schemas import (
    AcceptedResponse,
    ErrorResponse,
    HealthResponse,
    SearchRequest,
    SearchWithUpdatesRequest,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "AcceptedResponse",
    "ErrorResponse",
    "HealthResponse",
    "SearchRequest",
    "SearchWithUpdatesRequest",
]
