"""HTTP layer."""

from docviewer.web.middleware import (
    auth_middleware,
    cors_middleware,
    error_middleware,
    request_logging_middleware,
)
from docviewer.web.routes import routes

__all__ = [
    "auth_middleware",
    "cors_middleware",
    "error_middleware",
    "request_logging_middleware",
    "routes",
]
