"""aiohttp middlewares: request logging, error rendering, bearer auth, CORS."""

import time

import structlog
from aiohttp import web

from docviewer.auth.session import SessionAuthority
from docviewer.errors import DocViewerError, SessionInvalid

logger = structlog.get_logger()

BEARER_PREFIX = "Bearer "

# Paths reachable without a session
PUBLIC_PATHS = frozenset({
    "/health",
    "/api/auth/login",
    "/api/auth/validate",
})


def extract_bearer_token(request: web.Request) -> str | None:
    """Return the token from `Authorization: Bearer <token>`, or None."""
    authorization = request.headers.get("Authorization", "")
    if not authorization.startswith(BEARER_PREFIX):
        return None
    return authorization[len(BEARER_PREFIX):].strip() or None


def error_body(error: DocViewerError) -> dict:
    return {"success": False, "error": error.kind, "message": error.message}


@web.middleware
async def request_logging_middleware(request: web.Request, handler):
    started = time.perf_counter()
    status = 500
    try:
        response = await handler(request)
        status = response.status
        return response
    except web.HTTPException as e:
        status = e.status
        raise
    finally:
        logger.info(
            "http_request",
            method=request.method,
            path=request.path,
            status=status,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Render core errors as JSON envelopes."""
    try:
        return await handler(request)
    except DocViewerError as e:
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(e, SessionInvalid) else None
        return web.json_response(error_body(e), status=e.status, headers=headers)
    except web.HTTPException:
        raise
    except Exception:
        logger.exception("unhandled_request_error", method=request.method, path=request.path)
        return web.json_response(
            {"success": False, "error": "InternalError", "message": "Internal server error"},
            status=500,
        )


@web.middleware
async def auth_middleware(request: web.Request, handler):
    """Attach the caller's principal to the request for every non-public path."""
    if request.method == "OPTIONS" or request.path in PUBLIC_PATHS:
        return await handler(request)

    sessions: SessionAuthority = request.app["session_authority"]
    token = extract_bearer_token(request)
    principal = sessions.validate(token)

    request["principal"] = principal
    request["session_token"] = token
    return await handler(request)


def cors_middleware(allowed_origin: str):
    """Allow the configured frontend origin, with credentials."""

    @web.middleware
    async def middleware(request: web.Request, handler):
        if request.method == "OPTIONS":
            response = web.Response(status=204)
        else:
            response = await handler(request)

        origin = request.headers.get("Origin")
        if allowed_origin and origin == allowed_origin:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
            response.headers["Vary"] = "Origin"
        return response

    return middleware
