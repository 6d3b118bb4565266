"""HTTP handlers for auth, catalog documents and batch jobs."""

import asyncio
import json
from datetime import datetime, timezone

import structlog
from aiohttp import web
from aiohttp.helpers import content_disposition_header

from docviewer.auth.models import Principal
from docviewer.auth.session import SessionAuthority
from docviewer.batch.jobs import BatchJobReader
from docviewer.documents.identifiers import BatchFileId, Identifier, classify
from docviewer.documents.locator import DocumentLocator, image_content_type
from docviewer.documents.models import Resource
from docviewer.errors import IdentifierRejected

logger = structlog.get_logger()

routes = web.RouteTableDef()


def _ok(data, **extra) -> web.Response:
    return web.json_response({"success": True, "data": data, **extra})


def _bad_request(message: str) -> web.Response:
    return web.json_response({"success": False, "error": "BadRequest", "message": message}, status=400)


def _principal_body(principal: Principal) -> dict:
    return {
        "id": principal.user_id,
        "username": principal.username,
        "displayName": principal.display_name,
        "groups": sorted(principal.group_ids),
        "isAdmin": principal.is_admin,
    }


async def _json_body(request: web.Request) -> dict:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return body if isinstance(body, dict) else {}


def _identifier(request: web.Request, key: str) -> Identifier:
    return classify(request.match_info[key])


def _batch_identifier(request: web.Request) -> BatchFileId:
    identifier = _identifier(request, "file_id")
    if not isinstance(identifier, BatchFileId):
        raise IdentifierRejected("Could not determine batch job ID from file ID")
    return identifier


# --- health ---

@routes.get("/health")
async def health(request: web.Request) -> web.Response:
    """Health check endpoint - no authentication required."""
    return web.json_response({
        "success": True,
        "message": "Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })


# --- auth ---

@routes.post("/api/auth/login")
async def login(request: web.Request) -> web.Response:
    body = await _json_body(request)
    username, password = body.get("username"), body.get("password")
    if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
        return _bad_request("Username and password are required")

    sessions: SessionAuthority = request.app["session_authority"]
    # bcrypt is CPU-bound; keep it off the event loop
    session = await asyncio.to_thread(sessions.login, username, password)
    principal = sessions.validate(session.token)

    return web.json_response({
        "success": True,
        "message": "Login successful",
        "data": {
            "sessionToken": session.token,
            "expiresAt": session.expires_at.isoformat(),
            "user": _principal_body(principal),
        },
    })


@routes.post("/api/auth/logout")
async def logout(request: web.Request) -> web.Response:
    sessions: SessionAuthority = request.app["session_authority"]
    sessions.logout(request.get("session_token"))
    return web.json_response({"success": True, "message": "Logout successful"})


@routes.get("/api/auth/me")
async def me(request: web.Request) -> web.Response:
    return _ok(_principal_body(request["principal"]))


@routes.post("/api/auth/validate")
async def validate(request: web.Request) -> web.Response:
    body = await _json_body(request)
    token = body.get("sessionToken")
    if not isinstance(token, str) or not token:
        return _bad_request("Session token is required")

    sessions: SessionAuthority = request.app["session_authority"]
    return _ok(_principal_body(sessions.validate(token)))


# --- catalog documents (batch file ids accepted too) ---

@routes.get("/api/documents")
async def list_documents(request: web.Request) -> web.Response:
    locator: DocumentLocator = request.app["locator"]
    documents = await locator.list_documents(request["principal"])
    return _ok([doc.model_dump(by_alias=True) for doc in documents], count=len(documents))


@routes.get("/api/documents/{document_id}")
async def get_document(request: web.Request) -> web.Response:
    identifier = _identifier(request, "document_id")
    locator: DocumentLocator = request.app["locator"]
    location = await locator.resolve(request["principal"], identifier, Resource.structure())
    return _ok(await locator.read_structure(location))


@routes.get("/api/documents/{document_id}/images")
async def list_document_images(request: web.Request) -> web.Response:
    identifier = _identifier(request, "document_id")
    locator: DocumentLocator = request.app["locator"]
    images = await locator.list_images(request["principal"], identifier)
    return _ok(images, count=len(images))


@routes.get("/api/documents/{document_id}/images/{image_name}")
async def get_document_image(request: web.Request) -> web.StreamResponse:
    identifier = _identifier(request, "document_id")
    image_name = request.match_info["image_name"]
    locator: DocumentLocator = request.app["locator"]
    location = await locator.resolve(request["principal"], identifier, Resource.image(image_name))
    return web.FileResponse(
        location.absolute_path,
        headers={"Content-Type": image_content_type(image_name)},
    )


# --- batch jobs ---

@routes.get("/api/batch_jobs")
async def list_batch_jobs(request: web.Request) -> web.Response:
    reader: BatchJobReader = request.app["batch_jobs"]
    jobs = await reader.list_batch_jobs()
    return _ok([job.model_dump() for job in jobs])


@routes.get("/api/batch_jobs/{batch_job_id}/status")
async def get_batch_job_status(request: web.Request) -> web.Response:
    reader: BatchJobReader = request.app["batch_jobs"]
    job = await reader.read_batch_job(request.match_info["batch_job_id"])
    return _ok(job.model_dump())


@routes.get("/api/batch_jobs/files/{file_id}/structure")
async def get_batch_file_structure(request: web.Request) -> web.Response:
    identifier = _batch_identifier(request)
    locator: DocumentLocator = request.app["locator"]
    location = await locator.resolve(request["principal"], identifier, Resource.structure())
    return _ok(await locator.read_structure(location))


@routes.get("/api/batch_jobs/files/{file_id}/images")
async def list_batch_file_images(request: web.Request) -> web.Response:
    identifier = _batch_identifier(request)
    locator: DocumentLocator = request.app["locator"]
    images = await locator.list_images(request["principal"], identifier)
    return _ok(images, count=len(images))


@routes.get("/api/batch_jobs/files/{file_id}/images/{image_name}")
async def get_batch_file_image(request: web.Request) -> web.StreamResponse:
    identifier = _batch_identifier(request)
    image_name = request.match_info["image_name"]
    locator: DocumentLocator = request.app["locator"]
    location = await locator.resolve(request["principal"], identifier, Resource.image(image_name))
    return web.FileResponse(
        location.absolute_path,
        headers={"Content-Type": image_content_type(image_name)},
    )


@routes.get("/api/batch_jobs/files/{file_id}/pdf")
async def get_batch_file_pdf(request: web.Request) -> web.StreamResponse:
    identifier = _batch_identifier(request)
    locator: DocumentLocator = request.app["locator"]
    location = await locator.resolve(request["principal"], identifier, Resource.pdf())
    return web.FileResponse(
        location.absolute_path,
        headers={
            "Content-Type": "application/pdf",
            "Content-Disposition": content_disposition_header("inline", filename=identifier.file_name),
        },
    )
