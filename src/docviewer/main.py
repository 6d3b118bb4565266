"""Application entrypoint - aiohttp server for the document viewer API."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog
from aiohttp.web import Application, run_app

from docviewer.acl.service import AccessControlResolver
from docviewer.acl.store import DocumentStore
from docviewer.auth.session import SessionAuthority
from docviewer.auth.users import UserStore
from docviewer.batch.jobs import BatchJobReader
from docviewer.config import Settings, get_settings
from docviewer.documents.locator import DocumentLocator
from docviewer.web import (
    auth_middleware,
    cors_middleware,
    error_middleware,
    request_logging_middleware,
    routes,
)


# Processors applied to every event before rendering
SHARED_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def _handlers(
    log_file: str,
    max_bytes: int,
    backup_count: int,
) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            filename=log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        ))
    return handlers


def configure_logging(
    log_level: str = "INFO",
    log_file: str = "",
    log_file_max_bytes: int = 10_485_760,
    log_file_backup_count: int = 5,
) -> None:
    """Route structlog events through the root logger.

    The console always gets output. With `log_file` set, events also go to a
    size-rotated file and every line is rendered as JSON.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL; unknown names mean INFO
        log_file: Path to log file. Empty string = console only.
        log_file_max_bytes: Rotation threshold in bytes
        log_file_backup_count: Rotated files kept next to `log_file`
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.root
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    for handler in _handlers(log_file, log_file_max_bytes, log_file_backup_count):
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(handler)

    # http_request events already cover what aiohttp's access log prints
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

    renderer = structlog.processors.JSONRenderer() if log_file else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[*SHARED_PROCESSORS, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger()


def create_app(
    settings: Settings | None = None,
    session_authority: SessionAuthority | None = None,
) -> Application:
    """Create and configure the aiohttp application.

    Store files are loaded eagerly; a missing or invalid store fails startup
    instead of serving requests with an empty catalog.
    """
    settings = settings or get_settings()

    document_store = DocumentStore(settings.documents_config_path)
    logger.info("document_store_loaded", config_path=settings.documents_config_path)

    if session_authority is None:
        user_store = UserStore(settings.users_config_path)
        logger.info("user_store_loaded", config_path=settings.users_config_path)
        session_authority = SessionAuthority(
            user_store,
            ttl=settings.session_ttl,
            maxsize=settings.session_maxsize,
        )

    acl = AccessControlResolver(document_store)
    locator = DocumentLocator(
        acl,
        documents_root=settings.outputs_dir,
        batch_root=settings.batch_outputs_dir,
    )

    app = Application(middlewares=[
        request_logging_middleware,
        cors_middleware(settings.frontend_url),
        error_middleware,
        auth_middleware,
    ])
    app["settings"] = settings
    app["session_authority"] = session_authority
    app["document_store"] = document_store
    app["locator"] = locator
    app["batch_jobs"] = BatchJobReader(settings.batch_outputs_dir)

    app.router.add_routes(routes)

    return app


def main() -> None:
    """Run the API server."""
    settings = get_settings()
    configure_logging(
        log_level=settings.log_level,
        log_file=settings.log_file,
        log_file_max_bytes=settings.log_file_max_bytes,
        log_file_backup_count=settings.log_file_backup_count,
    )

    logger.info(
        "starting_api_server",
        host=settings.host,
        port=settings.port,
        outputs_dir=settings.outputs_dir,
        batch_outputs_dir=settings.batch_outputs_dir,
    )

    app = create_app(settings)
    run_app(app, host=settings.host, port=settings.port, print=None)


if __name__ == "__main__":
    main()
