"""
recordgate - FastAPI application.

Entry point and composition root: builds the collaborators (record
store, log sink, token issuer, client IP resolver) and registers the
API routes on a single FastAPI app.
"""
import gzip
import logging
import os
import shutil
import sys
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from recordgate import __version__
from recordgate.api.v1 import register_routes
from recordgate.core.activity_log import ActivityLogMiddleware
from recordgate.core.client_ip import ClientIPResolver
from recordgate.core.config import Settings, get_settings
from recordgate.core.errors import request_validation_handler
from recordgate.core.log_sink import LogSink
from recordgate.core.records import InMemoryRecordStore, RecordStore
from recordgate.core.security import TokenIssuer


# ── Logging setup (structlog) ────────────────────────────────────

_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
_BACKUP_COUNT = 5

# Short display names for the service's own loggers
_LOGGER_NAME_MAP = {
    "recordgate.core.database": "db",
    "recordgate.core.activity_log": "activity",
}


def _gzip_namer(default_name: str) -> str:
    return default_name + ".gz"


def _gzip_rotator(source: str, dest: str) -> None:
    """Compress the full log file into its backup slot."""
    with open(source, "rb") as f_in, gzip.open(dest, "wb") as f_out:
        shutil.copyfileobj(f_in, f_out)
    os.remove(source)


def _file_handler(log_dir: Path) -> RotatingFileHandler:
    """Size-rotated JSON log file, backups kept as recordgate.log.N.gz."""
    handler = RotatingFileHandler(
        str(log_dir / "recordgate.log"),
        maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8",
    )
    handler.namer = _gzip_namer
    handler.rotator = _gzip_rotator
    return handler


def _shorten_logger_name(_logger, _method_name: str, event_dict: dict) -> dict:
    """structlog processor: shorten logger names."""
    name = event_dict.get("logger", "")
    for prefix, short in _LOGGER_NAME_MAP.items():
        if name == prefix or name.startswith(prefix + "."):
            event_dict["logger"] = short
            return event_dict
    if "." in name:
        event_dict["logger"] = name.rsplit(".", 1)[-1]
    return event_dict


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Configure stdlib logging + structlog for the service."""
    settings = settings or get_settings()

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG)

    console_level = getattr(logging, settings.log_level, logging.INFO)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    # Console: colored output
    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _shorten_logger_name,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        foreign_pre_chain=shared_processors,
    ))
    root.addHandler(console)

    # File handler: JSON lines
    if settings.log_dir:
        log_dir = Path(settings.log_dir)
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = _file_handler(log_dir)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(structlog.stdlib.ProcessorFormatter(
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    _shorten_logger_name,
                    structlog.processors.JSONRenderer(),
                ],
                foreign_pre_chain=shared_processors,
            ))
            root.addHandler(file_handler)
        except OSError as exc:
            root.warning("Cannot create log files in %s (%s), logging to console only", log_dir, exc)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


logger = logging.getLogger("recordgate")


def _default_record_store(settings: Settings) -> RecordStore:
    if settings.database_enabled:
        from recordgate.core.database import PostgresRecordStore
        return PostgresRecordStore(
            settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            cache_ttl=settings.collection_cache_ttl,
        )
    logger.info("No DATABASE_URL, running with an in-memory record store")
    return InMemoryRecordStore()


# ── FastAPI app ───────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    logger.info("recordgate %s starting on %s:%s", __version__, settings.host, settings.port)

    store = app.state.record_store
    if not await store.connect():
        logger.warning("Record store connection failed, collection and record lookups will fail")

    yield

    await store.disconnect()
    logger.info("recordgate stopped")


def create_app(
    record_store: Optional[RecordStore] = None,
    log_sink: Optional[LogSink] = None,
    token_issuer: Optional[TokenIssuer] = None,
    client_ip_resolver: Optional[ClientIPResolver] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Collaborators default to the settings-driven implementations; tests
    pass their own.
    """
    settings = get_settings()

    app = FastAPI(
        title="recordgate",
        description="IP-range record authentication and remote log ingestion",
        version=__version__,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
        openapi_url="/api/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    app.add_exception_handler(RequestValidationError, request_validation_handler)

    cors_origins = [o for o in settings.cors_origins if o != "*"]
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type"],
        )
    app.add_middleware(ActivityLogMiddleware)

    register_routes(
        app,
        record_store=record_store or _default_record_store(settings),
        log_sink=log_sink or LogSink(),
        token_issuer=token_issuer or TokenIssuer.from_settings(settings),
        client_ip_resolver=client_ip_resolver or ClientIPResolver.from_settings(settings),
    )

    @app.get("/api/health", tags=["health"])
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok", "service": "recordgate", "version": __version__}

    return app


def run() -> None:
    """Run the service with uvicorn."""
    import uvicorn

    settings = get_settings()
    setup_logging(settings)
    uvicorn.run(
        create_app(),
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
