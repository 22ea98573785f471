import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes import agendamentos, manutencao
from app.api.routes import status as status_routes
from app.core.config import Settings, _ENV_FILE, settings as default_settings
from app.core.db import create_engine_from_settings
from app.core.exceptions import AgendaError
from app.services.database_store import DatabaseStore
from app.services.memory_store import MemoryStore
from app.services.store import AgendamentoStore

if os.getenv("ENV") != "production":
    logging.basicConfig(level=logging.DEBUG)
else:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}',
    )
logger = logging.getLogger(__name__)

_ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]


def build_store(settings: Settings) -> AgendamentoStore:
    if settings.uses_database:
        return DatabaseStore(create_engine_from_settings(settings))
    return MemoryStore(seed_sample_data=settings.seed_sample_data)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    store: AgendamentoStore = app.state.store
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    logger.info(
        "Agenda API starting: platform=%s storage=%s prefix=%r",
        settings.platform,
        store.backend_name,
        settings.route_prefix,
    )
    await store.startup()
    yield
    await store.shutdown()


def _cors_headers(settings: Settings, origin: str | None) -> dict[str, str]:
    """Add CORS headers to error responses so the browser doesn't block them."""
    origins = settings.cors_origins_list
    headers = {
        "Access-Control-Allow-Methods": ", ".join(_ALLOWED_METHODS),
        "Access-Control-Allow-Headers": "Content-Type",
    }
    if "*" in origins:
        headers["Access-Control-Allow-Origin"] = "*"
    elif origin and origin in origins:
        headers["Access-Control-Allow-Origin"] = origin
    elif origins:
        headers["Access-Control-Allow-Origin"] = origins[0]
    return headers


def _error(status_code: int, error: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error, **extra})


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Requisição inválida: " + "; ".join(parts)


def create_app(settings: Settings | None = None, store: AgendamentoStore | None = None) -> FastAPI:
    settings = settings or default_settings
    app = FastAPI(
        title="Agenda API",
        description="CRUD de agendamentos com backup e restauração",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store or build_store(settings)
    app.state.started_at = time.monotonic()

    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=_ALLOWED_METHODS,
        allow_headers=["Content-Type"],
    )

    prefix = settings.route_prefix
    app.include_router(status_routes.root_router)
    app.include_router(status_routes.router, prefix=prefix)
    app.include_router(agendamentos.router, prefix=prefix)
    app.include_router(manutencao.router, prefix=prefix)

    @app.exception_handler(AgendaError)
    async def agenda_error_handler(request: Request, exc: AgendaError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, _describe_validation_error(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return _error(
                status.HTTP_404_NOT_FOUND,
                "Endpoint não encontrado",
                message="Verifique a documentação da API",
                path=request.url.path,
                method=request.method,
            )
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Return actual error in JSON; include CORS so 500 responses are not blocked by browser."""
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": f"{type(exc).__name__}: {exc}"},
            headers=_cors_headers(settings, request.headers.get("origin")),
        )

    return app

