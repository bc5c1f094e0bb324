"""FastAPI application wiring for the casais API."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool, PoolTimeout
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import router as api_router
from .config import Settings, get_settings
from .domain.casal_service import CasalService, CasalSimpleService
from .domain.evento_service import EventoService
from .domain.service import AccountService
from .logging_config import setup_logging
from .media import MediaBridge, build_media_bridge
from .repository import (
    AccountRepository,
    CasalRepository,
    CasalSimpleRepository,
    EventoRepository,
    ensure_schema,
)
from .security.gate import access_gate
from .security.rate_limiter import RateLimiter, build_rate_limiter
from .security.tokens import TokenService

logger = logging.getLogger(__name__)

Lifespan = Callable[[FastAPI], Any]


def install_services(
    app: FastAPI,
    *,
    accounts: AccountRepository,
    casais: CasalRepository,
    casais_simples: CasalSimpleRepository,
    eventos: EventoRepository,
    media: MediaBridge,
    rate_limiter: RateLimiter | None = None,
) -> None:
    """Build the domain services on top of the given stores and attach them to ``app.state``."""
    settings: Settings = app.state.settings
    account_service = AccountService(accounts, app.state.tokens)
    app.state.media = media
    app.state.account_service = account_service
    app.state.casal_service = CasalService(casais, media, account_service)
    app.state.casal_simple_service = CasalSimpleService(casais_simples)
    app.state.evento_service = EventoService(eventos)
    app.state.rate_limiter = rate_limiter or build_rate_limiter(settings)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the Postgres pool and build the services for the app lifecycle."""
    settings: Settings = app.state.settings
    if not settings.database_url:
        logger.error("DATABASE_URL not set, refusing to start")
        raise SystemExit(1)

    pool = ConnectionPool(settings.database_url, open=False)
    try:
        pool.open(wait=True)
    except PoolTimeout as exc:
        logger.error("could not connect to the database: %s", exc)
        raise SystemExit(1) from exc
    logger.info("database connected")

    ensure_schema(pool)
    app.state.pool = pool
    install_services(
        app,
        accounts=AccountRepository(pool),
        casais=CasalRepository(pool),
        casais_simples=CasalSimpleRepository(pool),
        eventos=EventoRepository(pool),
        media=build_media_bridge(settings),
    )
    try:
        yield
    finally:
        pool.close()


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Requisição inválida."
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    if first.get("type") == "extra_forbidden":
        return f"Campo não permitido: {field}"
    if first.get("type") == "missing":
        return f"Campo obrigatório: {field}"
    return f"{field}: {first.get('msg', 'valor inválido')}" if field else first.get("msg", "Requisição inválida.")


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": False, "errorMessage": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"status": False, "errorMessage": _describe_validation_error(exc)},
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"status": False, "errorMessage": "Algo deu errado no servidor."},
    )


def create_app(settings: Settings | None = None, *, lifespan: Lifespan | None = lifespan) -> FastAPI:
    """Create the FastAPI application.

    Tests pass ``lifespan=None`` and call :func:`install_services` with
    in-memory stores instead of opening a database pool.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        lifespan=lifespan,
        dependencies=[Depends(access_gate)],
    )
    app.state.settings = settings
    app.state.tokens = TokenService(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)

    @app.get("/", tags=["health"])
    def root() -> dict[str, Any]:
        return {"status": True, "title": "APIs rodando"}

    @app.get("/healthz", tags=["health"])
    def healthz() -> dict[str, bool]:
        """Return a minimal readiness indicator used by orchestration systems."""
        return {"status": True}

    @app.get("/metrics", tags=["health"])
    def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(api_router)
    return app


app = create_app()
