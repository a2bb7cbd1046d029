import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.api.v1 import calculations, config
from app.core.logging import RequestLoggingMiddleware, setup_logging
from app.models.database import dispose_engine

from engine.economics.errors import (
    CalculationError,
    ConfigurationError,
    TCOError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_ERROR_STATUS: dict[type[TCOError], int] = {
    ValidationError: 422,
    ConfigurationError: 422,
    CalculationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    setup_logging(json_format=settings.log_json)
    yield
    await dispose_engine()


async def tco_error_handler(request: Request, exc: TCOError) -> JSONResponse:
    """Map engine errors onto a stable JSON error body."""
    status_code = _ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    body: dict = {"error": {"code": exc.code, "message": str(exc)}}
    if isinstance(exc, ValidationError):
        body["error"]["violations"] = [v.as_dict() for v in exc.violations]

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "%s on %s: %s",
        exc.code,
        request.url.path,
        exc,
        extra={"error_code": exc.code, "path": str(request.url.path)},
    )
    return JSONResponse(status_code=status_code, content=body)


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(RequestLoggingMiddleware)
    application.add_exception_handler(TCOError, tco_error_handler)

    application.include_router(
        calculations.router, prefix="/api/v1/calculations", tags=["calculations"]
    )
    application.include_router(config.router, prefix="/api/v1/config", tags=["config"])

    @application.get("/health")
    async def health_check() -> dict:
        from app.models.database import get_session_factory

        result: dict = {"status": "ok", "services": {}}

        try:
            async with get_session_factory()() as session:
                await session.execute(text("SELECT 1"))
            result["services"]["database"] = "ok"
        except Exception as e:
            result["services"]["database"] = f"error: {e}"
            result["status"] = "degraded"

        return result

    return application


app = create_app()
