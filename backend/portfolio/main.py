"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware

from portfolio.api.envelope import failure
from portfolio.api.v1 import router as api_v1_router
from portfolio.config import get_settings
from portfolio.dependencies.services import Services, get_search_engine, get_services
from portfolio.errors import PortfolioError
from portfolio.models.base import Base, get_engine

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    logger.info("Starting %s...", settings.app_name)
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables verified")

    search_engine = get_search_engine()
    try:
        await search_engine.ensure_index()
        logger.info("Search index %s verified", settings.opensearch_index)
    except Exception as e:
        # Search outages degrade the service; reindex_all_projects restores it
        logger.error("Could not verify search index: %s", e)

    yield
    logger.info("Shutting down...")
    await search_engine.close()
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Recommendations, search and analytics for creator portfolios",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(GZipMiddleware, minimum_size=500)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PortfolioError)
async def portfolio_error_handler(request: Request, exc: PortfolioError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=failure(exc.code, exc.message, getattr(exc, "details", None)),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=failure("VALIDATION_ERROR", "Invalid request parameters", details),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    return JSONResponse(status_code=exc.status_code, content=failure(code, str(exc.detail)))


app.include_router(api_v1_router)


@app.get("/health")
async def health_check(services: Services = Depends(get_services)):
    """Advisory health of the store and search engine."""
    health = await services.orchestrator.health_check()
    status_code = 503 if health["status"] == "unhealthy" else 200
    return JSONResponse(status_code=status_code, content=health)
