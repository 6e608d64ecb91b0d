"""
FastAPI application -- deal-tracking API server.

Run locally:
    uvicorn dealtracker.app:app --reload --port 8000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from dealtracker import config
from dealtracker.database import create_engine, create_sessionmaker, init_db
from dealtracker.errors import ApiError
from dealtracker.llm_client import LLMClient
from dealtracker.routes import messages, shortlist, startups, threshold_issues

logger = logging.getLogger(__name__)


def _configure_logging():
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# ---------------------------------------------------------------------------
# Error responses
# ---------------------------------------------------------------------------

async def _api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    fields = {}
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        fields[loc or "body"] = err.get("msg", "invalid value")
    return JSONResponse(status_code=400, content={"error": "Invalid request", "fields": fields})


async def _storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Storage error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "Storage operation failed"})


async def _unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

def create_app(database_url: Optional[str] = None, llm_client: Optional[LLMClient] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = create_engine(database_url or config.DATABASE_URL)
        await init_db(engine)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)

        app.state.llm_client = llm_client or LLMClient()
        if not app.state.llm_client.is_ready:
            logger.info("LLM_API_KEY not set -- message generation disabled")

        logger.info("Database ready (%s)", engine.url.render_as_string(hide_password=True))
        yield

        if llm_client is None:
            await app.state.llm_client.aclose()
        await engine.dispose()

    app = FastAPI(
        title="Deal Tracker API",
        version="1.0.0",
        description="Venture deal tracking -- startups, ranks, shortlists, threshold issues",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, _storage_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    app.include_router(startups.router)
    app.include_router(shortlist.router)
    app.include_router(threshold_issues.router)
    app.include_router(messages.router)

    @app.get("/health")
    async def health(request: Request):
        """Health check endpoint."""
        return {
            "status": "ok",
            "llm_ready": request.app.state.llm_client.is_ready,
        }

    return app


_configure_logging()
app = create_app()
