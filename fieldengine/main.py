"""FastAPI application factory for the field engine service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from fieldengine.config import AppConfig, load_config
from fieldengine.db.base import get_engine
from fieldengine.http.problem import (
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from fieldengine.http.request_id import RequestIdMiddleware
from fieldengine.logging_setup import configure_logging
from fieldengine.logic.context import FieldContext
from fieldengine.logic.graphql_adapter import GraphQLPersistenceAdapter
from fieldengine.logic.messages import format_error
from fieldengine.logic.persistence import PersistenceAdapter
from fieldengine.logic.repository_answers import SqlPersistenceAdapter
from fieldengine.routes import api_router

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def build_adapter(config: AppConfig) -> PersistenceAdapter:
    """Return the persistence adapter selected by ``config.persistence.backend``."""
    if config.persistence.backend == "graphql":
        logger.info("persistence.backend=graphql url=%s", config.persistence.graphql_url)
        return GraphQLPersistenceAdapter(
            config.persistence.graphql_url, timeout=config.persistence.timeout_seconds
        )
    logger.info("persistence.backend=sql")
    return SqlPersistenceAdapter(get_engine(config.database.dsn))


def create_app(config: Optional[AppConfig] = None, adapter: Optional[PersistenceAdapter] = None) -> FastAPI:
    configure_logging()
    config = config or load_config()
    adapter = adapter or build_adapter(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        close = getattr(adapter, "aclose", None)
        if close is not None:
            await close()

    app = FastAPI(title="Field Engine", version="0.1.0", lifespan=lifespan)
    app.state.config = config
    app.state.field_context = FieldContext(adapter=adapter, formatter=format_error, locale=config.locale)

    app.add_middleware(RequestIdMiddleware)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.include_router(api_router, prefix=API_PREFIX)

    @app.get("/health", include_in_schema=False)
    def health() -> dict:
        return {"status": "ok", "backend": config.persistence.backend}

    return app


__all__ = ["create_app", "build_adapter", "API_PREFIX"]
