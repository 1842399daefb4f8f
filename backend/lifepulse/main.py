from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from .database import Settings, donor_store, get_settings
from .exceptions import RequestShapeError
from .models.donor import ErrorResponse
from .routers import donations, health
from .utils.logging import configure_logging
from .utils.security import SecurityHeadersMiddleware


async def handle_request_shape_error(request: Request, exc: RequestShapeError) -> JSONResponse:
    logger.info("Rejected {} {}: {}", request.method, request.url.path, exc.message)
    return JSONResponse(ErrorResponse(message=exc.message).model_dump(exclude_none=True), status_code=exc.status_code)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with donor_store(settings) as repository:
            app.state.donor_repository = repository
            logger.info("LifePulse API ready")
            yield

    app = FastAPI(title="LifePulse API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_exception_handler(RequestShapeError, handle_request_shape_error)

    app.include_router(health.router)
    app.include_router(donations.router)
    return app


app = create_app()


def run() -> None:
    settings = app.state.settings
    configure_logging(settings.log_level)
    logger.info("LifePulse API listening on http://{}:{}", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
