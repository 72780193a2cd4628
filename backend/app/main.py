"""FastAPI application factory wiring routes, services, and shared state."""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.api import routes_health, routes_users
from app.api.errors import validation_exception_handler
from app.core.config import Settings, get_settings
from app.core.db import Database, get_database
from app.models import user  # noqa: F401 - ensure models are registered
from app.repositories.user_repository import UserRepository
from app.services.user_service import UserService


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    # Initialize persistence and services; a failed bootstrap aborts startup
    database = database or get_database()
    database.init_schema()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        database.close()

    app = FastAPI(title="User Accounts Backend", version="0.1.0", lifespan=lifespan)
    app.state.database = database
    app.state.user_service = UserService(UserRepository())

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(routes_users.router)
    app.include_router(routes_health.router)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = (time.perf_counter() - start) * 1000
        logging.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed)
        return response

    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run("app.main:create_app", factory=True, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
