"""
FastAPI application entry point.

Sets up the app, lifespan (DB connect/disconnect, verifier, services), CORS,
logging, middleware, exception handlers and the API routers.

Process-wide handles (Mongo client, token verifier, services, rate limiter) are
built once and stored on app.state; routes get them through dependencies. Tests
build the app with create_application() and put fakes on app.state instead of
running the lifespan.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import middleware
from app.api import groups, health, users
from app.config import Settings, get_settings
from app.database import close_mongo_connection, connect_to_mongo
from app.exceptions import (
    SplitItError,
    http_exception_handler,
    request_validation_handler,
    split_it_exception_handler,
    unhandled_exception_handler,
)
from app.repositories.groups import MongoGroupRepository
from app.repositories.users import MongoUserRepository
from app.services.group_service import GroupService
from app.services.identity_service import build_identity_verifier
from app.services.user_service import UserService

# Configure logging - single place for log format and level
logging.basicConfig(
    level=logging.DEBUG if get_settings().debug else logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context: runs on startup and shutdown.
    Startup fails (and the process exits) if MongoDB is not configured or not reachable.
    A missing Firebase service account only disables authentication.
    """
    settings: Settings = app.state.settings
    client = await connect_to_mongo(settings)

    timeout = settings.request_timeout_seconds
    app.state.user_service = UserService(MongoUserRepository(timeout))
    app.state.group_service = GroupService(MongoGroupRepository(timeout))
    app.state.identity_verifier = build_identity_verifier(settings)

    logger.info("Environment: %s", settings.environment)
    logger.info("Client URL: %s", settings.client_url)
    yield
    # Shutdown
    await close_mongo_connection(client)


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    """Factory for the FastAPI app. Keeps main.py clean and testable."""
    settings = settings or get_settings()
    app = FastAPI(
        title=settings.app_name,
        description="Profiles and expense-sharing groups for the Split It client.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.identity_verifier = None
    app.state.rate_limiter = middleware.FixedWindowRateLimiter(
        settings.rate_limit_max, settings.rate_limit_window_seconds
    )

    app.add_exception_handler(SplitItError, split_it_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Last added runs first: CORS -> logging -> security headers -> rate limit
    app.middleware("http")(middleware.rate_limit)
    app.middleware("http")(middleware.security_headers)
    app.middleware("http")(middleware.log_requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.client_url, "http://localhost:3000", "http://localhost:3001"],
        allow_origin_regex=r"^http://localhost:\d+$",
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Accept", "Authorization"],
    )

    # Auth is a dependency (get_current_identity) used by the users/groups routers
    app.include_router(health.router, tags=["health"])
    app.include_router(users.router, prefix="/api/users", tags=["users"])
    app.include_router(groups.router, prefix="/api/groups", tags=["groups"])

    return app


app = create_application()


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=get_settings().port)
