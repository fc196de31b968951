from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional, Type

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import (
    AlreadyExistsError,
    InvalidCredentialsError,
    InvalidIDError,
    InvalidInputError,
    NotFoundError,
    ServiceError,
    StoreError,
)
from .logging_config import setup_logging
from .repositories import TodoRepository, UserRepository, build_repositories
from .routers import todos as todos_router
from .routers import users as users_router
from .settings import Settings, get_settings
from .todo_service import Clock, TodoService
from .user_service import UserService

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "users", "description": "Registration, login and user administration."},
    {"name": "todos", "description": "Per-user todo items: list, create, update, delete, clear."},
]

ERROR_STATUS: Dict[Type[ServiceError], int] = {
    InvalidInputError: 400,
    InvalidIDError: 400,
    InvalidCredentialsError: 401,
    NotFoundError: 404,
    AlreadyExistsError: 409,
    StoreError: 500,
}


def _status_for(exc: ServiceError) -> int:
    for kind, code in ERROR_STATUS.items():
        if isinstance(exc, kind):
            return code
    return 500


def _jsonable_errors(exc: RequestValidationError) -> list:
    """Validator errors without the non-serializable ``ctx``/``input`` entries."""
    return [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]


# PUBLIC_INTERFACE
def create_app(
    settings: Optional[Settings] = None,
    user_repository: Optional[UserRepository] = None,
    todo_repository: Optional[TodoRepository] = None,
    now: Optional[Clock] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Pass both repositories or neither. When neither is given they are built
    from ``settings`` (memory or mongo). Tests inject in-memory repositories
    and a fixed clock.

    Raises:
        ValueError: if only one of the two repositories is supplied.
    """
    if (user_repository is None) != (todo_repository is None):
        raise ValueError("pass both user_repository and todo_repository, or neither")
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    if user_repository is None:
        user_repository, todo_repository = build_repositories(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        for repo in (user_repository, todo_repository):
            close = getattr(repo, "close", None)
            if close is not None:
                close()

    app = FastAPI(
        title="Task Tracker Backend",
        description="Multi-user todo tracking backend with pluggable storage backends.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.user_service = UserService(user_repository)
    app.state.todo_service = TodoService(todo_repository, now=now)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Accept", "Authorization"],
        expose_headers=["Content-Length"],
        max_age=12 * 60 * 60,
    )

    @app.exception_handler(ServiceError)
    async def service_exception_handler(request: Request, exc: ServiceError) -> JSONResponse:
        """
        Map a service error kind to its HTTP status.

        Response format:
            {"error": "<message>"}
        """
        status_code = _status_for(exc)
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Malformed request bodies are reported as 400 with the validator's details.
        """
        return JSONResponse(
            status_code=400,
            content={"error": "invalid request data", "detail": _jsonable_errors(exc)},
        )

    # PUBLIC_INTERFACE
    @app.get("/healthz", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"status": "ok", "backend": settings.persistence_backend}

    app.include_router(users_router.router)
    app.include_router(todos_router.router)
    return app

