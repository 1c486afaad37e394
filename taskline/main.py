"""FastAPI entrypoint for the task line service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from taskline import endpoints  # noqa: F401  registers routes on task_router
from taskline.config import load_config
from taskline.errors import ErrorResponse, TasklineError, error_response
from taskline.router import task_router

SERVICE_TOKEN_HEADER = "X-Taskline-Service-Token"
AUTH_EXEMPT_PATHS = {"/health"}

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config = load_config()
        logging.basicConfig(
            level=config.log_level, format="%(levelname)s %(name)s: %(message)s"
        )
        logging.getLogger("taskline").setLevel(config.log_level)
        app.state.config = config
        app.state.tasks_root = config.tasks_root
        app.state.collection = None
        logger.info("Serving tasks from %s", config.tasks_root)
        yield

    app = FastAPI(lifespan=lifespan)

    @app.middleware("http")
    async def enforce_service_token(request: Request, call_next):
        if request.url.path in AUTH_EXEMPT_PATHS:
            return await call_next(request)

        config = getattr(request.app.state, "config", None)
        service_token = getattr(config, "service_token", None)
        if service_token:
            supplied_token = request.headers.get(SERVICE_TOKEN_HEADER)
            if supplied_token != service_token:
                error = ErrorResponse(
                    code="AUTH_FORBIDDEN",
                    message="Invalid service token.",
                    details={"header": SERVICE_TOKEN_HEADER},
                )
                return JSONResponse(status_code=403, content=error_response(error))

        return await call_next(request)

    @app.exception_handler(TasklineError)
    def handle_taskline_error(request: Request, exc: TasklineError) -> JSONResponse:
        return JSONResponse(status_code=400, content=error_response(exc.error))

    @app.get("/health", status_code=200)
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(task_router)
    return app


app = create_app()
