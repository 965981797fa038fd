import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from worker_service.api.routers import info, jobs
from worker_service.auth.service import AuthenticationService
from worker_service.auth.users import MemoryUserRepository
from worker_service.config.settings import config
from worker_service.jobs.errors import MalformedRequest, WorkerError
from worker_service.jobs.manager import JobRunner
from worker_service.jobs.store import JobStore

logger = logging.getLogger(__name__)

# Status code and client message for each kind of WorkerError
ERROR_RESPONSES = {
    "not_found": (404, "Failed to find job"),
    "unauthorized": (404, "Failed to find job"),
    "launch_failed": (500, "Failed to start job"),
    "stop_failed": (500, "Failed to stop job. The job may have already finished."),
    "malformed_request": (400, "Failed to parse request"),
    "internal": (500, "An unexpected error has occurred"),
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await app.state.job_runner.shutdown()


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def worker_exception_handler(request: Request, exc: WorkerError):
    status_code, message = ERROR_RESPONSES.get(exc.kind, ERROR_RESPONSES["internal"])
    user = getattr(request.state, "user", None)
    username = user.username if user is not None else "-"
    logger.error(f"{request.url.path} user={username}: {exc.kind}: {exc.message}")
    return JSONResponse(status_code=status_code, content={"error": message})


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return await worker_exception_handler(request, MalformedRequest(f"Invalid request: {exc.errors()}"))


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"{request.url.path}: unexpected error")
    return JSONResponse(status_code=500, content={"error": "An unexpected error has occurred"})


def create_app(user_repository: Optional[MemoryUserRepository] = None) -> FastAPI:
    app = FastAPI(
        title="Worker Service API",
        description="Run commands as background jobs on this host.",
        version="0.1.0",
        lifespan=lifespan,
    )

    if user_repository is None:
        user_repository = MemoryUserRepository.from_credentials(config.users)

    app.state.auth_service = AuthenticationService(user_repository)
    app.state.job_store = JobStore()
    app.state.job_runner = JobRunner(app.state.job_store)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(WorkerError, worker_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(info.router)
    app.include_router(jobs.router)

    return app
