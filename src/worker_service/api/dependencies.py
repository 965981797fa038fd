import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from worker_service.auth.service import AuthenticationError
from worker_service.auth.users import User
from worker_service.jobs.service import JobService

logger = logging.getLogger(__name__)

security = HTTPBasic(auto_error=False)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPBasicCredentials] = Depends(security),
) -> User:
    """Resolve the user making the request from its Basic credentials."""
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Unable to authenticate user",
            headers={"WWW-Authenticate": "Basic"},
        )

    try:
        user = request.app.state.auth_service.authenticate(credentials.username, credentials.password)
    except AuthenticationError as e:
        logger.warning(f"Authentication failed on {request.url.path}: {e}")
        raise HTTPException(
            status_code=401,
            detail="Unable to authenticate user",
            headers={"WWW-Authenticate": "Basic"},
        )

    request.state.user = user
    return user


def get_job_service(request: Request, user: User = Depends(get_current_user)) -> JobService:
    return JobService(request.app.state.job_runner, user.username)
