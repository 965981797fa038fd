"""API router for job management.

Domain errors raised here propagate to the application's ``WorkerError``
handler, which maps them to a status code and client message.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends

from worker_service.api.dependencies import get_job_service
from worker_service.api.dtos import StartJobRequest, StopJobRequest
from worker_service.jobs.models import JobSnapshot
from worker_service.jobs.service import JobService

router = APIRouter(tags=["Jobs"])
logger = logging.getLogger(__name__)


@router.post("/start", response_model=JobSnapshot)
async def start_job(request: StartJobRequest, service: JobService = Depends(get_job_service)):
    """Start a job running the given command.

    The response is returned as soon as the process is launched, with the
    job in the ``running`` status.
    """
    logger.info(f"User {service.owner} starting job: {request.command}")
    job = await service.start_job(request.command)
    return job.snapshot()


@router.put("/stop", response_model=JobSnapshot)
async def stop_job(request: StopJobRequest, service: JobService = Depends(get_job_service)):
    """Stop a running job owned by the caller."""
    logger.info(f"User {service.owner} stopping job {request.id}")
    return service.stop_job(request.id).snapshot()


@router.get("/jobs", response_model=List[JobSnapshot])
async def list_jobs(service: JobService = Depends(get_job_service)):
    """List the caller's jobs, oldest first."""
    return [job.snapshot() for job in service.list_jobs()]


@router.get("/jobs/{job_id}", response_model=JobSnapshot)
async def get_job(job_id: str, service: JobService = Depends(get_job_service)):
    """Get the status and output collected so far for a job."""
    return service.get_job(job_id).snapshot()
