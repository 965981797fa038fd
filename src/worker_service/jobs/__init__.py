"""Job execution for the worker service.

This module runs user submitted commands as background jobs:
- a lifecycle of running, completed, errored and stopped jobs
- an in-memory store shared by the API and the process monitors
- per-user access to start, stop and inspect jobs
"""

from worker_service.jobs.manager import JobRunner
from worker_service.jobs.models import Job, JobSnapshot, JobStatus
from worker_service.jobs.service import JobService
from worker_service.jobs.store import JobStore

__all__ = [
    "Job",
    "JobRunner",
    "JobService",
    "JobSnapshot",
    "JobStatus",
    "JobStore",
]
