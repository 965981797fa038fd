from typing import List

from worker_service.jobs.errors import Unauthorized
from worker_service.jobs.manager import JobRunner
from worker_service.jobs.models import Job


class JobService:
    """Job operations performed on behalf of one authenticated user."""

    def __init__(self, runner: JobRunner, owner: str):
        self.runner = runner
        self.owner = owner

    async def start_job(self, command: str) -> Job:
        job = Job(owner=self.owner, command=command)
        return await self.runner.start(job)

    def stop_job(self, job_id: str) -> Job:
        self.get_job(job_id)
        self.runner.stop(job_id)
        return self.runner.store.find_job(job_id)

    def get_job(self, job_id: str) -> Job:
        job = self.runner.store.find_job(job_id)
        if job.owner != self.owner:
            raise Unauthorized("The user is not authorized to access this job", job_id=job_id)
        return job

    def list_jobs(self) -> List[Job]:
        return self.runner.store.list_jobs(owner=self.owner)
