import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional

from worker_service.jobs.errors import JobNotFound
from worker_service.jobs.models import Job, JobStatus, STOPPED_EXIT_CODE

logger = logging.getLogger(__name__)

_TERMINAL_FIELDS = {"status", "exit_code", "finished_at"}
_OUTPUT_FIELDS = ("stdout", "stderr")
_MUTABLE_FIELDS = _TERMINAL_FIELDS.union(_OUTPUT_FIELDS)


class JobStore:
    """In-memory repository of jobs.

    Every read-modify-write happens under a single lock owned by the store,
    and readers always receive a copy of the record, never the live one.
    Output appended while a job runs is queued per stream and only joined
    into the record when the record is next read.
    """

    def __init__(self):
        self._jobs: Dict[str, Job] = {}
        self._pending: Dict[str, Dict[str, List[str]]] = {}
        self._lock = threading.Lock()

    def add_job(self, job: Job):
        """Insert a job keyed by its id, replacing any record with the same id."""
        with self._lock:
            self._jobs[job.id] = job.model_copy(deep=True)
            self._pending.pop(job.id, None)

    def update_job(self, job_id: str, **fields) -> Job:
        """Replace the output, status or exit code of an existing job.

        Identity fields (id, owner, command, pid) cannot be changed. Status and
        exit code of a job that already reached a terminal status are left
        untouched.

        Raises:
            ValueError: If an identity field is given
            JobNotFound: If no job has the given id
        """
        immutable = set(fields) - _MUTABLE_FIELDS
        if immutable:
            raise ValueError(f"Cannot update {', '.join(sorted(immutable))} of job {job_id}")

        with self._lock:
            job = self._get(job_id)
            if job.status.is_terminal:
                ignored = _TERMINAL_FIELDS.intersection(fields)
                if ignored:
                    logger.debug(f"Ignoring {sorted(ignored)} for finished job {job_id}")
                fields = {k: v for k, v in fields.items() if k not in _TERMINAL_FIELDS}
            for name, value in fields.items():
                setattr(job, name, value)
            return job.model_copy(deep=True)

    def append_output(self, job_id: str, stdout: Optional[str] = None, stderr: Optional[str] = None):
        """Append newly captured text to a job's streams.

        Raises:
            JobNotFound: If no job has the given id
        """
        with self._lock:
            if job_id not in self._jobs:
                raise JobNotFound(f"Job {job_id} not found", job_id=job_id)
            pending = self._pending.setdefault(job_id, {name: [] for name in _OUTPUT_FIELDS})
            if stdout:
                pending["stdout"].append(stdout)
            if stderr:
                pending["stderr"].append(stderr)

    def complete_job(self, job_id: str, status: Optional[JobStatus], exit_code: Optional[int],
                     stdout: str, stderr: str) -> Job:
        """Reconcile a job with the exit of its process.

        Output is always frozen to the given values. Status and exit code are
        only written while the job is still running; passing ``None`` as the
        status leaves them alone.
        """
        with self._lock:
            job = self._get(job_id)
            job.stdout = stdout
            job.stderr = stderr
            if status is not None and not job.status.is_terminal:
                job.status = status
                job.exit_code = exit_code
                job.finished_at = datetime.now()
            return job.model_copy(deep=True)

    def mark_stopped(self, job_id: str) -> Job:
        """Move a running job to stopped with the signal exit code."""
        with self._lock:
            job = self._get(job_id)
            if not job.status.is_terminal:
                job.status = JobStatus.STOPPED
                job.exit_code = STOPPED_EXIT_CODE
                job.finished_at = datetime.now()
            return job.model_copy(deep=True)

    def find_job(self, job_id: str) -> Job:
        """Return a copy of the job with the given id.

        Raises:
            JobNotFound: If no job has the given id
        """
        with self._lock:
            return self._get(job_id).model_copy(deep=True)

    def list_jobs(self, owner: Optional[str] = None) -> List[Job]:
        with self._lock:
            jobs = [self._get(job_id).model_copy(deep=True) for job_id in list(self._jobs)]
        if owner is not None:
            jobs = [job for job in jobs if job.owner == owner]
        return sorted(jobs, key=lambda job: job.created_at)

    def _get(self, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFound(f"Job {job_id} not found", job_id=job_id)

        pending = self._pending.pop(job_id, None)
        if pending:
            if pending["stdout"]:
                job.stdout += "".join(pending["stdout"])
            if pending["stderr"]:
                job.stderr += "".join(pending["stderr"])
        return job
