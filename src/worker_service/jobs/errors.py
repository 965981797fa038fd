from typing import Optional


class WorkerError(Exception):
    """Base class for failures surfaced to callers of the job subsystem."""

    kind = "internal"

    def __init__(self, message: str, job_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.job_id = job_id


class JobNotFound(WorkerError):
    kind = "not_found"


class Unauthorized(WorkerError):
    kind = "unauthorized"


class LaunchFailure(WorkerError):
    kind = "launch_failed"


class StopFailure(WorkerError):
    kind = "stop_failed"


class MalformedRequest(WorkerError):
    kind = "malformed_request"
