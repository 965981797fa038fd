from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime

# Exit code recorded for a job that was terminated by a signal.
STOPPED_EXIT_CODE = -1


class JobStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    ERRORED = "errored"
    STOPPED = "stopped"

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.RUNNING


class Job(BaseModel):
    id: str = ""
    owner: str
    command: str
    pid: Optional[int] = None
    status: JobStatus = JobStatus.RUNNING
    exit_code: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    def parse_command(self) -> tuple[str, List[str]]:
        """Split the raw command into a program name and its arguments.

        Splitting is done on single spaces only, so a command without spaces
        has no arguments.
        """
        parts = self.command.split(" ")
        if len(parts) < 2:
            return self.command, []
        return parts[0], parts[1:]

    def snapshot(self) -> "JobSnapshot":
        return JobSnapshot(
            id=self.id,
            command=self.command,
            owner=self.owner,
            status=self.status,
            exit_code="" if self.exit_code is None or not self.status.is_terminal else str(self.exit_code),
            stdout=self.stdout,
            stderr=self.stderr,
            created_at=self.created_at,
            finished_at=self.finished_at,
        )


class JobSnapshot(BaseModel):
    """Read-only view of a job as returned to API callers."""
    id: str
    command: str
    owner: str
    status: JobStatus
    exit_code: str = Field("", description="Exit code as text, empty until the job is terminal")
    stdout: str = ""
    stderr: str = ""
    created_at: datetime
    finished_at: Optional[datetime] = None
