import asyncio
import logging
import signal
import uuid
from datetime import datetime
from typing import Dict, Optional, Set

from worker_service.jobs.errors import LaunchFailure, StopFailure
from worker_service.jobs.models import Job, JobStatus, STOPPED_EXIT_CODE
from worker_service.jobs.output import JobOutputWriter
from worker_service.jobs.store import JobStore

logger = logging.getLogger(__name__)


class JobRunner:
    """Launches job processes, monitors them in the background and stops them.

    All state produced after launch is written to the store; the runner only
    keeps the process handles it needs to deliver a termination signal.
    """

    def __init__(self, store: JobStore):
        self.store = store
        self._processes: Dict[int, asyncio.subprocess.Process] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._stop_requested: Set[str] = set()

    async def start(self, job: Job) -> Job:
        """Launch the job's command and start monitoring it.

        Args:
            job: Job holding the owner and raw command

        Returns:
            Copy of the stored job, in the running status

        Raises:
            LaunchFailure: If the process could not be started. The job is
                still stored, as errored.
        """
        job_id = job.id = str(uuid.uuid4())
        name, args = job.parse_command()

        logger.info(f"Starting job {job.id} for {job.owner}: {job.command}")

        try:
            process = await asyncio.create_subprocess_exec(
                name,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (OSError, ValueError) as e:
            logger.error(f"Unable to start job {job.id}: {e}")
            job.status = JobStatus.ERRORED
            job.stderr = str(e)
            job.finished_at = datetime.now()
            self.store.add_job(job)
            raise LaunchFailure(f"Unable to start job: {e}", job_id=job.id) from e

        job.pid = process.pid
        job.status = JobStatus.RUNNING
        self._processes[process.pid] = process
        self.store.add_job(job)

        # The monitor outlives the request that started the job.
        task = asyncio.create_task(self._monitor(job_id, process))
        self._tasks[job_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(job_id, None))

        return self.store.find_job(job_id)

    async def _monitor(self, job_id: str, process: asyncio.subprocess.Process):
        stdout = JobOutputWriter(self.store, job_id, "stdout")
        stderr = JobOutputWriter(self.store, job_id, "stderr")
        status: Optional[JobStatus] = None
        exit_code: Optional[int] = None

        try:
            await asyncio.gather(
                stdout.drain(process.stdout),
                stderr.drain(process.stderr),
            )
            returncode = await process.wait()

            if returncode < 0:
                # Killed by a signal. A stop request records its own outcome,
                # so only an exit nobody asked for is classified here.
                if job_id not in self._stop_requested:
                    logger.warning(f"Job {job_id} was killed by signal {-returncode}")
                    status = JobStatus.ERRORED
                    exit_code = STOPPED_EXIT_CODE
            else:
                exit_code = returncode
                status = JobStatus.COMPLETED if returncode == 0 else JobStatus.ERRORED
        except Exception as e:
            logger.exception(f"Error executing job {job_id}: {e}")
            status = JobStatus.ERRORED
            exit_code = process.returncode
        finally:
            self._processes.pop(process.pid, None)
            self._stop_requested.discard(job_id)
            job = self.store.complete_job(job_id, status, exit_code, stdout.value, stderr.value)
            logger.info(f"Job {job_id} finished with status {job.status.value} (exit code {job.exit_code})")

    def stop(self, job_id: str) -> Job:
        """Send a termination signal to a job and record it as stopped.

        Stopping a job that already finished leaves it unchanged.

        Raises:
            JobNotFound: If the job does not exist
            StopFailure: If the job's process cannot be located or signaled
        """
        job = self.store.find_job(job_id)
        if job.status.is_terminal:
            return job

        process = self._processes.get(job.pid)
        if process is None or process.returncode is not None:
            raise StopFailure(f"Error finding process {job.pid} of job {job_id}", job_id=job_id)

        self._stop_requested.add(job_id)
        try:
            process.send_signal(signal.SIGTERM)
        except (ProcessLookupError, OSError) as e:
            self._stop_requested.discard(job_id)
            raise StopFailure(f"Error stopping job {job_id}: {e}", job_id=job_id) from e

        logger.info(f"Sent SIGTERM to job {job_id} (pid {job.pid})")
        return self.store.mark_stopped(job_id)

    async def join(self, job_id: str):
        """Wait for the monitor of a job to finish, if it is still running."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.shield(task)

    async def shutdown(self):
        """Stop every running job and wait for its monitor to finalize it."""
        for job_id in list(self._tasks):
            try:
                self.stop(job_id)
            except StopFailure as e:
                logger.warning(f"Unable to stop job {job_id} during shutdown: {e}")
        tasks = list(self._tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
