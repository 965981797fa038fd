import asyncio
import codecs
import logging

from worker_service.jobs.store import JobStore

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096


class JobOutputWriter:
    """Accumulates one output stream of a job and mirrors it into the store.

    Every decoded chunk is appended to the store immediately so that pollers
    can see the partial output of a running job.
    """

    def __init__(self, store: JobStore, job_id: str, stream_name: str):
        if stream_name not in ("stdout", "stderr"):
            raise ValueError(f"Unknown output stream {stream_name}")
        self.store = store
        self.job_id = job_id
        self.stream_name = stream_name
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._chunks: list[str] = []

    @property
    def value(self) -> str:
        return "".join(self._chunks)

    def write(self, data: bytes) -> int:
        text = self._decoder.decode(data)
        if text:
            self._chunks.append(text)
            self._publish(text)
        return len(data)

    def close(self):
        # Flush bytes held back by the decoder for an incomplete sequence.
        text = self._decoder.decode(b"", final=True)
        if text:
            self._chunks.append(text)
            self._publish(text)

    def _publish(self, text: str):
        self.store.append_output(self.job_id, **{self.stream_name: text})

    async def drain(self, stream: asyncio.StreamReader):
        """Copy a process stream into this writer until EOF.

        A read error stops the capture early instead of failing the caller.
        """
        try:
            while True:
                chunk = await stream.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                self.write(chunk)
        except (OSError, ValueError) as e:
            logger.error(f"Error reading {self.stream_name} of job {self.job_id}: {e}")
        finally:
            self.close()
