"""
Generation Queue

RQ queue carrying GenerationJobs from request handlers to worker processes.

Delivery is at-least-once: a failing job is rescheduled by RQ's Retry
policy; jobs lost to a crashed worker are recovered by the orphan sweep.
The RQ job id is derived from the placeholder id, so a placeholder never
has two jobs in flight.
"""

import asyncio
import logging
from typing import Optional

from redis import Redis
from redis.exceptions import RedisError
from rq import Queue, Retry
from rq.exceptions import NoSuchJobError
from rq.job import Job, JobStatus
from rq.serializers import JSONSerializer

from gemini_chat.config.settings import Settings, get_settings
from gemini_chat.domain.chat import GenerationJob
from gemini_chat.infrastructure.exceptions import EnqueueError


logger = logging.getLogger(__name__)

IN_FLIGHT_STATUSES = {
    JobStatus.QUEUED,
    JobStatus.STARTED,
    JobStatus.DEFERRED,
    JobStatus.SCHEDULED,
}

TASK_PATH = "gemini_chat.infrastructure.queue.tasks.generate_reply"


class GenerationQueue:
    """Producer side of the generation pipeline."""

    def __init__(
        self,
        connection: Redis,
        settings: Optional[Settings] = None,
        is_async: bool = True,
    ):
        self._settings = settings or get_settings()
        self._connection = connection
        self.queue = Queue(
            self._settings.generation_queue_name,
            connection=connection,
            serializer=JSONSerializer,
            is_async=is_async,
        )

    @classmethod
    def from_url(cls, url: str, settings: Optional[Settings] = None) -> "GenerationQueue":
        # RQ needs raw bytes responses
        return cls(Redis.from_url(url), settings=settings)

    def _retry_policy(self) -> Optional[Retry]:
        max_retries = self._settings.generation_max_retries
        if max_retries <= 0:
            return None
        return Retry(max=max_retries, interval=self._settings.generation_retry_intervals)

    def fetch(self, job: GenerationJob) -> Optional[Job]:
        try:
            return Job.fetch(job.job_id, connection=self._connection, serializer=JSONSerializer)
        except NoSuchJobError:
            return None

    def is_in_flight(self, job: GenerationJob) -> bool:
        """Whether RQ still holds a pending, running or retrying job for this placeholder."""
        rq_job = self.fetch(job)
        if rq_job is None:
            return False
        return rq_job.get_status() in IN_FLIGHT_STATUSES

    def enqueue_sync(self, job: GenerationJob) -> str:
        """
        Durably enqueue a job (blocking).

        Returns:
            The RQ job id

        Raises:
            EnqueueError: Redis rejected the write
        """
        try:
            if self.is_in_flight(job):
                logger.info(f"Job {job.job_id} already in flight; not enqueueing again")
                return job.job_id

            self.queue.enqueue(
                TASK_PATH,
                job.to_payload(),
                job_id=job.job_id,
                retry=self._retry_policy(),
                job_timeout=self._settings.generation_job_timeout_seconds,
                result_ttl=3600,
                failure_ttl=7 * 24 * 3600,
                description=f"generate reply for message {job.placeholder_message_id}",
            )
        except RedisError as e:
            raise EnqueueError(
                f"Failed to enqueue generation job: {e}",
                job_id=job.job_id,
                original_error=e,
            )

        logger.info(
            f"Queued generation job {job.job_id} in chatroom {job.chatroom_id}"
        )
        return job.job_id

    async def enqueue(self, job: GenerationJob) -> str:
        """Async wrapper around :meth:`enqueue_sync` for request handlers."""
        return await asyncio.to_thread(self.enqueue_sync, job)
