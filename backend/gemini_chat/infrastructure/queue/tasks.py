"""RQ task definitions.

RQ resolves jobs by import path, so every enqueue refers to functions in
this module. The wrappers are sync (RQ calls them in the worker process)
and drive the async services on a persistent event loop.
"""

import logging
from functools import lru_cache
from typing import Optional

from rq import get_current_job

from gemini_chat.config.settings import get_settings
from gemini_chat.domain.chat import GenerationJob
from gemini_chat.infrastructure.exceptions import ConfigurationError
from gemini_chat.infrastructure.queue._async_runner import run_async


logger = logging.getLogger(__name__)


def _is_final_attempt() -> bool:
    rq_job = get_current_job()
    if rq_job is None:
        return True
    return not rq_job.retries_left


@lru_cache
def get_generation_worker():
    """Process-wide GenerationWorker; cleared when the worker process shuts down."""
    from gemini_chat.infrastructure.ai.gemini_service import get_gemini_service
    from gemini_chat.infrastructure.db.database import get_db_manager
    from gemini_chat.infrastructure.services.generation_worker import GenerationWorker

    return GenerationWorker(
        session_factory=get_db_manager().session_factory,
        generator=get_gemini_service(),
        settings=get_settings(),
    )


def generate_reply(payload: dict) -> Optional[str]:
    """Resolve one placeholder. Failures propagate so RQ retries the job."""
    job = GenerationJob.from_payload(payload)
    try:
        worker = get_generation_worker()
    except ConfigurationError:
        logger.critical(
            f"Worker is misconfigured; job {job.job_id} cannot run until it is fixed",
            exc_info=True,
        )
        raise
    status = run_async(worker.process_job(job, final_attempt=_is_final_attempt()))
    return status.value if status else None


def sweep_orphans() -> dict:
    """Re-enqueue stale placeholders; schedule periodically (e.g. rq-scheduler or cron)."""
    from dataclasses import asdict

    from gemini_chat.infrastructure.db.database import get_db_manager
    from gemini_chat.infrastructure.queue.generation_queue import GenerationQueue
    from gemini_chat.infrastructure.services.orphan_sweeper import OrphanSweeper

    settings = get_settings()
    queue = GenerationQueue.from_url(settings.redis_url, settings=settings)
    sweeper = OrphanSweeper(
        session_factory=get_db_manager().session_factory,
        queue=queue,
        settings=settings,
    )
    try:
        report = run_async(sweeper.sweep())
    finally:
        queue.queue.connection.close()
    return asdict(report)
