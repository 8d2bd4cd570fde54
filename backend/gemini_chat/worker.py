"""
Generation worker process.

Launch with:
    rq worker --with-scheduler \
        --worker-class gemini_chat.worker.GenerationWorkerProcess \
        --serializer rq.serializers.JSONSerializer generation

or simply:
    python -m gemini_chat.worker

Failed attempts wait in the scheduled registry between retries; only a
worker running the scheduler moves them back onto the queue.
"""

import logging
import os

from redis import Redis
from rq import SimpleWorker
from rq.serializers import JSONSerializer

from gemini_chat.config.settings import get_settings
from gemini_chat.infrastructure.queue._async_runner import close_loop, run_async


logger = logging.getLogger(__name__)


def setup_logging(role: str) -> None:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format=f"%(asctime)s - [{role}] %(name)s - %(levelname)s - %(message)s",
    )


class GenerationWorkerProcess(SimpleWorker):
    """
    Runs generation jobs in-process (no fork per job) so the database pool
    and the event loop survive between jobs.
    """

    def __init__(self, *args, **kwargs):
        setup_logging(f"Worker-{os.getpid()}")
        kwargs.setdefault("serializer", JSONSerializer)
        super().__init__(*args, **kwargs)

    def work(self, *args, **kwargs):
        from gemini_chat.infrastructure.db.database import close_db, init_db
        from gemini_chat.infrastructure.queue.tasks import get_generation_worker

        kwargs.setdefault("with_scheduler", True)

        run_async(init_db())
        logger.info("Database connection pool initialized for worker")
        try:
            # Refuse to start misconfigured rather than burn every job's retries
            get_generation_worker()
            return super().work(*args, **kwargs)
        finally:
            # Drain: SimpleWorker only returns after the current job finishes
            get_generation_worker.cache_clear()
            run_async(close_db())
            close_loop()
            logger.info("Worker shut down")


def main() -> None:
    settings = get_settings()
    connection = Redis.from_url(settings.redis_url)
    worker = GenerationWorkerProcess(
        [settings.generation_queue_name],
        connection=connection,
    )
    worker.work()


if __name__ == "__main__":
    main()
