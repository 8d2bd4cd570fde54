"""
Unit tests for the RQ task wrappers.

The wrappers run synchronously, exactly as RQ calls them in a worker.
"""

import logging
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import fakeredis
import pytest
from rq import SimpleWorker

from gemini_chat.domain.chat import GenerationJob, MessageStatus
from gemini_chat.infrastructure.exceptions import ConfigurationError
from gemini_chat.infrastructure.queue import tasks
from gemini_chat.infrastructure.queue._async_runner import close_loop
from gemini_chat.worker import GenerationWorkerProcess


@pytest.fixture
def payload():
    return GenerationJob(
        placeholder_message_id=uuid4(),
        chatroom_id=uuid4(),
        user_id=uuid4(),
        user_text="Hello",
    ).to_payload()


@pytest.fixture
def worker():
    worker = MagicMock()
    worker.process_job = AsyncMock(return_value=MessageStatus.COMPLETED)
    with patch.object(tasks, "get_generation_worker", return_value=worker):
        yield worker
    close_loop()


class TestGenerateReply:

    def test_runs_job_outside_rq_as_final_attempt(self, payload, worker):
        result = tasks.generate_reply(payload)

        assert result == "completed"
        job, = worker.process_job.await_args.args
        assert str(job.placeholder_message_id) == payload["placeholder_message_id"]
        assert worker.process_job.await_args.kwargs == {"final_attempt": True}

    @pytest.mark.parametrize("retries_left,final", [(2, False), (0, True), (None, True)])
    def test_final_attempt_follows_retries_left(self, payload, worker, retries_left, final):
        rq_job = MagicMock(retries_left=retries_left)
        with patch.object(tasks, "get_current_job", return_value=rq_job):
            tasks.generate_reply(payload)

        assert worker.process_job.await_args.kwargs == {"final_attempt": final}

    def test_duplicate_delivery_returns_none(self, payload, worker):
        worker.process_job.return_value = None
        assert tasks.generate_reply(payload) is None

    def test_failure_propagates_for_rq_retry(self, payload, worker):
        worker.process_job.side_effect = RuntimeError("boom")
        with pytest.raises(RuntimeError):
            tasks.generate_reply(payload)

    def test_misconfiguration_is_logged_as_critical(self, payload, caplog):
        error = ConfigurationError("Missing GOOGLE_API_KEY environment variable")
        with patch.object(tasks, "get_generation_worker", side_effect=error):
            with pytest.raises(ConfigurationError):
                tasks.generate_reply(payload)

        assert any(
            record.levelno == logging.CRITICAL and "misconfigured" in record.getMessage()
            for record in caplog.records
        )


class TestGenerationWorkerProcess:

    @pytest.fixture
    def lifecycle(self):
        with patch(
            "gemini_chat.infrastructure.db.database.init_db", new=AsyncMock()
        ) as init_db, patch(
            "gemini_chat.infrastructure.db.database.close_db", new=AsyncMock()
        ) as close_db:
            yield init_db, close_db

    def test_work_runs_scheduler_by_default(self, lifecycle):
        process = GenerationWorkerProcess(["generation"], connection=fakeredis.FakeRedis())
        with patch.object(tasks, "get_generation_worker"), \
                patch.object(SimpleWorker, "work", return_value=True) as base_work:
            process.work(burst=True)

        assert base_work.call_args.kwargs == {"burst": True, "with_scheduler": True}
        init_db, close_db = lifecycle
        init_db.assert_awaited_once()
        close_db.assert_awaited_once()

    def test_explicit_scheduler_flag_wins(self, lifecycle):
        process = GenerationWorkerProcess(["generation"], connection=fakeredis.FakeRedis())
        with patch.object(tasks, "get_generation_worker"), \
                patch.object(SimpleWorker, "work", return_value=True) as base_work:
            process.work(with_scheduler=False)

        assert base_work.call_args.kwargs == {"with_scheduler": False}

    def test_misconfigured_worker_never_dequeues(self, lifecycle):
        process = GenerationWorkerProcess(["generation"], connection=fakeredis.FakeRedis())
        error = ConfigurationError("Missing GOOGLE_API_KEY environment variable")
        with patch.object(tasks, "get_generation_worker", side_effect=error), \
                patch.object(SimpleWorker, "work") as base_work:
            with pytest.raises(ConfigurationError):
                process.work()

        base_work.assert_not_called()
        _, close_db = lifecycle
        close_db.assert_awaited_once()


class TestSweepOrphans:

    def test_returns_report_and_closes_connection(self):
        from gemini_chat.infrastructure.services.orphan_sweeper import SweepReport

        queue = MagicMock()
        report = SweepReport(scanned=2, requeued=1, skipped=1)
        with patch(
            "gemini_chat.infrastructure.queue.generation_queue.GenerationQueue.from_url",
            return_value=queue,
        ), patch(
            "gemini_chat.infrastructure.db.database.get_db_manager",
            return_value=MagicMock(),
        ), patch(
            "gemini_chat.infrastructure.services.orphan_sweeper.OrphanSweeper.sweep",
            new=AsyncMock(return_value=report),
        ):
            result = tasks.sweep_orphans()
        close_loop()

        assert result == {
            "scanned": 2, "requeued": 1, "skipped": 1, "failed": 0, "unrecoverable": 0,
        }
        queue.queue.connection.close.assert_called_once()
