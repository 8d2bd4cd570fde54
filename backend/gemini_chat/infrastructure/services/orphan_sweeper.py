"""
Orphan Sweeper

Periodic reconciliation for placeholders that never got a job.

Messages are committed before the job is enqueued and no transaction spans
both, so a crash or Redis outage between the two leaves a placeholder
pending with nothing to resolve it. The sweep re-enqueues such
placeholders once they are older than a grace period.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gemini_chat.config.settings import Settings, get_settings
from gemini_chat.domain.chat import (
    GENERATION_ERROR_TEXT,
    GenerationJob,
    MessageStatus,
)
from gemini_chat.infrastructure.db.models.base import utcnow
from gemini_chat.infrastructure.db.repositories.chat_repository import ChatRepository
from gemini_chat.infrastructure.exceptions import EnqueueError
from gemini_chat.infrastructure.queue.generation_queue import GenerationQueue


logger = logging.getLogger(__name__)

Cursor = Tuple[datetime, UUID]


@dataclass
class SweepReport:
    scanned: int = 0
    requeued: int = 0
    skipped: int = 0
    failed: int = 0
    unrecoverable: int = 0

    @property
    def acted(self) -> int:
        """Placeholders this pass did something about."""
        return self.requeued + self.failed + self.unrecoverable


class OrphanSweeper:
    """Re-enqueues stale pending placeholders that have no job in flight."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        queue: GenerationQueue,
        settings: Optional[Settings] = None,
    ):
        self._session_factory = session_factory
        self._queue = queue
        self._settings = settings or get_settings()

    async def _collect(
        self,
        cutoff: datetime,
        cursor: Optional[Cursor],
        report: SweepReport,
    ) -> Tuple[List[GenerationJob], Optional[Cursor]]:
        """Read one page of stale placeholders; the returned cursor is None once exhausted."""
        jobs: List[GenerationJob] = []
        async with self._session_factory() as session:
            repo = ChatRepository(session)
            stale = await repo.find_stale_placeholders(
                older_than=cutoff,
                limit=self._settings.sweep_batch_size,
                after=cursor,
            )
            report.scanned += len(stale)

            for placeholder in stale:
                chatroom = await repo.get_chatroom(placeholder.chatroom_id)
                user_message = (
                    await repo.get_message(placeholder.reply_to_id)
                    if placeholder.reply_to_id else None
                )

                if chatroom is None or user_message is None:
                    # Nothing to answer; resolve it so it does not stay pending forever
                    await repo.complete_message(
                        placeholder.id, GENERATION_ERROR_TEXT, MessageStatus.FAILED
                    )
                    report.unrecoverable += 1
                    continue

                jobs.append(
                    GenerationJob(
                        placeholder_message_id=placeholder.id,
                        chatroom_id=chatroom.id,
                        user_id=chatroom.user_id,
                        user_text=user_message.content,
                    )
                )

            await session.commit()

        if not stale:
            return jobs, None
        last = stale[-1]
        return jobs, (last.created_at, last.id)

    async def sweep(self, now: Optional[datetime] = None) -> SweepReport:
        """
        Run one sweep pass.

        Args:
            now: Reference time (naive UTC); defaults to the current time

        Returns:
            SweepReport with per-outcome counts
        """
        now = now or utcnow()
        cutoff = now - timedelta(seconds=self._settings.sweep_grace_seconds)
        report = SweepReport()
        cursor: Optional[Cursor] = None

        # In-flight rows do not use up the batch; keep paging past them
        while report.acted < self._settings.sweep_batch_size:
            jobs, cursor = await self._collect(cutoff, cursor, report)
            if cursor is None:
                break

            for job in jobs:
                if report.acted >= self._settings.sweep_batch_size:
                    break
                if await asyncio.to_thread(self._queue.is_in_flight, job):
                    report.skipped += 1
                    continue
                try:
                    await self._queue.enqueue(job)
                    report.requeued += 1
                except EnqueueError as e:
                    logger.error(f"Sweep could not re-enqueue {job.job_id}: {e}")
                    report.failed += 1

        logger.info(
            f"Sweep finished: scanned={report.scanned} requeued={report.requeued} "
            f"skipped={report.skipped} failed={report.failed} "
            f"unrecoverable={report.unrecoverable}"
        )
        return report
