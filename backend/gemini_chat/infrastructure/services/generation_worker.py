"""
Generation Worker

Consumes GenerationJobs: reads bounded history, calls the model, and
overwrites the job's placeholder message with the reply or the fixed error
text.

Database sessions are short and never held across the model call.
"""

import logging
from typing import Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gemini_chat.config.settings import Settings, get_settings
from gemini_chat.domain.chat import (
    GENERATION_ERROR_TEXT,
    GenerationJob,
    MessageStatus,
)
from gemini_chat.domain.prompt import build_prompt
from gemini_chat.infrastructure.db.repositories.chat_repository import ChatRepository


logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    async def generate_text(self, prompt: str, timeout_seconds: float) -> str:
        ...


class GenerationWorker:
    """
    Processes one job at a time; run several worker processes for throughput.

    Safe to re-invoke for the same job: a placeholder that already holds a
    generated reply is left untouched, anything else is simply overwritten.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        generator: TextGenerator,
        settings: Optional[Settings] = None,
    ):
        self._session_factory = session_factory
        self._generator = generator
        self._settings = settings or get_settings()

    async def build_context(self, job: GenerationJob) -> Optional[str]:
        """
        Assemble the prompt for a job.

        Returns:
            The prompt, or None when the job has nothing left to do
            (placeholder deleted or already completed)
        """
        async with self._session_factory() as session:
            repo = ChatRepository(session)
            placeholder = await repo.get_message(job.placeholder_message_id)

            if placeholder is None:
                logger.warning(
                    f"Placeholder {job.placeholder_message_id} no longer exists; dropping job"
                )
                return None

            if placeholder.status == MessageStatus.COMPLETED.value:
                logger.info(
                    f"Placeholder {placeholder.id} already completed; ignoring duplicate delivery"
                )
                return None

            exclude_ids = {placeholder.id}
            if placeholder.reply_to_id:
                exclude_ids.add(placeholder.reply_to_id)

            history = await repo.get_recent_history(
                job.chatroom_id,
                exclude_ids=exclude_ids,
                limit=self._settings.history_window,
            )

        return build_prompt(history, job.user_text)

    async def process_job(
        self,
        job: GenerationJob,
        final_attempt: bool = True
    ) -> Optional[MessageStatus]:
        """
        Resolve the job's placeholder.

        Args:
            job: The generation job
            final_attempt: Whether the queue will redeliver on failure. Only
                the final attempt writes the error text; earlier attempts
                leave the placeholder pending for the retry.

        Returns:
            The placeholder's resulting status, or None if nothing was done

        Raises:
            Exception: any generation failure is re-raised after handling so
                the queue can apply its retry policy
        """
        logger.info(f"Processing generation job for message {job.placeholder_message_id}")

        prompt = await self.build_context(job)
        if prompt is None:
            return None

        try:
            reply = await self._generator.generate_text(
                prompt,
                timeout_seconds=self._settings.generation_timeout_seconds,
            )
        except Exception as e:
            if not final_attempt:
                logger.warning(
                    f"Generation failed for message {job.placeholder_message_id}, "
                    f"will be retried: {e}"
                )
                raise

            logger.exception(
                f"Generation failed for message {job.placeholder_message_id}; "
                f"writing error reply"
            )
            await self._finish(job, GENERATION_ERROR_TEXT, MessageStatus.FAILED)
            raise

        await self._finish(job, reply, MessageStatus.COMPLETED)
        logger.info(f"Generation job completed for message {job.placeholder_message_id}")
        return MessageStatus.COMPLETED

    async def _finish(
        self,
        job: GenerationJob,
        content: str,
        status: MessageStatus
    ) -> None:
        async with self._session_factory() as session:
            repo = ChatRepository(session)
            updated = await repo.complete_message(
                job.placeholder_message_id, content, status
            )
            if updated and status == MessageStatus.COMPLETED:
                await repo.touch_chatroom(job.chatroom_id)
            await session.commit()

        if not updated:
            logger.warning(
                f"Placeholder {job.placeholder_message_id} vanished before it could be written"
            )
