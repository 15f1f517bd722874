"""
Thread repository: the messages, replies and notes of a conversation.

Adding a thread also maintains the conversation counters that lists rely on
(`threads_count`, `last_reply_at`, `last_reply_from`).
"""

import logging
from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.exceptions.mapper import db_error_handler
from helpdesk.models.conversation import Conversation, ConversationStatus, Person, SourceType
from helpdesk.models.thread import Thread, ThreadState, ThreadType, REPLY_TYPES
from helpdesk.utils.dates import utc_now
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ThreadRepository(BaseRepository[Thread]):

    def __init__(self, db: AsyncSession):
        super().__init__(Thread, db)

    async def create_thread(
        self,
        conversation: Conversation,
        thread_type: ThreadType,
        body: str,
        source_via: Person = Person.CUSTOMER,
        state: ThreadState = ThreadState.PUBLISHED,
        status: ConversationStatus | None = None,
        source_type: SourceType | None = None,
        created_by_user_id: UUID | None = None,
        created_by_customer_id: UUID | None = None,
    ) -> Thread:
        """
        Append a thread to `conversation`.

        The thread takes the conversation status unless `status` is given.
        `threads_count` is bumped; a published customer or user reply also
        becomes the conversation's last reply.
        """
        thread = Thread(
            conversation_id=conversation.id,
            type=thread_type,
            body=body,
            source_via=source_via,
            state=state,
            status=status if status is not None else conversation.status,
            source_type=source_type,
            created_by_user_id=created_by_user_id,
            created_by_customer_id=created_by_customer_id,
            created_at=utc_now(),
        )

        conversation.threads_count = (conversation.threads_count or 0) + 1
        if thread_type in REPLY_TYPES and state == ThreadState.PUBLISHED:
            conversation.last_reply_at = thread.created_at
            conversation.last_reply_from = source_via

        async with db_error_handler(self.db, self.model_name):
            self.db.add(thread)
            await self.db.flush()
            await self.db.refresh(thread)

        logger.info(
            "repo.thread.created",
            extra={
                "conversation_id": str(conversation.id),
                "thread_id": str(thread.id),
                "type": thread.type.name,
                "threads_count": conversation.threads_count,
            },
        )
        return thread

    async def get_conversation_threads(
        self,
        conversation_id: UUID,
        types: Iterable[ThreadType] | None = None,
        state: ThreadState | None = None,
        newest_first: bool = False
    ) -> list[Thread]:
        """Threads of a conversation in creation order, optionally filtered."""
        query = select(Thread).where(Thread.conversation_id == conversation_id)
        if types is not None:
            query = query.where(Thread.type.in_(list(types)))
        if state is not None:
            query = query.where(Thread.state == state)

        if newest_first:
            query = query.order_by(Thread.created_at.desc(), Thread.id.desc())
        else:
            query = query.order_by(Thread.created_at.asc(), Thread.id.asc())

        async with db_error_handler(self.db, self.model_name):
            result = await self.db.execute(query)
            threads = list(result.scalars().all())

        logger.debug(
            "repo.thread.list",
            extra={"conversation_id": str(conversation_id), "count": len(threads)},
        )
        return threads

    async def get_first_thread(self, conversation_id: UUID) -> Thread | None:
        async with db_error_handler(self.db, self.model_name):
            result = await self.db.execute(
                select(Thread)
                .where(Thread.conversation_id == conversation_id)
                .order_by(Thread.created_at.asc(), Thread.id.asc())
                .limit(1)
            )
            return result.scalars().first()
