import pytest

from helpdesk.models import (
    ConversationStatus,
    Person,
    SourceType,
    ThreadState,
    ThreadType,
)
from helpdesk.utils.dates import localize


@pytest.mark.asyncio
class TestCreateThread:

    async def test_customer_message_updates_conversation(self, thread_repository, create_conversation, customer):
        """
        Behavior:
                - The thread inherits the conversation status.
                - threads_count grows and the message becomes the last reply.
        """
        conversation = await create_conversation(status=ConversationStatus.PENDING)

        thread = await thread_repository.create_thread(
            conversation,
            ThreadType.CUSTOMER,
            "Hello",
            source_type=SourceType.EMAIL,
            created_by_customer_id=customer.id,
        )

        assert thread.status == ConversationStatus.PENDING
        assert thread.state == ThreadState.PUBLISHED
        assert thread.is_reply()
        assert conversation.threads_count == 1
        assert conversation.last_reply_from == Person.CUSTOMER
        assert localize(conversation.last_reply_at, "UTC") == localize(thread.created_at, "UTC")

    async def test_note_does_not_count_as_reply(self, thread_repository, create_conversation, created_user):
        conversation = await create_conversation()

        note = await thread_repository.create_thread(
            conversation, ThreadType.NOTE, "internal", Person.USER, created_by_user_id=created_user.id
        )

        assert not note.is_reply()
        assert conversation.threads_count == 1
        assert conversation.last_reply_at is None
        assert conversation.last_reply_from is None

    async def test_draft_reply_does_not_move_last_reply(self, thread_repository, create_conversation):
        conversation = await create_conversation()
        await thread_repository.create_thread(conversation, ThreadType.CUSTOMER, "question")
        first_reply_at = conversation.last_reply_at

        await thread_repository.create_thread(
            conversation, ThreadType.MESSAGE, "draft answer", Person.USER, state=ThreadState.DRAFT
        )

        assert conversation.threads_count == 2
        assert conversation.last_reply_at == first_reply_at
        assert conversation.last_reply_from == Person.CUSTOMER

    async def test_explicit_status_wins(self, thread_repository, create_conversation):
        conversation = await create_conversation()

        thread = await thread_repository.create_thread(
            conversation, ThreadType.LINEITEM, "closed", Person.USER, status=ConversationStatus.CLOSED
        )

        assert thread.status == ConversationStatus.CLOSED


@pytest.mark.asyncio
class TestListThreads:

    async def test_get_conversation_threads_filters_and_order(self, thread_repository, create_conversation):
        conversation = await create_conversation()
        question = await thread_repository.create_thread(conversation, ThreadType.CUSTOMER, "q")
        note = await thread_repository.create_thread(conversation, ThreadType.NOTE, "n", Person.USER)
        draft = await thread_repository.create_thread(
            conversation, ThreadType.MESSAGE, "d", Person.USER, state=ThreadState.DRAFT
        )

        all_threads = await thread_repository.get_conversation_threads(conversation.id)
        assert [t.id for t in all_threads] == [question.id, note.id, draft.id]

        newest = await thread_repository.get_conversation_threads(conversation.id, newest_first=True)
        assert [t.id for t in newest] == [draft.id, note.id, question.id]

        replies = await thread_repository.get_conversation_threads(
            conversation.id, types=[ThreadType.CUSTOMER, ThreadType.MESSAGE]
        )
        assert [t.id for t in replies] == [question.id, draft.id]

        published = await thread_repository.get_conversation_threads(conversation.id, state=ThreadState.PUBLISHED)
        assert [t.id for t in published] == [question.id, note.id]

    async def test_get_first_thread(self, thread_repository, create_conversation):
        conversation = await create_conversation()
        assert await thread_repository.get_first_thread(conversation.id) is None

        first = await thread_repository.create_thread(conversation, ThreadType.CUSTOMER, "first")
        await thread_repository.create_thread(conversation, ThreadType.MESSAGE, "second", Person.USER)

        assert (await thread_repository.get_first_thread(conversation.id)).id == first.id
