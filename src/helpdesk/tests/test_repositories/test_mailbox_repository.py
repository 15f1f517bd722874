import pytest

from helpdesk.exceptions import DuplicateError
from helpdesk.models import (
    ConversationStatus,
    FolderType,
    MAILBOX_FOLDER_TYPES,
    USER_FOLDER_TYPES,
)


@pytest.mark.asyncio
class TestMailboxCreate:

    async def test_create_mailbox_adds_shared_folders(self, mailbox_repository):
        mailbox = await mailbox_repository.create_mailbox(" Billing ", "Billing@Example.com")

        folders = await mailbox_repository.get_folders(mailbox.id)

        assert mailbox.name == "Billing"
        assert mailbox.email == "billing@example.com"
        assert [f.type for f in folders] == sorted(MAILBOX_FOLDER_TYPES)
        assert all(f.user_id is None for f in folders)
        assert all(f.total_count == 0 and f.active_count == 0 for f in folders)

    async def test_create_mailbox_duplicate_email(self, mailbox_repository, mailbox):
        with pytest.raises(DuplicateError) as exc_info:
            await mailbox_repository.create_mailbox("Copy", mailbox.email.upper())

        assert exc_info.value.fields == ["email"]

    async def test_get_with_folders(self, mailbox_repository, mailbox):
        loaded = await mailbox_repository.get_with_folders(mailbox.id)

        assert len(loaded.folders) == len(MAILBOX_FOLDER_TYPES)


@pytest.mark.asyncio
class TestUserFolders:

    async def test_create_user_folders_is_idempotent(self, mailbox_repository, mailbox, created_user):
        created = await mailbox_repository.create_user_folders(mailbox.id, created_user.id)
        again = await mailbox_repository.create_user_folders(mailbox.id, created_user.id)

        assert {f.type for f in created} == set(USER_FOLDER_TYPES)
        assert again == []
        folders = await mailbox_repository.get_folders(mailbox.id)
        assert len(folders) == len(MAILBOX_FOLDER_TYPES) + len(USER_FOLDER_TYPES)

    async def test_get_folder_by_type_separates_shared_and_personal(
        self, mailbox_repository, mailbox, created_user
    ):
        await mailbox_repository.create_user_folders(mailbox.id, created_user.id)

        mine = await mailbox_repository.get_folder_by_type(mailbox.id, FolderType.MINE, user_id=created_user.id)
        assert mine is not None
        assert mine.user_id == created_user.id

        assert await mailbox_repository.get_folder_by_type(mailbox.id, FolderType.MINE) is None
        assert await mailbox_repository.get_folder_by_type(
            mailbox.id, FolderType.UNASSIGNED, user_id=created_user.id
        ) is None
        shared = await mailbox_repository.get_folder_by_type(mailbox.id, FolderType.UNASSIGNED)
        assert shared.user_id is None


@pytest.mark.asyncio
async def test_update_folder_counters(mailbox_repository, mailbox, create_conversation):
    await create_conversation()
    await create_conversation()
    await create_conversation(status=ConversationStatus.PENDING)
    await create_conversation(status=ConversationStatus.CLOSED)
    unassigned = await mailbox_repository.get_folder_by_type(mailbox.id, FolderType.UNASSIGNED)
    closed = await mailbox_repository.get_folder_by_type(mailbox.id, FolderType.CLOSED)

    await mailbox_repository.update_folder_counters(unassigned)
    await mailbox_repository.update_folder_counters(closed)

    assert (unassigned.total_count, unassigned.active_count) == (3, 2)
    assert (closed.total_count, closed.active_count) == (1, 0)
