"""
Mailbox repository: mailboxes and the folders conversations are sorted into.
"""

import logging
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from helpdesk.exceptions.mapper import db_error_handler
from helpdesk.models.conversation import Conversation, ConversationStatus
from helpdesk.models.folder import Folder, FolderType, MAILBOX_FOLDER_TYPES, USER_FOLDER_TYPES
from helpdesk.models.mailbox import Mailbox
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class MailboxRepository(BaseRepository[Mailbox]):

    def __init__(self, db: AsyncSession):
        super().__init__(Mailbox, db)

    async def create_mailbox(self, name: str, email: str) -> Mailbox:
        """
        Create a mailbox together with its shared folders
        (Unassigned, Drafts, Assigned, Closed, Spam, Deleted).

        Raises:
            DuplicateError: another mailbox already uses this email.
        """
        mailbox = await self.create(name=name.strip(), email=email.strip().lower())

        async with db_error_handler(self.db, "Folder"):
            self.db.add_all(
                Folder(mailbox_id=mailbox.id, type=folder_type)
                for folder_type in MAILBOX_FOLDER_TYPES
            )
            await self.db.flush()

        logger.info(
            "repo.mailbox.created",
            extra={"mailbox_id": str(mailbox.id), "folders": len(MAILBOX_FOLDER_TYPES)},
        )
        return mailbox

    async def create_user_folders(self, mailbox_id: UUID, user_id: UUID) -> list[Folder]:
        """
        Give a user their Mine and Starred folders in a mailbox.
        Folders the user already has are kept, so calling this twice is harmless.
        """
        async with db_error_handler(self.db, "Folder"):
            result = await self.db.execute(
                select(Folder.type).where(
                    Folder.mailbox_id == mailbox_id,
                    Folder.user_id == user_id,
                )
            )
            existing = set(result.scalars().all())

            folders = [
                Folder(mailbox_id=mailbox_id, user_id=user_id, type=folder_type)
                for folder_type in USER_FOLDER_TYPES
                if folder_type not in existing
            ]
            self.db.add_all(folders)
            await self.db.flush()

        logger.info(
            "repo.mailbox.user_folders_created",
            extra={"mailbox_id": str(mailbox_id), "user_id": str(user_id), "created": len(folders)},
        )
        return folders

    async def get_folder_by_type(
        self,
        mailbox_id: UUID,
        folder_type: FolderType,
        user_id: UUID | None = None
    ) -> Folder | None:
        """
        Folder of the given type in a mailbox.

        Without `user_id` only shared folders match; with it, only that
        user's folders (Mine, Starred).
        """
        query = select(Folder).where(
            Folder.mailbox_id == mailbox_id,
            Folder.type == folder_type,
        )
        if user_id is None:
            query = query.where(Folder.user_id.is_(None))
        else:
            query = query.where(Folder.user_id == user_id)

        async with db_error_handler(self.db, "Folder"):
            result = await self.db.execute(query.limit(1))
            return result.scalars().first()

    async def get_folders(self, mailbox_id: UUID) -> list[Folder]:
        async with db_error_handler(self.db, "Folder"):
            result = await self.db.execute(
                select(Folder).where(Folder.mailbox_id == mailbox_id).order_by(Folder.type)
            )
            return list(result.scalars().all())

    async def get_with_folders(self, mailbox_id: UUID) -> Mailbox | None:
        async with db_error_handler(self.db, self.model_name):
            result = await self.db.execute(
                select(Mailbox)
                .where(Mailbox.id == mailbox_id)
                .options(selectinload(Mailbox.folders))
            )
            return result.scalar_one_or_none()

    async def update_folder_counters(self, folder: Folder) -> Folder:
        """
        Recount `total_count` and `active_count` from the conversations
        currently placed in the folder.
        """
        async with db_error_handler(self.db, "Folder"):
            result = await self.db.execute(
                select(Conversation.status, func.count(Conversation.id))
                .where(Conversation.folder_id == folder.id)
                .group_by(Conversation.status)
            )
            by_status = {status: count for status, count in result.all()}

        folder.total_count = sum(by_status.values())
        folder.active_count = by_status.get(ConversationStatus.ACTIVE, 0)
        async with db_error_handler(self.db, "Folder"):
            await self.db.flush()

        logger.debug(
            "repo.mailbox.folder_counters",
            extra={
                "folder_id": str(folder.id),
                "total_count": folder.total_count,
                "active_count": folder.active_count,
            },
        )
        return folder
