"""
Conversation repository: creation, status and assignee changes, folder
placement and navigation between the conversations of a folder.

Derivations that only need loaded attributes (folder type, preview text,
recipients) live on the `Conversation` model; this module adds the parts
that have to query.
"""

import logging
from typing import Iterable, Literal
from uuid import UUID

from sqlalchemy import and_, or_, select, func, true, false
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from helpdesk.exceptions.base import InvalidInputError
from helpdesk.exceptions.mapper import db_error_handler
from helpdesk.models.conversation import (
    Conversation,
    ConversationState,
    ConversationStatus,
    ConversationType,
    GUARDED_FIELDS,
    Person,
    SourceType,
)
from helpdesk.models.folder import Folder
from helpdesk.models.thread import Thread, ThreadState, REPLY_TYPES
from helpdesk.models.user import User
from helpdesk.utils.dates import utc_now
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

NearbyMode = Literal["next", "prev", "closest"]
NEARBY_MODES = ("next", "prev", "closest")


class ConversationRepository(BaseRepository[Conversation]):
    """
    Repository for Conversation operations.

    Mutating methods change the passed instance and flush; committing is up
    to the caller.
    """

    guarded_fields = GUARDED_FIELDS
    generated_fields = frozenset({"number"})

    def __init__(self, db: AsyncSession):
        super().__init__(Conversation, db)

    # ------------------------------------------------------------------
    # Creation / lookup
    # ------------------------------------------------------------------

    async def create_conversation(
        self,
        mailbox_id: UUID,
        customer_id: UUID,
        subject: str | None = None,
        *,
        type: ConversationType = ConversationType.EMAIL,
        status: ConversationStatus = ConversationStatus.ACTIVE,
        state: ConversationState = ConversationState.PUBLISHED,
        user_id: UUID | None = None,
        source_via: Person = Person.CUSTOMER,
        source_type: SourceType | None = None,
        cc: Iterable[str] | str | None = None,
        bcc: Iterable[str] | str | None = None,
        preview: str = "",
        **fields,
    ) -> Conversation:
        """
        Create a conversation and place it in the matching mailbox folder.

        `cc`/`bcc` are sanitized, `preview` is stripped of HTML and truncated.
        The mailbox number is assigned on insert.

        Raises:
            InvalidFieldError: unknown fields, or guarded ones (`id`, `folder_id`, `number`).
        """
        fields.update(
            mailbox_id=mailbox_id,
            customer_id=customer_id,
            subject=subject,
            type=type,
            status=status,
            state=state,
            user_id=user_id,
            source_via=source_via,
            source_type=source_type,
        )
        self._check_fields("create", fields)

        conversation = Conversation(**fields)
        conversation.set_cc(cc)
        conversation.set_bcc(bcc)
        conversation.set_preview(preview)
        await self._apply_folder(conversation)

        conversation = await self.add(conversation)
        logger.info(
            "repo.conversation.created",
            extra={
                "conversation_id": str(conversation.id),
                "mailbox_id": str(mailbox_id),
                "number": conversation.number,
                "folder_id": str(conversation.folder_id),
            },
        )
        return conversation

    async def get_by_number(self, mailbox_id: UUID, number: int) -> Conversation | None:
        async with db_error_handler(self.db, self.model_name):
            result = await self.db.execute(
                select(Conversation).where(
                    Conversation.mailbox_id == mailbox_id,
                    Conversation.number == number,
                )
            )
            return result.scalar_one_or_none()

    async def get_with_threads(self, conversation_id: UUID) -> Conversation | None:
        """Conversation with `threads` eagerly loaded (in creation order)."""
        async with db_error_handler(self.db, self.model_name):
            result = await self.db.execute(
                select(Conversation)
                .where(Conversation.id == conversation_id)
                .options(selectinload(Conversation.threads))
            )
            return result.scalar_one_or_none()

    async def get_replies(self, conversation: Conversation) -> list[Thread]:
        """
        Published customer messages and user replies, newest first.
        Notes and line items are left out.
        """
        async with db_error_handler(self.db, "Thread"):
            result = await self.db.execute(
                select(Thread)
                .where(
                    Thread.conversation_id == conversation.id,
                    Thread.type.in_(REPLY_TYPES),
                    Thread.state == ThreadState.PUBLISHED,
                )
                .order_by(Thread.created_at.desc(), Thread.id.desc())
            )
            return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Derived fields
    # ------------------------------------------------------------------

    async def set_preview(self, conversation: Conversation, text: str | None = "") -> str:
        """
        Set the preview from `text`, or from the first thread body when `text` is empty.
        """
        if not text:
            async with db_error_handler(self.db, "Thread"):
                result = await self.db.execute(
                    select(Thread.body)
                    .where(Thread.conversation_id == conversation.id)
                    .order_by(Thread.created_at.asc(), Thread.id.asc())
                    .limit(1)
                )
                text = result.scalars().first() or ""

        preview = conversation.set_preview(text)
        await self.save(conversation)
        return preview

    async def _find_folder(self, conversation: Conversation) -> Folder | None:
        folder_type = conversation.resolve_folder_type()
        async with db_error_handler(self.db, "Folder"):
            result = await self.db.execute(
                select(Folder)
                .where(
                    Folder.mailbox_id == conversation.mailbox_id,
                    Folder.type == folder_type,
                    Folder.user_id.is_(None),
                )
                .limit(1)
            )
            return result.scalars().first()

    async def _apply_folder(self, conversation: Conversation) -> None:
        folder = await self._find_folder(conversation)
        if folder is None:
            # Mailbox without this folder: keep the current placement
            logger.warning(
                "repo.conversation.folder_missing",
                extra={
                    "conversation_id": str(conversation.id),
                    "mailbox_id": str(conversation.mailbox_id),
                    "folder_type": conversation.resolve_folder_type().name,
                },
            )
            return
        conversation.folder_id = folder.id

    async def update_folder(self, conversation: Conversation) -> Conversation:
        """
        Move the conversation to the folder matching its state, status and assignee.
        `folder_id` is left unchanged when the mailbox has no such folder.
        """
        await self._apply_folder(conversation)
        return await self.save(conversation)

    # ------------------------------------------------------------------
    # Status / assignee
    # ------------------------------------------------------------------

    async def set_status(
        self,
        conversation: Conversation,
        status: ConversationStatus | int,
        user: User | None = None
    ) -> Conversation:
        """
        Change the status and re-derive the folder.

        Closing with a `user` records who closed it and when.

        Raises:
            InvalidInputError: `status` is not a known status code.
        """
        try:
            status = ConversationStatus(status)
        except ValueError as e:
            raise InvalidInputError(f"Unknown conversation status: {status!r}", fields=["status"]) from e

        now = utc_now()
        previous = conversation.status
        conversation.status = status
        await self._apply_folder(conversation)
        conversation.user_updated_at = now

        if user is not None and status == ConversationStatus.CLOSED:
            conversation.closed_by_user_id = user.id
            conversation.closed_at = now

        await self.save(conversation)
        logger.info(
            "repo.conversation.set_status",
            extra={
                "conversation_id": str(conversation.id),
                "from_status": getattr(previous, "name", previous),
                "to_status": status.name,
                "user_id": str(user.id) if user is not None else None,
            },
        )
        return conversation

    async def set_user(self, conversation: Conversation, user_id: UUID | None) -> Conversation:
        """
        Assign the conversation to `user_id`, or unassign it with None,
        and re-derive the folder.
        """
        previous = conversation.user_id
        conversation.user_id = user_id
        await self._apply_folder(conversation)
        conversation.user_updated_at = utc_now()

        await self.save(conversation)
        logger.info(
            "repo.conversation.set_user",
            extra={
                "conversation_id": str(conversation.id),
                "from_user_id": str(previous) if previous else None,
                "to_user_id": str(user_id) if user_id else None,
            },
        )
        return conversation

    # ------------------------------------------------------------------
    # Folder listing / navigation
    # ------------------------------------------------------------------

    @staticmethod
    def _order_clauses(folder: Folder, reverse: bool = False) -> list:
        """
        ORDER BY for a folder: its sort fields with NULLs last, then id.
        `reverse` flips every term (NULLs first), which walks the list backwards.
        """
        clauses = []
        for field, direction in folder.get_order_by():
            column = getattr(Conversation, field)
            ascending = (direction == "asc") != reverse
            term = column.asc() if ascending else column.desc()
            clauses.append(term.nulls_first() if reverse else term.nulls_last())
        clauses.append(Conversation.id.desc() if reverse else Conversation.id.asc())
        return clauses

    @staticmethod
    def _position_filter(conversation: Conversation, folder: Folder, after: bool):
        """
        WHERE clause selecting the rows listed strictly after (or before)
        `conversation` in the folder order.

        Lexicographic comparison over the sort fields, NULLs last, with the
        id as final tiebreaker: row R is after C when R equals C on the
        first k fields and is after it on field k+1.
        """
        options = []
        equal_so_far = []

        for field, direction in folder.get_order_by():
            column = getattr(Conversation, field)
            value = getattr(conversation, field)

            if value is None:
                # NULLs sort last: nothing is after a NULL, every non-NULL is before it
                beyond = false() if after else column.is_not(None)
                same = column.is_(None)
            else:
                if (direction == "asc") == after:
                    beyond = column > value
                else:
                    beyond = column < value
                if after:
                    beyond = or_(beyond, column.is_(None))
                same = column == value

            options.append(and_(true(), *equal_so_far, beyond))
            equal_so_far.append(same)

        id_beyond = Conversation.id > conversation.id if after else Conversation.id < conversation.id
        options.append(and_(true(), *equal_so_far, id_beyond))
        return or_(*options)

    async def _fetch_nearby(self, conversation: Conversation, folder: Folder, after: bool) -> Conversation | None:
        query = (
            select(Conversation)
            .where(
                Conversation.folder_id == folder.id,
                Conversation.id != conversation.id,
                self._position_filter(conversation, folder, after),
            )
            .order_by(*self._order_clauses(folder, reverse=not after))
            .limit(1)
        )
        async with db_error_handler(self.db, self.model_name):
            result = await self.db.execute(query)
            return result.scalars().first()

    async def get_nearby(self, conversation: Conversation, mode: NearbyMode = "closest") -> Conversation | None:
        """
        Neighbour of `conversation` inside its folder, in the folder's sort order.

        - "next": the conversation listed right after it, or None
        - "prev": the conversation listed right before it, or None
        - "closest": next, falling back to prev

        Raises:
            InvalidInputError: unknown `mode`.
        """
        if mode not in NEARBY_MODES:
            raise InvalidInputError(
                f"Unknown nearby mode {mode!r}, expected one of: {', '.join(NEARBY_MODES)}",
                fields=["mode"],
            )

        if conversation.folder_id is None:
            return None
        folder = await self.db.get(Folder, conversation.folder_id)
        if folder is None:
            return None

        if mode != "prev":
            nearby = await self._fetch_nearby(conversation, folder, after=True)
            if nearby is not None or mode == "next":
                self._log_nearby(conversation, mode, nearby)
                return nearby

        nearby = await self._fetch_nearby(conversation, folder, after=False)
        self._log_nearby(conversation, mode, nearby)
        return nearby

    @staticmethod
    def _log_nearby(conversation: Conversation, mode: str, nearby: Conversation | None) -> None:
        logger.debug(
            "repo.conversation.nearby",
            extra={
                "conversation_id": str(conversation.id),
                "mode": mode,
                "nearby_id": str(nearby.id) if nearby is not None else None,
            },
        )

    async def get_folder_conversations(
        self,
        folder: Folder,
        offset: int = 0,
        limit: int = 50
    ) -> list[Conversation]:
        """One page of a folder, in the order `get_nearby` walks it."""
        query = (
            select(Conversation)
            .where(Conversation.folder_id == folder.id)
            .order_by(*self._order_clauses(folder))
            .offset(offset)
            .limit(limit)
        )
        async with db_error_handler(self.db, self.model_name):
            result = await self.db.execute(query)
            return list(result.scalars().all())

    async def count_by_status(self, mailbox_id: UUID) -> dict[ConversationStatus, int]:
        """Number of conversations of a mailbox per status; statuses without any are omitted."""
        async with db_error_handler(self.db, self.model_name):
            result = await self.db.execute(
                select(Conversation.status, func.count(Conversation.id))
                .where(Conversation.mailbox_id == mailbox_id)
                .group_by(Conversation.status)
            )
            return {status: count for status, count in result.all()}
