from sqlalchemy import Integer, ForeignKey, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from enum import IntEnum
from helpdesk.database.base import Base
from helpdesk.database.types import IntEnumType
import uuid
from typing import Literal, TYPE_CHECKING

if TYPE_CHECKING:
    from .mailbox import Mailbox
    from .user import User
    from .conversation import Conversation


# ------------------------------
# Folder types
# ------------------------------
class FolderType(IntEnum):
    """Kind of bucket a folder represents. Codes are persisted."""
    UNASSIGNED = 1
    MINE = 20         # per-user: conversations assigned to the folder owner
    STARRED = 25      # per-user
    DRAFTS = 30
    ASSIGNED = 40
    CLOSED = 60
    SPAM = 70
    DELETED = 80


# Folders created for every mailbox (MINE and STARRED are created per user)
MAILBOX_FOLDER_TYPES = (
    FolderType.UNASSIGNED,
    FolderType.DRAFTS,
    FolderType.ASSIGNED,
    FolderType.CLOSED,
    FolderType.SPAM,
    FolderType.DELETED,
)

USER_FOLDER_TYPES = (
    FolderType.MINE,
    FolderType.STARRED,
)

SortDirection = Literal["asc", "desc"]

# Listing order of each folder type, as (conversation column, direction) pairs.
_ORDER_BY: dict[FolderType, list[tuple[str, SortDirection]]] = {
    FolderType.UNASSIGNED: [("status", "asc"), ("last_reply_at", "desc")],
    FolderType.MINE: [("status", "asc"), ("last_reply_at", "desc")],
    FolderType.ASSIGNED: [("status", "asc"), ("last_reply_at", "desc")],
    FolderType.STARRED: [("last_reply_at", "desc")],
    FolderType.SPAM: [("last_reply_at", "desc")],
    FolderType.DELETED: [("last_reply_at", "desc")],
    FolderType.DRAFTS: [("updated_at", "desc")],
    FolderType.CLOSED: [("closed_at", "desc")],
}


class Folder(Base):
    """
    SQLAlchemy model for a Folder.

    A folder belongs to a mailbox and, for MINE/STARRED folders, to a user.
    Conversations are placed into folders by `Conversation.resolve_folder_type()`;
    the folder only decides how its conversations are listed (`get_order_by()`).
    """
    __tablename__ = "folders"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True
    )

    mailbox_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("mailboxes.id"),
        nullable=False,
        index=True
    )

    # Owner of a per-user folder; NULL for shared mailbox folders
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=True,
        index=True
    )

    type: Mapped[FolderType] = mapped_column(
        IntEnumType(FolderType),
        nullable=False,
        index=True
    )

    # Cached counters shown next to the folder name
    total_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False
    )

    active_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False
    )

    # --- Relationships ---

    mailbox: Mapped["Mailbox"] = relationship(
        "Mailbox",
        back_populates="folders"
    )

    user: Mapped["User | None"] = relationship("User")

    conversations: Mapped[list["Conversation"]] = relationship(
        "Conversation",
        back_populates="folder",
        lazy="select"
    )

    def get_order_by(self) -> list[tuple[str, SortDirection]]:
        """
        Return the listing order of this folder as (column, "asc"|"desc") pairs.

        The same order drives folder pages and next/previous navigation, so
        both always agree on which conversation comes next.
        """
        return list(_ORDER_BY.get(self.type, []))

    def __repr__(self) -> str:
        return f"<Folder(id={self.id!r}, type={self.type!r}, mailbox_id={self.mailbox_id!r})>"
