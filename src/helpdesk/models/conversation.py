from sqlalchemy import (
    String, Integer, Boolean, DateTime, ForeignKey, JSON, UUID, UniqueConstraint,
    event, select, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from enum import IntEnum
from bs4 import BeautifulSoup
from helpdesk.database.base import Base
from helpdesk.database.types import IntEnumType
from helpdesk.utils.dates import format_short, utc_now
from .folder import FolderType
from .customer import Email
import uuid
from typing import Iterable, TYPE_CHECKING

# Avoid circular import issues when using type hints for related models
if TYPE_CHECKING:
    from .user import User
    from .customer import Customer
    from .folder import Folder
    from .mailbox import Mailbox
    from .thread import Thread


# ------------------------------
# Taxonomies (codes are persisted, never renumber)
# ------------------------------
class Person(IntEnum):
    """Who did something: sent the first message, replied last..."""
    CUSTOMER = 1
    USER = 2


class ConversationType(IntEnum):
    EMAIL = 1
    PHONE = 2
    CHAT = 3    # not used yet


class ConversationStatus(IntEnum):
    """Codes are shared with thread statuses."""
    ACTIVE = 1
    PENDING = 2
    CLOSED = 3
    SPAM = 4
    OPEN = 5


class ConversationState(IntEnum):
    DRAFT = 1
    PUBLISHED = 2
    DELETED = 3


class SourceType(IntEnum):
    """Codes are shared with thread source types."""
    EMAIL = 1
    WEB = 2
    API = 3


PERSONS: dict[Person, str] = {
    Person.CUSTOMER: "customer",
    Person.USER: "user",
}

TYPES: dict[ConversationType, str] = {
    ConversationType.EMAIL: "email",
    ConversationType.PHONE: "phone",
    ConversationType.CHAT: "chat",
}

# OPEN is not offered as a selectable status, so it has no name, icon or colour here
STATUSES: dict[ConversationStatus, str] = {
    ConversationStatus.ACTIVE: "active",
    ConversationStatus.PENDING: "pending",
    ConversationStatus.CLOSED: "closed",
    ConversationStatus.SPAM: "spam",
}

STATUS_ICONS: dict[ConversationStatus, str] = {
    ConversationStatus.ACTIVE: "ok",
    ConversationStatus.PENDING: "hourglass",
    ConversationStatus.CLOSED: "lock",
    ConversationStatus.SPAM: "ban-circle",
}

STATUS_COLORS: dict[ConversationStatus, str] = {
    ConversationStatus.ACTIVE: "success",
    ConversationStatus.PENDING: "default",
    ConversationStatus.CLOSED: "grey",
    ConversationStatus.SPAM: "danger",
}

STATES: dict[ConversationState, str] = {
    ConversationState.DRAFT: "draft",
    ConversationState.PUBLISHED: "published",
    ConversationState.DELETED: "deleted",
}

SOURCE_TYPES: dict[SourceType, str] = {
    SourceType.EMAIL: "email",
    SourceType.WEB: "web",
    SourceType.API: "api",
}

_STATUS_TITLES: dict[int, str] = {
    ConversationStatus.ACTIVE: "Active",
    ConversationStatus.PENDING: "Pending",
    ConversationStatus.CLOSED: "Closed",
    ConversationStatus.SPAM: "Spam",
    ConversationStatus.OPEN: "Open",
}

PREVIEW_MAXLENGTH = 255

# Set by the repositories only: never taken from a caller payload
GUARDED_FIELDS = frozenset({"id", "folder_id", "number"})


def get_status_name(status: int | None) -> str:
    """Human title of a status code; unknown codes give an empty string."""
    if status is None:
        return ""
    return _STATUS_TITLES.get(status, "")


class Conversation(Base):
    """
    SQLAlchemy model for a Conversation (a support ticket).

    A conversation lives in a mailbox, is sorted into one of the mailbox
    folders and holds the threads exchanged with a customer. Folder placement
    is derived from state, status and assignee (`resolve_folder_type`); the
    repository looks the folder up and stores `folder_id`.

    Everything here works on loaded attributes only. Operations that need to
    query (replies, folder lookup, nearby conversations) live in
    `ConversationRepository`.
    """
    __tablename__ = "conversations"
    __table_args__ = (
        UniqueConstraint("mailbox_id", "number", name="uq_conversations_mailbox_id_number"),
    )
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True
    )

    # Sequential per mailbox, assigned on insert (see _assign_number)
    number: Mapped[int] = mapped_column(
        Integer,
        nullable=False
    )

    threads_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0
    )

    type: Mapped[ConversationType] = mapped_column(
        IntEnumType(ConversationType),
        nullable=False,
        default=ConversationType.EMAIL
    )

    folder_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("folders.id"),
        nullable=True,
        index=True
    )

    status: Mapped[ConversationStatus] = mapped_column(
        IntEnumType(ConversationStatus),
        nullable=False,
        default=ConversationStatus.ACTIVE
    )

    state: Mapped[ConversationState] = mapped_column(
        IntEnumType(ConversationState),
        nullable=False,
        default=ConversationState.PUBLISHED
    )

    subject: Mapped[str | None] = mapped_column(
        String(998),
        nullable=True
    )

    # JSON lists of sanitized addresses, NULL when empty (see set_cc/set_bcc)
    cc: Mapped[list[str] | None] = mapped_column(
        JSON(none_as_null=True),
        nullable=True
    )

    bcc: Mapped[list[str] | None] = mapped_column(
        JSON(none_as_null=True),
        nullable=True
    )

    preview: Mapped[str] = mapped_column(
        String(PREVIEW_MAXLENGTH),
        nullable=False,
        default=""
    )

    # Imported from another system: no notifications are sent for it
    imported: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False
    )

    has_attachments: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False
    )

    mailbox_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("mailboxes.id"),
        nullable=False,
        index=True
    )

    # Assignee
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=True,
        index=True
    )

    customer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("customers.id"),
        nullable=False,
        index=True
    )

    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=True
    )

    created_by_customer_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("customers.id"),
        nullable=True
    )

    source_via: Mapped[Person] = mapped_column(
        IntEnumType(Person),
        nullable=False,
        default=Person.CUSTOMER
    )

    source_type: Mapped[SourceType | None] = mapped_column(
        IntEnumType(SourceType),
        nullable=True
    )

    closed_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=True
    )

    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )

    # Last time a user changed status or assignee
    user_updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )

    last_reply_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )

    last_reply_from: Mapped[Person | None] = mapped_column(
        IntEnumType(Person),
        nullable=True
    )

    # Set client-side too: folder navigation compares these with sub-second precision
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now,
        nullable=False
    )

    # --- Relationships ---

    # Many-to-One: the assignee
    user: Mapped["User | None"] = relationship(
        "User",
        back_populates="conversations",
        foreign_keys=[user_id]
    )

    folder: Mapped["Folder | None"] = relationship(
        "Folder",
        back_populates="conversations"
    )

    mailbox: Mapped["Mailbox"] = relationship(
        "Mailbox",
        back_populates="conversations"
    )

    customer: Mapped["Customer"] = relationship(
        "Customer",
        back_populates="conversations",
        foreign_keys=[customer_id]
    )

    created_by_user: Mapped["User | None"] = relationship(
        "User",
        foreign_keys=[created_by_user_id]
    )

    created_by_customer: Mapped["Customer | None"] = relationship(
        "Customer",
        foreign_keys=[created_by_customer_id]
    )

    closed_by_user: Mapped["User | None"] = relationship(
        "User",
        foreign_keys=[closed_by_user_id]
    )

    # One-to-Many: threads in the order they were written
    threads: Mapped[list["Thread"]] = relationship(
        "Thread",
        back_populates="conversation",
        cascade="all, delete-orphan",
        lazy="select",
        order_by="Thread.created_at"
    )

    # --- Status helpers ---

    def is_active(self) -> bool:
        return self.status == ConversationStatus.ACTIVE

    @property
    def status_name(self) -> str:
        return get_status_name(self.status)

    @property
    def status_icon(self) -> str:
        return STATUS_ICONS.get(self.status, "")

    @property
    def status_color(self) -> str:
        return STATUS_COLORS.get(self.status, "")

    # --- Folder placement ---

    def resolve_folder_type(self) -> FolderType:
        """
        Folder type this conversation belongs in.

        State wins over status, status wins over assignment:
        draft -> DRAFTS, deleted -> DELETED, spam -> SPAM, closed -> CLOSED,
        then ASSIGNED or UNASSIGNED depending on `user_id`.
        """
        if self.state == ConversationState.DRAFT:
            return FolderType.DRAFTS
        if self.state == ConversationState.DELETED:
            return FolderType.DELETED
        if self.status == ConversationStatus.SPAM:
            return FolderType.SPAM
        if self.status == ConversationStatus.CLOSED:
            return FolderType.CLOSED
        if self.user_id:
            return FolderType.ASSIGNED
        return FolderType.UNASSIGNED

    # --- Display ---

    def set_preview(self, text: str | None = "") -> str:
        """
        Store the first PREVIEW_MAXLENGTH characters of `text` with HTML tags removed.

        Falling back to the first thread body when `text` is empty needs a
        query, see `ConversationRepository.set_preview`.
        """
        plain = BeautifulSoup(text, "html.parser").get_text() if text else ""
        self.preview = plain[:PREVIEW_MAXLENGTH]
        return self.preview

    def get_date_title(self, tz_name: str = "UTC") -> str:
        """
        Tooltip for the conversation date in lists.

        A conversation with a single thread shows who created it and when;
        otherwise who replied last and when, in `tz_name`.
        """
        if self.threads_count == 1:
            person, date, label = self.source_via, self.created_at, "Created by"
        else:
            # Last reply fields on purpose: the title describes the latest message
            person = self.last_reply_from or self.source_via
            date = self.last_reply_at or self.created_at
            label = "Last reply by"

        person_name = PERSONS.get(person, "").capitalize()
        date_text = format_short(date, tz_name) if date else ""
        return f"{label} {person_name}<br/>{date_text}"

    # --- Recipients ---

    def set_cc(self, emails: Iterable[str] | str | None) -> None:
        self.cc = self.sanitize_emails(emails) or None

    def set_bcc(self, emails: Iterable[str] | str | None) -> None:
        self.bcc = self.sanitize_emails(emails) or None

    def get_cc_list(self) -> list[str]:
        return list(self.cc) if self.cc else []

    def get_bcc_list(self) -> list[str]:
        return list(self.bcc) if self.bcc else []

    @staticmethod
    def sanitize_emails(emails: Iterable[str] | str | None) -> list[str]:
        """
        Sanitize a list of addresses or a comma separated string of them.
        Invalid entries are dropped; order is kept.
        """
        if not emails:
            return []
        if isinstance(emails, str):
            emails = emails.split(",")

        sanitized = []
        for email in emails:
            clean = Email.sanitize_email(email)
            if clean:
                sanitized.append(clean)
        return sanitized

    def __repr__(self) -> str:
        return (
            f"<Conversation(id={self.id!r}, number={self.number!r}, "
            f"status={self.status!r}, mailbox_id={self.mailbox_id!r})>"
        )


@event.listens_for(Conversation, "before_insert")
def _assign_number(mapper, connection, target: Conversation) -> None:
    """Give a new conversation the next number of its mailbox (1 for the first), always."""
    table = Conversation.__table__
    last_number = connection.execute(
        select(func.coalesce(func.max(table.c.number), 0))
        .where(table.c.mailbox_id == target.mailbox_id)
    ).scalar_one()
    target.number = last_number + 1
