from sqlalchemy import Text, DateTime, ForeignKey, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from datetime import datetime
from enum import IntEnum
from helpdesk.database.base import Base
from helpdesk.database.types import IntEnumType
from helpdesk.utils.dates import utc_now
from .conversation import ConversationStatus, Person, SourceType
import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .conversation import Conversation


class ThreadType(IntEnum):
    CUSTOMER = 1    # written by the customer
    MESSAGE = 2     # reply sent by a user
    NOTE = 3        # internal note, never sent
    LINEITEM = 4    # system line ("status changed to Closed", ...)


class ThreadState(IntEnum):
    DRAFT = 1
    PUBLISHED = 2
    HIDDEN = 3
    REVIEW = 4


# Thread types that count as a reply to the conversation
REPLY_TYPES = (ThreadType.CUSTOMER, ThreadType.MESSAGE)


class Thread(Base):
    """
    SQLAlchemy model for a Thread: one message, reply, note or line item
    inside a conversation.
    """
    __tablename__ = "threads"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True
    )

    conversation_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    type: Mapped[ThreadType] = mapped_column(
        IntEnumType(ThreadType),
        nullable=False
    )

    state: Mapped[ThreadState] = mapped_column(
        IntEnumType(ThreadState),
        nullable=False,
        default=ThreadState.PUBLISHED
    )

    # Thread statuses share their codes with conversation statuses
    status: Mapped[ConversationStatus] = mapped_column(
        IntEnumType(ConversationStatus),
        nullable=False,
        default=ConversationStatus.ACTIVE
    )

    body: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default=""
    )

    source_via: Mapped[Person] = mapped_column(
        IntEnumType(Person),
        nullable=False
    )

    source_type: Mapped[SourceType | None] = mapped_column(
        IntEnumType(SourceType),
        nullable=True
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

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
        index=True
    )

    # --- Relationships ---

    conversation: Mapped["Conversation"] = relationship(
        "Conversation",
        back_populates="threads"
    )

    def is_reply(self) -> bool:
        return self.type in REPLY_TYPES

    def __repr__(self) -> str:
        return f"<Thread(id={self.id!r}, type={self.type!r}, conversation_id={self.conversation_id!r})>"
