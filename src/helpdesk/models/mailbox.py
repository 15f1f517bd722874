from sqlalchemy import String, DateTime, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from datetime import datetime
from helpdesk.database.base import Base
import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .folder import Folder
    from .conversation import Conversation

class Mailbox(Base):
    """
    SQLAlchemy model for a Mailbox.

    A mailbox is a support inbox (e.g. support@example.com). It owns the folders
    conversations are sorted into and the conversations themselves; conversation
    numbers are sequential per mailbox.
    """
    __tablename__ = "mailboxes"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True
    )

    # Display name, e.g. "Support"
    name: Mapped[str] = mapped_column(
        String(40),
        nullable=False
    )

    # Address customers write to (unique across mailboxes)
    email: Mapped[str] = mapped_column(
        String(128),
        unique=True,
        index=True,
        nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    # --- Relationships ---

    # One-to-Many: shared folders plus per-user Mine/Starred folders
    folders: Mapped[list["Folder"]] = relationship(
        "Folder",
        back_populates="mailbox",
        cascade="all, delete-orphan",
        lazy="select"
    )

    # One-to-Many: every conversation of the mailbox, regardless of folder
    conversations: Mapped[list["Conversation"]] = relationship(
        "Conversation",
        back_populates="mailbox",
        cascade="all, delete-orphan",
        lazy="select"
    )

    def __repr__(self) -> str:
        return f"<Mailbox(id={self.id!r}, name={self.name!r}, email={self.email!r})>"
