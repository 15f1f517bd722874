from sqlalchemy import String, DateTime, Boolean, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from datetime import datetime
from helpdesk.database.base import Base
from helpdesk.utils.dates import localize
import uuid
from typing import TYPE_CHECKING

# Avoid circular import issues when using type hints for related models
if TYPE_CHECKING:
    from .conversation import Conversation

class User(Base):
    """
    SQLAlchemy model for a helpdesk User (support agent).

    Users answer conversations and can be their assignee. Each user renders dates
    in their own timezone (see `date_format`).
    """
    __tablename__ = "users"
    __mapper_args__ = {"eager_defaults": True}

    # Unique identifier for the user (primary key)
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True
    )

    first_name: Mapped[str] = mapped_column(
        String(20),
        nullable=False
    )

    last_name: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=""
    )

    # Login email (unique, stored lowercased by UserRepository)
    email: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False
    )

    # Hashed password (never store plain-text passwords)
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False
    )

    # IANA timezone name used when rendering dates for this user
    timezone: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="UTC"
    )

    # Whether the account is active (deactivated agents keep their history)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
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

    # One-to-Many: conversations currently assigned to this user
    conversations: Mapped[list["Conversation"]] = relationship(
        "Conversation",
        back_populates="user",
        foreign_keys="Conversation.user_id",
        lazy="select"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def date_format(self, date: datetime, fmt: str = "%b %d, %Y %H:%M") -> str:
        """
        Render `date` in this user's timezone.

        Naive datetimes (SQLite returns them) are taken to be UTC.
        """
        return localize(date, self.timezone).strftime(fmt)

    def __repr__(self) -> str:
        return f"<User(id={self.id!r}, email={self.email!r})>"

