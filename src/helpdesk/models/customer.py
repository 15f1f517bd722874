from sqlalchemy import String, DateTime, ForeignKey, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from datetime import datetime
from helpdesk.database.base import Base
import re
import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .conversation import Conversation

# "Jane Doe <jane@example.com>" -> "jane@example.com"
_ANGLE_ADDR = re.compile(r"<([^<>]*)>")
_DOTS_BEFORE_AT = re.compile(r"\.+@")


class Customer(Base):
    """
    SQLAlchemy model for a Customer: the external person a conversation is with.
    A customer can write from several addresses (see `Email`).
    """
    __tablename__ = "customers"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True
    )

    first_name: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=""
    )

    last_name: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=""
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

    emails: Mapped[list["Email"]] = relationship(
        "Email",
        back_populates="customer",
        cascade="all, delete-orphan",
        lazy="select"
    )

    conversations: Mapped[list["Conversation"]] = relationship(
        "Conversation",
        back_populates="customer",
        foreign_keys="Conversation.customer_id",
        lazy="select"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Customer(id={self.id!r}, name={self.full_name!r})>"


class Email(Base):
    """
    A customer email address. Addresses are stored sanitized (see `sanitize_email`).
    """
    __tablename__ = "emails"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True
    )

    customer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    email: Mapped[str] = mapped_column(
        String(191),
        unique=True,
        index=True,
        nullable=False
    )

    customer: Mapped["Customer"] = relationship(
        "Customer",
        back_populates="emails"
    )

    @staticmethod
    def sanitize_email(value: str | None) -> str | None:
        """
        Normalize a single address, or return None if it is not usable.

        Accepts the display form (`Jane <Jane@Example.com>`), lowercases,
        and drops trailing dots and dots right before the `@`
        (`john.@example.com.` -> `john@example.com`).
        """
        if not value:
            return None

        email = value.strip()
        match = _ANGLE_ADDR.search(email)
        if match:
            email = match.group(1).strip()

        email = email.lower().rstrip(".")
        email = _DOTS_BEFORE_AT.sub("@", email)

        local, sep, domain = email.partition("@")
        if not sep or not local or not domain or "@" in domain:
            return None
        if any(ch.isspace() for ch in email) or domain.startswith("."):
            return None
        return email

    def __repr__(self) -> str:
        return f"<Email(email={self.email!r}, customer_id={self.customer_id!r})>"
