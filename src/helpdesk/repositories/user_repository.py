"""
User repository: helpdesk agents (lookup by email, activation, assigned conversations).
"""

import logging
from uuid import UUID

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from helpdesk.exceptions.mapper import db_error_handler
from helpdesk.models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for User (agent) operations.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(
        self,
        first_name: str,
        email: str,
        hashed_password: str,
        last_name: str = "",
        timezone: str = "UTC",
        is_active: bool = True
    ) -> User:
        """
        Create an agent. The email is stored trimmed and lowercased.

        Raises:
            DuplicateError: the email is already used by another user.
        """
        logger.info("repo.user.create", extra={"email_domain": email.rpartition("@")[2]})
        return await self.create(
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            email=email.strip().lower(),
            hashed_password=hashed_password,
            timezone=timezone,
            is_active=is_active
        )

    async def get_by_email(self, email: str) -> User | None:
        """Lookup by email, case-insensitive."""
        async with db_error_handler(self.db, "User"):
            result = await self.db.execute(select(User).where(User.email == email.strip().lower()))
            user = result.scalar_one_or_none()
        logger.debug("repo.user.get_by_email", extra={"found": user is not None})
        return user

    async def email_exists(self, email: str) -> bool:
        return await self.get_by_email(email) is not None

    async def get_with_conversations(self, user_id: UUID) -> User | None:
        """
        User with the conversations assigned to them eagerly loaded
        (lazy loading is not available under AsyncSession).
        """
        async with db_error_handler(self.db, "User"):
            result = await self.db.execute(
                select(User)
                .where(User.id == user_id)
                .options(selectinload(User.conversations))
            )
            return result.scalar_one_or_none()

    async def get_active_users(self, offset: int = 0, limit: int = 100) -> list[User]:
        query = (
            select(User)
            .where(User.is_active.is_(True))
            .order_by(User.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        async with db_error_handler(self.db, "User"):
            result = await self.db.execute(query)
            users = list(result.scalars().all())
        logger.debug("repo.user.get_active_users", extra={"count": len(users)})
        return users

    async def search_users(self, search_term: str, active_only: bool = True,
                           offset: int = 0, limit: int = 50) -> list[User]:
        """Case-insensitive match on first name, last name or email."""
        pattern = f"%{search_term.strip().lower()}%"
        query = select(User).where(
            or_(
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.email.ilike(pattern),
            )
        )
        if active_only:
            query = query.where(User.is_active.is_(True))
        query = query.order_by(User.first_name, User.last_name).offset(offset).limit(limit)

        async with db_error_handler(self.db, "User"):
            result = await self.db.execute(query)
            return list(result.scalars().all())

    async def activate_user(self, user_id: UUID) -> User | None:
        logger.info("repo.user.activate", extra={"user_id": str(user_id)})
        return await self.update(user_id, is_active=True)

    async def deactivate_user(self, user_id: UUID) -> User | None:
        """Deactivated agents keep their conversations and history."""
        logger.info("repo.user.deactivate", extra={"user_id": str(user_id)})
        return await self.update(user_id, is_active=False)
