from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.config import Settings, get_settings
from helpdesk.database.session import get_async_session
from helpdesk.repositories import ConversationRepository, UserRepository


async def get_conversation_repository(
    db: AsyncSession = Depends(get_async_session),
) -> ConversationRepository:
    return ConversationRepository(db)


async def get_user_repository(
    db: AsyncSession = Depends(get_async_session),
) -> UserRepository:
    return UserRepository(db)


def get_app_settings() -> Settings:
    return get_settings()
