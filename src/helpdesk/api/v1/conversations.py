"""
Conversation routes: read a conversation, change its status or assignee,
and find its neighbour in the folder list.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.config import Settings
from helpdesk.core.dependencies import (
    get_app_settings,
    get_conversation_repository,
    get_user_repository,
)
from helpdesk.database.session import get_async_session
from helpdesk.exceptions.base import NotFoundError
from helpdesk.models.conversation import Conversation
from helpdesk.repositories import ConversationRepository, UserRepository
from helpdesk.schemas.conversation import (
    ConversationAssigneeUpdate,
    ConversationResponse,
    ConversationStatusUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/conversations", tags=["conversations"])


def to_response(conversation: Conversation, settings: Settings) -> ConversationResponse:
    response = ConversationResponse.model_validate(conversation)
    response.date_title = conversation.get_date_title(settings.APP_TIMEZONE)
    return response


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: UUID,
    repo: ConversationRepository = Depends(get_conversation_repository),
    settings: Settings = Depends(get_app_settings),
):
    conversation = await repo.get_by_id_or_raise(conversation_id)
    return to_response(conversation, settings)


@router.post("/{conversation_id}/status", response_model=ConversationResponse)
async def change_status(
    conversation_id: UUID,
    payload: ConversationStatusUpdate,
    db: AsyncSession = Depends(get_async_session),
    repo: ConversationRepository = Depends(get_conversation_repository),
    users: UserRepository = Depends(get_user_repository),
    settings: Settings = Depends(get_app_settings),
):
    """Set the status; closing with `user_id` records who closed it."""
    conversation = await repo.get_by_id_or_raise(conversation_id)
    user = await users.get_by_id_or_raise(payload.user_id) if payload.user_id else None

    await repo.set_status(conversation, payload.status, user=user)
    await db.commit()
    return to_response(conversation, settings)


@router.post("/{conversation_id}/assignee", response_model=ConversationResponse)
async def change_assignee(
    conversation_id: UUID,
    payload: ConversationAssigneeUpdate,
    db: AsyncSession = Depends(get_async_session),
    repo: ConversationRepository = Depends(get_conversation_repository),
    users: UserRepository = Depends(get_user_repository),
    settings: Settings = Depends(get_app_settings),
):
    """Assign to `user_id`, or unassign with null."""
    conversation = await repo.get_by_id_or_raise(conversation_id)
    if payload.user_id is not None:
        await users.get_by_id_or_raise(payload.user_id)

    await repo.set_user(conversation, payload.user_id)
    await db.commit()
    return to_response(conversation, settings)


@router.get("/{conversation_id}/nearby", response_model=ConversationResponse)
async def get_nearby_conversation(
    conversation_id: UUID,
    mode: str = Query("closest", description="next, prev or closest"),
    repo: ConversationRepository = Depends(get_conversation_repository),
    settings: Settings = Depends(get_app_settings),
):
    conversation = await repo.get_by_id_or_raise(conversation_id)
    nearby = await repo.get_nearby(conversation, mode=mode)
    if nearby is None:
        raise NotFoundError(f"No {mode} conversation in this folder", fields=["mode"])
    return to_response(nearby, settings)
