"""
Pydantic schemas for the Conversation API
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from helpdesk.models.conversation import (
    ConversationState,
    ConversationStatus,
    ConversationType,
    Person,
)


class ConversationResponse(BaseModel):
    """Conversation as returned by the API; enum fields are serialized as their codes."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    number: int
    mailbox_id: UUID
    folder_id: Optional[UUID] = None
    customer_id: UUID
    user_id: Optional[UUID] = Field(None, description="Assignee")

    type: ConversationType
    status: ConversationStatus
    status_name: str
    status_icon: str
    status_color: str
    state: ConversationState

    subject: Optional[str] = None
    preview: str = ""
    cc: Optional[List[str]] = None
    bcc: Optional[List[str]] = None
    threads_count: int = 0
    has_attachments: bool = False

    source_via: Person
    last_reply_from: Optional[Person] = None
    last_reply_at: Optional[datetime] = None
    closed_by_user_id: Optional[UUID] = None
    closed_at: Optional[datetime] = None
    user_updated_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    date_title: Optional[str] = Field(None, description="Created by / Last reply by tooltip")


class ConversationStatusUpdate(BaseModel):
    status: ConversationStatus
    user_id: Optional[UUID] = Field(None, description="User changing the status; recorded as closer when closing")


class ConversationAssigneeUpdate(BaseModel):
    user_id: Optional[UUID] = Field(..., description="New assignee, null to unassign")
