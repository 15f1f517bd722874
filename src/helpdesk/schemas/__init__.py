from .conversation import (
    ConversationResponse,
    ConversationStatusUpdate,
    ConversationAssigneeUpdate,
)

__all__ = [
    "ConversationResponse",
    "ConversationStatusUpdate",
    "ConversationAssigneeUpdate",
]
