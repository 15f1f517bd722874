r"""
Centralized access to all helpdesk database models.

Importing this package registers every mapped class on `Base.metadata`, which
relationship strings ("Thread", "Folder", ...) and `create_all` rely on.

Example:

from helpdesk.models import Conversation, ConversationStatus, Folder, FolderType
"""

from .user import User
from .mailbox import Mailbox
from .folder import Folder, FolderType, MAILBOX_FOLDER_TYPES, USER_FOLDER_TYPES
from .customer import Customer, Email
from .conversation import (
    Conversation,
    ConversationState,
    ConversationStatus,
    ConversationType,
    Person,
    SourceType,
    PREVIEW_MAXLENGTH,
    GUARDED_FIELDS,
    get_status_name,
)
from .thread import Thread, ThreadState, ThreadType, REPLY_TYPES

__all__ = [
    "User",
    "Mailbox",
    "Folder",
    "FolderType",
    "MAILBOX_FOLDER_TYPES",
    "USER_FOLDER_TYPES",
    "Customer",
    "Email",
    "Conversation",
    "ConversationState",
    "ConversationStatus",
    "ConversationType",
    "Person",
    "SourceType",
    "PREVIEW_MAXLENGTH",
    "GUARDED_FIELDS",
    "get_status_name",
    "Thread",
    "ThreadState",
    "ThreadType",
    "REPLY_TYPES",
]
