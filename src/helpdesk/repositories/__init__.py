from .base_repository import BaseRepository
from .conversation_repository import ConversationRepository, NEARBY_MODES
from .customer_repository import CustomerRepository
from .mailbox_repository import MailboxRepository
from .thread_repository import ThreadRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "ConversationRepository",
    "NEARBY_MODES",
    "CustomerRepository",
    "MailboxRepository",
    "ThreadRepository",
    "UserRepository",
]
