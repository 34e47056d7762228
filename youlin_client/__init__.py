from .chat import ChatSession, ChatState, EphemeralConversation, PersistedConversation
from .config import ClientSettings
from .errors import ClientConfigError, ClientError, ClientValidationError, GatewayError
from .feed import ListingFeed
from .gateway import Gateway
from .marketplace import Marketplace, Modal, Toast
from .session import Identity, SessionContext

__all__ = [
    "ChatSession",
    "ChatState",
    "EphemeralConversation",
    "PersistedConversation",
    "ClientSettings",
    "ClientConfigError",
    "ClientError",
    "ClientValidationError",
    "GatewayError",
    "ListingFeed",
    "Gateway",
    "Marketplace",
    "Modal",
    "Toast",
    "Identity",
    "SessionContext",
]
