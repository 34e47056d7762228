import enum
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Union

from .errors import ClientValidationError
from .gateway import Gateway


logger = logging.getLogger("youlin.client")


class ChatState(enum.Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    ACTIVE = "active"


@dataclass
class PersistedConversation:
    id: str
    item_id: str
    participant1_id: str
    participant2_id: str

    def other(self, user_id: str) -> str:
        return self.participant2_id if self.participant1_id == user_id else self.participant1_id


@dataclass
class EphemeralConversation:
    """Local-only thread used while the service cannot store conversations."""

    item_id: str
    participant1_id: str
    participant2_id: str
    messages: list[dict] = field(default_factory=list)

    def other(self, user_id: str) -> str:
        return self.participant2_id if self.participant1_id == user_id else self.participant1_id


Conversation = Union[PersistedConversation, EphemeralConversation]


class ChatSession:
    """Chat about one listing between the viewer and its owner."""

    def __init__(self, gateway: Gateway, user_id: str):
        self.gateway = gateway
        self.user_id = user_id
        self.state = ChatState.IDLE
        self.conversation: Conversation | None = None
        self.messages: list[dict] = []

    @property
    def is_ephemeral(self) -> bool:
        return isinstance(self.conversation, EphemeralConversation)

    def open(self, listing: dict) -> Conversation:
        if listing["user_id"] == self.user_id:
            raise ClientValidationError("You cannot chat with yourself", code="cannot_chat_with_self")
        self.state = ChatState.RESOLVING
        try:
            data = self.gateway.open_conversation(listing["id"])
        except Exception:
            self.state = ChatState.IDLE
            raise
        conv = data["conversation"]
        if data["kind"] == "ephemeral":
            logger.info("chat on listing %s is local-only", listing["id"])
            self.conversation = EphemeralConversation(
                item_id=conv["item_id"],
                participant1_id=conv["participant1_id"],
                participant2_id=conv["participant2_id"],
            )
            self.messages = self.conversation.messages
        else:
            self.conversation = PersistedConversation(
                id=conv["id"],
                item_id=conv["item_id"],
                participant1_id=conv["participant1_id"],
                participant2_id=conv["participant2_id"],
            )
            self.messages = list(data["messages"])
        self.state = ChatState.ACTIVE
        return self.conversation

    def send(self, content: str) -> dict:
        if self.state is not ChatState.ACTIVE or self.conversation is None:
            raise ClientValidationError("No open conversation", code="no_conversation")
        content = content.strip()
        if not content:
            raise ClientValidationError("Message cannot be empty", code="empty_message")
        conv = self.conversation
        if isinstance(conv, EphemeralConversation):
            msg = {
                "id": f"local-{uuid.uuid4().hex}",
                "conversation_id": None,
                "sender_id": self.user_id,
                "receiver_id": conv.other(self.user_id),
                "content": content,
                "item_id": conv.item_id,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }
        else:
            msg = self.gateway.send_message(conv.id, content)
        self.messages.append(msg)
        return msg

    def reload(self) -> list[dict]:
        """Re-read the stored history; local-only threads have nothing to fetch."""
        if isinstance(self.conversation, PersistedConversation):
            self.messages = self.gateway.conversation_messages(self.conversation.id)
        return self.messages

    def close(self) -> None:
        self.state = ChatState.IDLE
        self.conversation = None
        self.messages = []
