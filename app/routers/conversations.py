import logging
import uuid
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends
from sqlalchemy import or_
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from ..auth import get_current_user, get_db
from ..config import settings
from ..errors import Forbidden, NotFound, RateLimited, SelfChatNotAllowed, ValidationFailed
from ..models import Conversation, Listing, Message, User
from ..schemas import (
    ConversationOut,
    ConversationsListOut,
    MessageIn,
    MessageOut,
    MessagesListOut,
    OpenConversationIn,
    OpenConversationOut,
)
from .listings import parse_id


logger = logging.getLogger("youlin.chat")

router = APIRouter(prefix="/conversations", tags=["conversations"])

_MISSING_TABLE_MARKERS = ("does not exist", "no such table", "undefinedtable")


def is_missing_table_error(exc: Exception) -> bool:
    text = str(getattr(exc, "orig", exc)).lower()
    return any(marker in text for marker in _MISSING_TABLE_MARKERS)


def _conv_out(c: Conversation) -> ConversationOut:
    return ConversationOut(
        id=str(c.id),
        item_id=str(c.item_id),
        participant1_id=str(c.participant1_id),
        participant2_id=str(c.participant2_id),
        created_at=c.created_at,
        last_message_at=c.last_message_at,
    )


def _msg_out(m: Message) -> MessageOut:
    return MessageOut(
        id=str(m.id),
        conversation_id=str(m.conversation_id),
        sender_id=str(m.sender_id),
        receiver_id=str(m.receiver_id),
        content=m.content,
        item_id=str(m.item_id) if m.item_id else None,
        created_at=m.created_at,
    )


def _history(db: Session, conversation_id: uuid.UUID) -> list[MessageOut]:
    rows = (
        db.query(Message)
        .filter(Message.conversation_id == conversation_id)
        .order_by(Message.created_at.asc())
        .all()
    )
    return [_msg_out(m) for m in rows]


def _resolve_or_create(db: Session, listing: Listing, user: User) -> Conversation:
    candidates = db.query(Conversation).filter(Conversation.item_id == listing.id).all()
    for c in candidates:
        if c.has_pair(user.id, listing.user_id):
            return c
    c = Conversation(item_id=listing.id, participant1_id=user.id, participant2_id=listing.user_id)
    db.add(c)
    db.flush()
    logger.info("conversation %s opened on listing %s", c.id, listing.id)
    return c


def _participant_conversation(db: Session, conversation_id: str, user: User) -> Conversation:
    c = db.get(Conversation, parse_id(conversation_id, "Conversation"))
    if c is None:
        raise NotFound("Conversation not found")
    if user.id not in (c.participant1_id, c.participant2_id):
        raise Forbidden("Not a participant of this conversation")
    return c


@router.post("/open", response_model=OpenConversationOut)
def open_conversation(payload: OpenConversationIn, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    listing = db.get(Listing, parse_id(payload.listing_id))
    if listing is None or listing.status != "active":
        raise NotFound("Listing not found")
    if listing.user_id == user.id:
        raise SelfChatNotAllowed()
    listing_id, owner_id, user_id = listing.id, listing.user_id, user.id
    try:
        c = _resolve_or_create(db, listing, user)
    except (ProgrammingError, OperationalError) as exc:
        if not is_missing_table_error(exc):
            raise
        db.rollback()
        logger.warning("conversations table unavailable, answering with an ephemeral conversation: %s", exc)
        return OpenConversationOut(
            kind="ephemeral",
            conversation=ConversationOut(
                id=None,
                item_id=str(listing_id),
                participant1_id=str(user_id),
                participant2_id=str(owner_id),
                created_at=datetime.utcnow(),
            ),
            messages=[],
        )
    return OpenConversationOut(kind="persisted", conversation=_conv_out(c), messages=_history(db, c.id))


@router.get("", response_model=ConversationsListOut)
def inbox(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    rows = (
        db.query(Conversation)
        .filter(or_(Conversation.participant1_id == user.id, Conversation.participant2_id == user.id))
        .all()
    )
    rows.sort(key=lambda c: c.last_message_at or c.created_at, reverse=True)
    return ConversationsListOut(conversations=[_conv_out(c) for c in rows])


@router.get("/{conversation_id}/messages", response_model=MessagesListOut)
def get_messages(conversation_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    c = _participant_conversation(db, conversation_id, user)
    return MessagesListOut(messages=_history(db, c.id))


@router.post("/{conversation_id}/messages", response_model=MessageOut)
def send_message(conversation_id: str, payload: MessageIn, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    c = _participant_conversation(db, conversation_id, user)
    content = payload.content.strip()
    if not content:
        raise ValidationFailed("Message cannot be empty", code="empty_message")
    window = datetime.utcnow() - timedelta(seconds=60)
    sent = db.query(Message).filter(Message.sender_id == user.id, Message.created_at >= window).count()
    if sent >= settings.CHAT_USER_MSGS_PER_MINUTE:
        raise RateLimited("Sending too fast, please slow down", details={"retry_after": 60})
    m = Message(
        conversation_id=c.id,
        sender_id=user.id,
        receiver_id=c.other_participant(user.id),
        content=content,
        item_id=c.item_id,
    )
    db.add(m)
    db.flush()
    c.last_message_at = m.created_at
    db.flush()
    return _msg_out(m)
