import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, DateTime, ForeignKey, Index, Uuid, CheckConstraint
)
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


def default_uuid():
    return uuid.uuid4()


LISTING_TYPES = ("offer", "seek")
LISTING_STATUSES = ("active", "inactive")


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=default_uuid)
    email = Column(String(254), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    profile = relationship("Profile", back_populates="user", uselist=False)
    listings = relationship("Listing", back_populates="owner")


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), primary_key=True)
    energy = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    user = relationship("User", back_populates="profile")


class Listing(Base):
    __tablename__ = "items"
    __table_args__ = (
        Index("ix_items_city_status_created", "city", "status", "created_at"),
        CheckConstraint("type in ('offer', 'seek')", name="ck_items_type"),
        CheckConstraint("status in ('active', 'inactive')", name="ck_items_status"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=default_uuid)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(128), nullable=False)
    description = Column(String(2048), nullable=False, default="")
    type = Column(String(8), nullable=False)  # offer|seek
    city = Column(String(64), nullable=False)
    area = Column(String(128), nullable=True)
    status = Column(String(16), nullable=False, default="active")  # active|inactive
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    owner = relationship("User", back_populates="listings")


class Conversation(Base):
    __tablename__ = "conversations"
    __table_args__ = (
        Index("ix_conversations_item", "item_id"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=default_uuid)
    item_id = Column(Uuid(as_uuid=True), ForeignKey("items.id"), nullable=False)
    participant1_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)  # initiator
    participant2_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)  # listing owner
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    last_message_at = Column(DateTime, nullable=True)

    def has_pair(self, a: uuid.UUID, b: uuid.UUID) -> bool:
        return {self.participant1_id, self.participant2_id} == {a, b}

    def other_participant(self, user_id: uuid.UUID) -> uuid.UUID:
        return self.participant2_id if self.participant1_id == user_id else self.participant1_id


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_conversation_created", "conversation_id", "created_at"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=default_uuid)
    conversation_id = Column(Uuid(as_uuid=True), ForeignKey("conversations.id"), nullable=False)
    sender_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    receiver_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    content = Column(String(2000), nullable=False)
    item_id = Column(Uuid(as_uuid=True), ForeignKey("items.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
