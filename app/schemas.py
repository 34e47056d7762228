from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime


ListingType = Literal["offer", "seek"]


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class CredentialsIn(BaseModel):
    email: str = Field(min_length=3, max_length=254)
    password: str = Field(min_length=6, max_length=128)


class TierOut(BaseModel):
    title: str
    color: str
    can_seek: bool
    min_energy: int


class SessionOut(BaseModel):
    user_id: str
    email: str
    energy: int
    tier: TierOut
    can_post_seek: bool


class ProfileOut(BaseModel):
    user_id: str
    email: str
    energy: int
    tier: TierOut
    active_listings: int


class TiersOut(BaseModel):
    policy: str
    tiers: List[TierOut]


class ListingCreateIn(BaseModel):
    title: str = Field(max_length=128)
    description: str = Field(default="", max_length=2048)
    type: ListingType = "offer"
    city: str = Field(min_length=1, max_length=64)
    area: Optional[str] = Field(default=None, max_length=128)


class ListingUpdateIn(BaseModel):
    title: str = Field(max_length=128)
    description: str = Field(default="", max_length=2048)
    type: ListingType
    area: Optional[str] = Field(default=None, max_length=128)


class ListingOut(BaseModel):
    id: str
    title: str
    description: str
    type: ListingType
    city: str
    area: Optional[str] = None
    status: str
    user_id: str
    created_at: datetime


class ListingsListOut(BaseModel):
    listings: List[ListingOut]


class ListingCreatedOut(BaseModel):
    listing: ListingOut
    energy: int
    energy_delta: int


class MatchedOut(BaseModel):
    detail: str
    matched: int


class OpenConversationIn(BaseModel):
    listing_id: str


class ConversationOut(BaseModel):
    id: Optional[str] = None
    item_id: str
    participant1_id: str
    participant2_id: str
    created_at: datetime
    last_message_at: Optional[datetime] = None


class MessageIn(BaseModel):
    content: str = Field(min_length=1, max_length=2000)


class MessageOut(BaseModel):
    id: str
    conversation_id: str
    sender_id: str
    receiver_id: str
    content: str
    item_id: Optional[str] = None
    created_at: datetime


class MessagesListOut(BaseModel):
    messages: List[MessageOut]


class OpenConversationOut(BaseModel):
    kind: Literal["persisted", "ephemeral"]
    conversation: ConversationOut
    messages: List[MessageOut]


class ConversationsListOut(BaseModel):
    conversations: List[ConversationOut]


class CitiesOut(BaseModel):
    default: str
    cities: List[str]
