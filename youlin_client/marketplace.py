"""View state for the single-page marketplace.

`Marketplace` is what a UI binds to: it owns the current city/area filter, the
visible listings, the active modal, a transient toast and the open chat. Each
public method is one user intent; failures end up as an error toast and leave
the rest of the state as it was.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Callable

from .chat import ChatSession, EphemeralConversation
from .errors import ClientError, ClientValidationError, GatewayError
from .feed import ListingFeed
from .gateway import Gateway
from .session import Identity, SessionContext


logger = logging.getLogger("youlin.client")

DEFAULT_CITY = "上海市"


class Modal(enum.Enum):
    PUBLISH = "publish"
    EDIT = "edit"
    DETAIL = "detail"
    CHAT = "chat"
    AUTH = "auth"
    CITY = "city"
    PROFILE = "profile"
    INBOX = "inbox"


@dataclass(frozen=True)
class Toast:
    message: str
    kind: str = "info"  # success|error|info


class Marketplace:
    def __init__(self, gateway: Gateway, city: str = DEFAULT_CITY):
        self.gateway = gateway
        self.session = SessionContext(gateway)
        self.feed = ListingFeed(gateway, city)
        self.active_modal: Modal | None = None
        self.selected: dict | None = None
        self.editing: dict | None = None
        self.my_listings: list[dict] = []
        self.chat: ChatSession | None = None
        self.toast: Toast | None = None
        self.profile: dict | None = None
        self.cities: list[str] = []

    # lifecycle

    def attach(self, token: str | None = None) -> None:
        self.session.attach(self._on_identity)
        self.session.restore(token)
        self.refresh()

    def detach(self) -> None:
        self.session.detach()
        self.close_modal()

    def _on_identity(self, identity: Identity | None) -> None:
        if identity is None:
            self.my_listings = []
            self.profile = None
            if self.chat is not None:
                self.chat.close()
                self.chat = None

    # helpers

    @property
    def user(self) -> Identity | None:
        return self.session.identity

    @property
    def energy(self) -> int:
        return self.session.energy

    @property
    def listings(self) -> list[dict]:
        return self.feed.listings

    def notify(self, message: str, kind: str = "info") -> None:
        self.toast = Toast(message, kind)

    def _require_user(self) -> bool:
        if self.user is None:
            self.active_modal = Modal.AUTH
            self.notify("Please sign in first", "info")
            return False
        return True

    # listings

    def refresh(self) -> None:
        try:
            self.feed.refresh()
        except GatewayError as exc:
            logger.warning("listing fetch failed: %s", exc.message)
            self.notify("Failed to load listings", "error")

    def open_city_picker(self) -> None:
        self.active_modal = Modal.CITY
        try:
            self.cities = self.gateway.popular_cities()["cities"]
        except GatewayError as exc:
            logger.warning("popular cities fetch failed: %s", exc.message)
            self.cities = []

    def set_city(self, city: str) -> None:
        self.feed.city = city
        if self.active_modal is Modal.CITY:
            self.active_modal = None
        self.refresh()

    def set_area(self, area: str) -> None:
        self.feed.area = area
        self.refresh()

    def open_detail(self, listing: dict) -> None:
        self.selected = listing
        self.active_modal = Modal.DETAIL

    def open_publish(self) -> None:
        if self._require_user():
            self.active_modal = Modal.PUBLISH

    def publish(self, title: str, description: str = "", type: str = "offer", area: str = "") -> dict | None:
        if not self._require_user():
            return None
        if not title.strip():
            self.notify("Title cannot be empty", "error")
            return None
        if type == "seek" and not self.session.can_post_seek:
            self.notify("Not enough energy to post a seek request", "error")
            return None
        try:
            created = self.gateway.create_listing(title.strip(), description.strip(), type, self.feed.city, area.strip() or None)
        except GatewayError as exc:
            self.notify(exc.message, "error")
            return None
        try:
            self.session.refresh_energy()
        except GatewayError as exc:
            logger.warning("energy refresh after publish failed: %s", exc.message)
            self.session.energy = created["energy"]
        self.active_modal = None
        self.refresh()
        delta = created["energy_delta"]
        self.notify(f"Posted, energy {delta:+d}" if delta else "Posted", "success")
        return created["listing"]

    # profile

    def open_profile(self) -> None:
        if not self._require_user():
            return
        self.active_modal = Modal.PROFILE
        try:
            self.profile = self.gateway.profile()
        except GatewayError as exc:
            logger.warning("profile fetch failed: %s", exc.message)
            self.notify("Failed to load your profile", "error")
        else:
            self.session.energy = self.profile["energy"]
        self.load_my_listings()

    def load_my_listings(self) -> None:
        try:
            self.my_listings = self.gateway.my_listings()
        except GatewayError as exc:
            logger.warning("own listings fetch failed: %s", exc.message)
            self.notify("Failed to load your listings", "error")

    def start_edit(self, listing: dict) -> None:
        self.editing = listing
        self.active_modal = Modal.EDIT

    def save_edit(self, title: str, description: str = "", type: str | None = None, area: str = "") -> bool:
        if self.editing is None or self.user is None or not title.strip():
            self.notify("Incomplete information", "error")
            return False
        try:
            self.gateway.update_listing(self.editing["id"], title.strip(), description.strip(), type or self.editing["type"], area.strip() or None)
        except GatewayError as exc:
            self.notify(exc.message, "error")
            return False
        self.notify("Updated", "success")
        self.editing = None
        self.active_modal = Modal.PROFILE
        self.load_my_listings()
        self.refresh()
        return True

    def revoke(self, listing: dict, confirm: Callable[[str], bool]) -> bool:
        if self.user is None or not confirm(f'Revoke "{listing["title"]}"?'):
            return False
        try:
            self.gateway.revoke_listing(listing["id"])
        except GatewayError as exc:
            logger.warning("revoke failed: %s", exc.message)
            self.notify("Operation failed", "error")
            return False
        self.notify("Revoked", "success")
        self.load_my_listings()
        self.refresh()
        return True

    # auth

    def open_auth(self) -> None:
        self.active_modal = Modal.AUTH

    def submit_auth(self, email: str, password: str, is_login: bool = True) -> bool:
        try:
            self.session.authenticate(email, password, is_login=is_login)
        except ClientError as exc:
            self.notify(getattr(exc, "message", str(exc)), "error")
            return False
        self.active_modal = None
        self.notify("Signed in" if is_login else "Account created", "success")
        return True

    def sign_out(self) -> None:
        self.session.sign_out()
        self.active_modal = None
        self.notify("Signed out", "info")

    # chat

    def open_inbox(self) -> list[dict]:
        if not self._require_user():
            return []
        self.active_modal = Modal.INBOX
        try:
            return self.gateway.inbox()
        except GatewayError as exc:
            self.notify(exc.message, "error")
            return []

    def open_chat(self, listing: dict | None = None) -> bool:
        listing = listing or self.selected
        if listing is None or not self._require_user():
            return False
        chat = ChatSession(self.gateway, self.user.user_id)
        try:
            conv = chat.open(listing)
        except ClientValidationError as exc:
            self.notify(exc.message, "error")
            return False
        except GatewayError as exc:
            logger.warning("chat init failed: %s", exc.message)
            self.notify("Could not start the conversation", "error")
            return False
        self.selected = listing
        self.chat = chat
        self.active_modal = Modal.CHAT
        if isinstance(conv, EphemeralConversation):
            self.notify("Demo mode: messages in this chat are kept on this device only", "info")
        return True

    def reload_chat(self) -> None:
        if self.chat is None:
            return
        try:
            self.chat.reload()
        except GatewayError as exc:
            logger.warning("chat history fetch failed: %s", exc.message)
            self.notify("Failed to load messages", "error")

    def send_message(self, content: str) -> dict | None:
        if self.chat is None or self.user is None or not content.strip():
            return None
        try:
            return self.chat.send(content)
        except ClientError as exc:
            self.notify(f"Send failed: {getattr(exc, 'message', exc)}", "error")
            return None

    def close_modal(self) -> None:
        if self.active_modal is Modal.CHAT and self.chat is not None:
            self.chat.close()
            self.chat = None
        self.active_modal = None
