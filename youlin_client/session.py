import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .errors import ClientValidationError, GatewayError
from .gateway import Gateway


logger = logging.getLogger("youlin.client")

DEFAULT_ENERGY = 10


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: str


SessionListener = Callable[[Optional[Identity]], None]


class SessionContext:
    """Signed-in identity plus the listeners interested in it.

    Listeners only hear about changes between attach() and detach(); callers
    own that lifecycle (typically the lifetime of one view).
    """

    def __init__(self, gateway: Gateway):
        self.gateway = gateway
        self.identity: Identity | None = None
        self.energy: int = DEFAULT_ENERGY
        self.can_post_seek = False
        self.tier: dict | None = None
        self._listeners: list[SessionListener] = []
        self._attached = False

    @property
    def attached(self) -> bool:
        return self._attached

    def attach(self, listener: SessionListener | None = None) -> None:
        if listener is not None:
            self._listeners.append(listener)
        self._attached = True

    def detach(self) -> None:
        self._listeners.clear()
        self._attached = False

    def _set_identity(self, identity: Identity | None) -> None:
        self.identity = identity
        if not self._attached:
            return
        for listener in list(self._listeners):
            listener(identity)

    def restore(self, token: str | None) -> Identity | None:
        """Re-read the session for a stored token; a rejected token signs out."""
        if not token:
            self._set_identity(None)
            return None
        self.gateway.token = token
        try:
            data = self.gateway.session()
        except GatewayError as exc:
            logger.info("session restore failed: %s", exc.message)
            self.gateway.token = None
            self._set_identity(None)
            return None
        self._absorb(data)
        self._set_identity(Identity(user_id=data["user_id"], email=data["email"]))
        return self.identity

    def authenticate(self, email: str, password: str, *, is_login: bool = True) -> Identity:
        """Sign in, or sign up when `is_login` is False. Remote errors propagate as-is."""
        email = email.strip()
        if not email or not password.strip():
            raise ClientValidationError("Please fill in email and password", code="credentials_required")
        if is_login:
            token = self.gateway.sign_in(email, password)
        else:
            token = self.gateway.sign_up(email, password)
        self.gateway.token = token
        data = self.gateway.session()
        self._absorb(data)
        self._set_identity(Identity(user_id=data["user_id"], email=data["email"]))
        return self.identity

    def _absorb(self, data: dict) -> None:
        self.energy = data["energy"]
        self.tier = data.get("tier")
        self.can_post_seek = bool(data.get("can_post_seek"))

    def refresh_energy(self) -> int:
        self._absorb(self.gateway.session())
        return self.energy

    def sign_out(self) -> None:
        if self.gateway.token:
            try:
                self.gateway.sign_out()
            except GatewayError as exc:
                logger.info("remote sign-out failed, discarding token anyway: %s", exc.message)
        self.gateway.token = None
        self.energy = DEFAULT_ENERGY
        self.can_post_seek = False
        self.tier = None
        self._set_identity(None)
