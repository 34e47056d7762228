import logging
from typing import Any

import httpx

from .config import ClientSettings
from .errors import GatewayError


logger = logging.getLogger("youlin.client")


class Gateway:
    """Thin request/response wrapper over the Youlin HTTP API.

    Every call either returns the decoded JSON body or raises GatewayError
    carrying the service's own error code and message.
    """

    def __init__(self, settings: ClientSettings, client: httpx.Client | None = None):
        self.settings = settings
        self._owns_client = client is None
        self._client = client or httpx.Client(base_url=settings.api_url, timeout=settings.timeout)
        self.token: str | None = None

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _headers(self) -> dict[str, str]:
        h = {"apikey": self.settings.api_key}
        if self.token:
            h["Authorization"] = f"Bearer {self.token}"
        return h

    def _call(self, method: str, path: str, **kwargs) -> Any:
        try:
            r = self._client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise GatewayError(str(exc) or "Network error", code="network_error")
        if r.status_code >= 400:
            raise _error_from_response(r)
        return r.json()

    # auth
    def sign_up(self, email: str, password: str) -> str:
        return self._call("POST", "/auth/signup", json={"email": email, "password": password})["access_token"]

    def sign_in(self, email: str, password: str) -> str:
        return self._call("POST", "/auth/signin", json={"email": email, "password": password})["access_token"]

    def session(self) -> dict:
        return self._call("GET", "/auth/session")

    def sign_out(self) -> None:
        self._call("POST", "/auth/signout")

    # listings
    def list_listings(self, city: str, area: str | None = None) -> list[dict]:
        params = {"city": city}
        if area:
            params["area"] = area
        return self._call("GET", "/listings", params=params)["listings"]

    def my_listings(self) -> list[dict]:
        return self._call("GET", "/listings/mine")["listings"]

    def create_listing(self, title: str, description: str, type: str, city: str, area: str | None) -> dict:
        return self._call("POST", "/listings", json={"title": title, "description": description, "type": type, "city": city, "area": area})

    def update_listing(self, listing_id: str, title: str, description: str, type: str, area: str | None) -> int:
        body = {"title": title, "description": description, "type": type, "area": area}
        return self._call("PATCH", f"/listings/{listing_id}", json=body)["matched"]

    def revoke_listing(self, listing_id: str) -> int:
        return self._call("POST", f"/listings/{listing_id}/revoke")["matched"]

    # conversations
    def open_conversation(self, listing_id: str) -> dict:
        return self._call("POST", "/conversations/open", json={"listing_id": listing_id})

    def conversation_messages(self, conversation_id: str) -> list[dict]:
        return self._call("GET", f"/conversations/{conversation_id}/messages")["messages"]

    def send_message(self, conversation_id: str, content: str) -> dict:
        return self._call("POST", f"/conversations/{conversation_id}/messages", json={"content": content})

    def inbox(self) -> list[dict]:
        return self._call("GET", "/conversations")["conversations"]

    # misc
    def profile(self) -> dict:
        return self._call("GET", "/profile")

    def popular_cities(self) -> dict:
        return self._call("GET", "/cities/popular")


def _error_from_response(r: httpx.Response) -> GatewayError:
    try:
        err = r.json().get("error") or {}
    except ValueError:
        err = {}
    message = err.get("message") or r.text or f"HTTP {r.status_code}"
    return GatewayError(message, code=err.get("code", "remote_error"), status=r.status_code, details=err.get("details"))
