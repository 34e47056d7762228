import itertools
import threading

from .gateway import Gateway


class ListingFeed:
    """Visible listings for one city/area filter.

    Each fetch takes a ticket from a monotonically increasing sequence; a
    response is applied only while its ticket is still the newest one issued,
    so a slow answer for an old filter can never overwrite a newer one.
    """

    def __init__(self, gateway: Gateway, city: str, area: str = ""):
        self.gateway = gateway
        self.city = city
        self.area = area
        self.listings: list[dict] = []
        self._seq = itertools.count(1)
        self._latest = 0
        self._lock = threading.Lock()

    def issue(self) -> int:
        with self._lock:
            self._latest = next(self._seq)
            return self._latest

    def apply(self, ticket: int, rows: list[dict]) -> bool:
        with self._lock:
            if ticket != self._latest:
                return False
            self.listings = rows
            return True

    def refresh(self) -> bool:
        ticket = self.issue()
        rows = self.gateway.list_listings(self.city, self.area.strip() or None)
        return self.apply(ticket, rows)
