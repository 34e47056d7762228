import os
from dataclasses import dataclass

from youlin_shared import ensure_loaded

from .errors import ClientConfigError


@dataclass(frozen=True)
class ClientSettings:
    api_url: str
    api_key: str
    timeout: float = 8.0

    @classmethod
    def from_env(cls) -> "ClientSettings":
        ensure_loaded()
        url = os.getenv("YOULIN_API_URL", "").strip()
        key = os.getenv("YOULIN_API_KEY", "").strip()
        missing = [name for name, value in (("YOULIN_API_URL", url), ("YOULIN_API_KEY", key)) if not value]
        if missing:
            raise ClientConfigError(f"Missing client settings: {', '.join(missing)}")
        return cls(api_url=url.rstrip("/"), api_key=key, timeout=float(os.getenv("YOULIN_API_TIMEOUT", "8.0")))
