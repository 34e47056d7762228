import logging
import os
from functools import lru_cache


logger = logging.getLogger("youlin.env")


@lru_cache(maxsize=1)
def ensure_loaded() -> None:
    """Load a dotenv-style file once, if one is present.

    Priority:
    1) YOULIN_ENV_FILE path
    2) /etc/youlin/youlin.env
    3) .env (relative to CWD)
    Variables already present in the environment win.
    """
    candidates = [
        os.getenv("YOULIN_ENV_FILE", ""),
        "/etc/youlin/youlin.env",
        ".env",
    ]
    for p in candidates:
        if p and os.path.isfile(p):
            _load_env_file(p)
            return


def _load_env_file(path: str) -> None:
    loaded = 0
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            k, v = line.split("=", 1)
            k = k.strip()
            v = v.strip().strip('"').strip("'")
            if k and k not in os.environ:
                os.environ[k] = v
                loaded += 1
    logger.info("loaded %d settings from %s", loaded, path)
