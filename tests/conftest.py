import os
import tempfile
from pathlib import Path


# Settings are read at import time, so the environment must be ready before
# any test module imports the app.
_DB_PATH = Path(tempfile.mkdtemp(prefix="youlin-tests-")) / "youlin.db"

os.environ["ENV"] = "dev"
os.environ["DB_URL"] = f"sqlite+pysqlite:///{_DB_PATH}"
os.environ["AUTO_CREATE_SCHEMA"] = "true"
os.environ["PUBLIC_API_KEY"] = ""
os.environ["ENERGY_POLICY"] = "balance"
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "100000")
os.environ.setdefault("RATE_LIMIT_AUTH_PER_MINUTE", "100000")
os.environ.setdefault("CHAT_USER_MSGS_PER_MINUTE", "1000")
os.environ.setdefault("YOULIN_ENV_FILE", "")
