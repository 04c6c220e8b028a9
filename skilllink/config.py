import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./skilllink.db")
DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"
# Seconds a SQLite writer waits on a locked database before giving up
SQLITE_BUSY_TIMEOUT = float(os.getenv("SQLITE_BUSY_TIMEOUT", "15"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Development-only bulk loader behind /seed
SEED_ENABLED = os.getenv("SEED_ENABLED", "true").lower() == "true"


def skip_db_init() -> bool:
    # Read on each startup so tests can flip it after import
    return os.getenv("SKIP_DB_INIT") == "1"
