"""Delete sessions whose refresh token has expired.

Expired rows are already rejected by every lookup; this only reclaims space.
Run from the project root (or anywhere, with the package installed):

    python scripts/prune_sessions.py
"""
import logging
import os
import sys

# Ensure project root is on sys.path so `clipbin` can be imported when this script is run directly
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from clipbin.core.config import Settings  # noqa: E402
from clipbin.core.timezone_utils import utc_now  # noqa: E402
from clipbin.db.session import Database  # noqa: E402
from clipbin.repositories.sessions import SessionRepository  # noqa: E402


def prune(database: Database) -> int:
    db = database.SessionLocal()
    try:
        return SessionRepository(db).delete_expired(utc_now())
    finally:
        db.close()


def main() -> int:
    settings = Settings.from_env()
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, logging.INFO))
    database = Database(settings)
    try:
        deleted = prune(database)
    finally:
        database.dispose()
    print(f"Removed {deleted} expired session(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
