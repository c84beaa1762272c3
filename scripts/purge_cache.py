"""Delete expired grade cache entries. Run periodically, e.g. from cron."""
import logging

from config import settings
from database import get_db_context
from services import ResultCache

logging.basicConfig(level=settings.log_level.upper())

with get_db_context() as db:
    deleted = ResultCache(db).purge_expired()
    print(f"Purged {deleted} expired grade cache entries")
