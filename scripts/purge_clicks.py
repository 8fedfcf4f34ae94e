"""Delete click events older than CLICK_RETENTION_DAYS. Meant for a daily cron."""

import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from linkapi.config import settings
from linkapi.database.session import get_db_context
from linkapi.logging_config import setup_logging
from linkapi.services.link_service import LinkService


def purge_clicks() -> int:
    setup_logging(settings.LOG_LEVEL)
    with get_db_context() as db:
        deleted = LinkService(db=db, settings=settings).purge_expired_clicks()
    print(f"Purged {deleted} click events")
    return deleted


if __name__ == "__main__":
    purge_clicks()
