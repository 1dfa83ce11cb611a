"""Create the leave tables once the database is reachable.

Directory tables are created too so a fresh environment can be seeded; in
production they are owned by the campus directory sync.
"""
from __future__ import annotations

import logging
import os
import time

from sqlalchemy import text

from leavedesk.core.logging import configure_logging
from leavedesk.core.settings import settings
from leavedesk.db.session import engine
from leavedesk.models import Base

logger = logging.getLogger("init_db")


def wait_for_db(timeout: int, interval: float) -> None:
    start = time.time()
    while True:
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return
        except Exception:
            if time.time() - start >= timeout:
                raise SystemExit("Database not reachable within timeout")
            time.sleep(interval)


def main() -> None:
    configure_logging(level=settings.log_level)
    wait_for_db(
        timeout=int(os.getenv("DB_WAIT_TIMEOUT", "30")),
        interval=float(os.getenv("DB_WAIT_INTERVAL", "2")),
    )
    Base.metadata.create_all(bind=engine)
    logger.info("tables_created", extra={"path": settings.database_url.split("@")[-1]})


if __name__ == "__main__":
    main()
