"""
Startup database check.
Creates the tables on first launch; an existing schema is left untouched.
"""
from sqlalchemy import inspect

from carparts.db.session import get_engine
from carparts.db.init_db import init_db
from carparts.db.base import Base
from carparts.logger import get_logger

logger = get_logger(__name__)


def missing_tables() -> list[str]:
    """Tables declared on Base.metadata that the database does not have yet."""
    inspector = inspect(get_engine())
    existing = set(inspector.get_table_names())
    return [name for name in Base.metadata.tables if name not in existing]


def auto_init() -> None:
    logger.info("Checking database initialisation state...")

    missing = missing_tables()
    if not missing:
        logger.info("Database tables already exist")
        return

    logger.info("Creating missing tables: %s", ", ".join(missing))
    try:
        init_db()
    except Exception:
        logger.exception("Database table creation failed")
        raise
    logger.info("Database tables created")


if __name__ == "__main__":
    auto_init()
