"""
Create the users and posts tables for the configured database.

Usage: python -m app.setup_db
"""
import logging
import sys
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from app.config import get_settings
from app.database import create_db_engine, init_db
from app.logging_config import configure_logging

logger = logging.getLogger(__name__)


def setup_database(database_url: str) -> list:
    """
    Create tables and indexes if missing; return the table names present.
    Safe to run repeatedly.
    """
    engine = create_db_engine(database_url)
    try:
        init_db(engine)
        return sorted(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def main() -> int:
    settings = get_settings()
    configure_logging(settings)
    logger.info("Setting up database...")
    try:
        tables = setup_database(settings.database_url)
    except SQLAlchemyError:
        logger.exception("Error setting up database")
        return 1
    logger.info("Created tables: %s", ", ".join(tables))
    return 0


if __name__ == "__main__":
    sys.exit(main())
