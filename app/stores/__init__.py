"""
Storage backends for users and posts.

build_stores picks the backend named by settings.storage_backend:
"memory" keeps everything in process, "database" uses SQLAlchemy on
settings.database_url.
"""
import logging
from typing import Tuple

from app.config import Settings
from app.database import create_db_engine, create_session_factory, init_db
from app.stores.base import PostStore, UserStore
from app.stores.memory import InMemoryPostStore, InMemoryUserStore, MemoryDatabase
from app.stores.sql import SqlPostStore, SqlUserStore

logger = logging.getLogger(__name__)


def build_stores(settings: Settings) -> Tuple[UserStore, PostStore]:
    if settings.storage_backend == "memory":
        logger.info("Using in-memory storage")
        db = MemoryDatabase()
        return InMemoryUserStore(db), InMemoryPostStore(db)

    engine = create_db_engine(settings.database_url, echo=settings.database_echo)
    init_db(engine)
    logger.info("Using database storage at %s", engine.url.render_as_string(hide_password=True))
    session_factory = create_session_factory(engine)
    return SqlUserStore(session_factory), SqlPostStore(session_factory)
