from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


# Base class for all models
Base = declarative_base()


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Build an engine for the configured database.

    SQLite needs check_same_thread=False because FastAPI runs sync
    handlers on a thread pool. An in-memory SQLite database only exists
    per connection, so it gets a single shared connection.
    For production Postgres, use connection pooling parameters.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, echo=echo, **kwargs)

    # SQLite ignores foreign keys (and ON DELETE CASCADE) unless asked
    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """
    Session factory for database operations.
    expire_on_commit=False keeps loaded attributes readable after commit.
    """
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


def init_db(engine: Engine):
    """
    Initialize database schema.
    Creates all tables and indexes defined in models.
    Call this on application startup.
    """
    # Import registers the models on Base.metadata
    from app import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
