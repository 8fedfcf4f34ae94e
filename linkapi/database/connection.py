from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from linkapi.config import Settings, settings


def build_engine(config: Settings) -> Engine:
    """Create the engine for the configured database.

    SQLite is used for local development and tests; Postgres in production.
    """
    if config.is_sqlite:
        engine = create_engine(
            config.DATABASE_URL,
            connect_args={"check_same_thread": False, "timeout": 30},
            echo=config.DEBUG,
        )

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            # ON DELETE CASCADE for click events
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    # click days are bucketed with date(), which follows the session TimeZone
    return create_engine(
        config.DATABASE_URL,
        connect_args={"options": "-c timezone=UTC"},
        pool_size=config.DB_POOL_SIZE,
        max_overflow=config.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=config.DEBUG,
    )


engine = build_engine(settings)

# Use expire_on_commit=False to avoid DetachedInstanceError when accessing
# attributes after commit within the same request scope (common FastAPI pattern).
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)
