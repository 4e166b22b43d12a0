from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from glbiashara.core.config import settings
import logging
import time

logger = logging.getLogger(__name__)

logger.info("GLBIASHARA DATABASE_URL = %s", settings.get_masked_database_url())

# SQLite connections are handed across FastAPI's threadpool workers
connect_args = {"check_same_thread": False} if settings.is_sqlite else {}

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=False,
    connect_args=connect_args,
)


def install_slow_query_logging(target_engine, threshold_ms: float) -> None:
    """Log statements slower than threshold_ms as warnings."""

    @event.listens_for(target_engine, "before_cursor_execute")
    def receive_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        context._query_start_time = time.perf_counter()

    @event.listens_for(target_engine, "after_cursor_execute")
    def receive_after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        if hasattr(context, "_query_start_time"):
            elapsed_ms = (time.perf_counter() - context._query_start_time) * 1000
            if elapsed_ms >= threshold_ms:
                statement_first_line = statement.split("\n")[0].strip()[:100]
                logger.warning(
                    f"SLOW_QUERY: {elapsed_ms:.2f}ms - {statement_first_line}"
                )


if settings.DEBUG:
    install_slow_query_logging(engine, settings.SLOW_QUERY_THRESHOLD_MS)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """
    Dev convenience: create all tables when the project has no migrations yet.

    When Alembic revisions exist they are the source of truth and
    `alembic upgrade head` must be used instead. create_all() never adds
    missing columns to existing tables.
    """
    import os
    alembic_versions_path = os.path.join(os.path.dirname(__file__), "..", "alembic", "versions")
    if os.path.exists(alembic_versions_path) and any(
        name.endswith(".py") for name in os.listdir(alembic_versions_path)
    ):
        import warnings
        warnings.warn(
            "Alembic migrations detected. Skipping Base.metadata.create_all(). "
            "Use 'alembic upgrade head' for schema changes.",
            UserWarning
        )
        return

    from glbiashara import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
