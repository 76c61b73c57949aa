# app/database.py
import os
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

logger = logging.getLogger(__name__)

# =========================================================
# 1) Read the database URL + automatically normalize Postgres driver
# =========================================================
DB_URL = os.getenv("DATABASE_URL", "sqlite:///./reviews.db")

# psycopg (v3) is the driver we ship for Postgres
if DB_URL.startswith("postgres://"):
    DB_URL = "postgresql+psycopg://" + DB_URL[len("postgres://"):]
elif DB_URL.startswith("postgresql+psycopg2://"):
    DB_URL = DB_URL.replace("postgresql+psycopg2://", "postgresql+psycopg://", 1)
elif DB_URL.startswith("postgresql://") and "+psycopg" not in DB_URL:
    DB_URL = DB_URL.replace("postgresql://", "postgresql+psycopg://", 1)


# =========================================================
# 2) Create Engine and Session
# =========================================================
def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def make_engine(url: str):
    is_sqlite = url.startswith("sqlite")
    eng = create_engine(
        url,
        connect_args={"check_same_thread": False} if is_sqlite else {},
        pool_pre_ping=True,
    )
    if is_sqlite:
        # SQLite's built-in lower() only folds ASCII; ilike() compiles to lower(x) LIKE lower(y)
        @event.listens_for(eng, "connect")
        def _register_unicode_lower(dbapi_conn, connection_record):
            dbapi_conn.create_function("lower", 1, _unicode_lower, deterministic=True)

    return eng


engine = make_engine(DB_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# The only Base used throughout the project
Base = declarative_base()


def get_db():
    """Dependency to inject DB session inside routes."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None) -> None:
    """Create all tables (Alembic handles real migrations)."""
    # models must be imported so every table is registered on Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("database tables ensured on %s", (bind or engine).url.render_as_string(hide_password=True))
