"""Database engine and helpers.

This module configures the SQLModel/SQLAlchemy engine from
`settings.DATABASE_URL` and provides small helpers used by the
application and tests. Local development defaults to a SQLite file
at the backend root (`app.db`).
"""

from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from .config import settings


def make_engine(url: str):
    """Build an engine for `url` with the SQLite tweaks the app relies on.

    SQLite connections get `check_same_thread=False` for FastAPI's threaded
    handlers, `case_sensitive_like` so substring search on names and
    titles matches PostgreSQL's case-sensitive LIKE, and `foreign_keys`
    so references to missing rows are rejected as they are on PostgreSQL.
    In-memory URLs share a single connection so every session sees the
    same tables.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, echo=False, pool_pre_ping=True)
    kwargs = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    eng = create_engine(url, echo=False, **kwargs)

    @event.listens_for(eng, "connect")
    def _sqlite_pragmas(dbapi_conn, _record):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA case_sensitive_like = ON")
        cur.execute("PRAGMA foreign_keys = ON")
        cur.close()

    return eng


engine = make_engine(settings.DATABASE_URL)


def create_db_and_tables(bind=None):
    """Create database tables using SQLModel metadata.

    Intended for local development and tests; production deployments
    should manage the schema with a migration tool instead.
    """
    from . import models  # noqa: F401  registers tables on the metadata
    SQLModel.metadata.create_all(bind or engine)


def get_session():
    """Yield a database `Session` for FastAPI dependency injection.

    The generator yields a session and ensures it is closed when the
    request scope finishes.
    """
    with Session(engine) as session:
        yield session
