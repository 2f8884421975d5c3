from pathlib import Path
import os
import tempfile
import pytest
from sqlmodel import Session

# Point the app at a throwaway SQLite file before any test module imports it.
_DB_DIR = Path(tempfile.mkdtemp(prefix="collegeplan-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR / 'app.db'}"
os.environ.setdefault("ENV", "dev")

from collegeplan.database import make_engine, create_db_and_tables  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def reset_db():
    """Remove the test database file once the session is over."""
    yield
    db_path = _DB_DIR / "app.db"
    if db_path.exists():
        try:
            db_path.unlink()
        except OSError:
            pass


@pytest.fixture()
def session():
    """A `Session` on a fresh in-memory database, for repository tests."""
    engine = make_engine("sqlite://")
    create_db_and_tables(engine)
    with Session(engine) as s:
        yield s
    engine.dispose()
