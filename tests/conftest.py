"""Global pytest configuration and fixtures."""

import os
import tempfile
from pathlib import Path

import pytest

# Configure the application before any cafe_cms module reads settings
_SESSION_DIR = Path(tempfile.mkdtemp(prefix="cafe-cms-tests-"))
os.environ["ENV_MODE"] = "development"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_SESSION_DIR / 'app.db'}"
os.environ["UPLOADS_DIRS"] = str(_SESSION_DIR / "uploads")
os.environ["BACKUP_DIRECTORY"] = str(_SESSION_DIR / "backups")
os.environ["REDIS_URL"] = "redis://localhost:6379/15"

from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

import cafe_cms.models  # noqa: E402,F401
from cafe_cms.database import Base  # noqa: E402
from cafe_cms.services.backup import SnapshotStore, UploadsStore  # noqa: E402
from cafe_cms.services.whatsapp import MockWhatsAppClient  # noqa: E402


@pytest.fixture
def db_file(tmp_path):
    """SQLite database file with every table created."""
    path = tmp_path / "cms.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()
    return path


@pytest.fixture
def async_engine(db_file):
    # NullPool: connections never outlive the event loop that opened them
    return create_async_engine(f"sqlite+aiosqlite:///{db_file}", poolclass=NullPool)


@pytest.fixture
def session_maker(async_engine):
    return async_sessionmaker(bind=async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def statements(async_engine):
    """SQL statements executed through the test engine, in order."""
    recorded: list[str] = []

    def record(conn, cursor, statement, parameters, context, executemany):
        recorded.append(statement)

    event.listen(async_engine.sync_engine, "before_cursor_execute", record)
    yield recorded
    event.remove(async_engine.sync_engine, "before_cursor_execute", record)


@pytest.fixture
def uploads_root(tmp_path):
    root = tmp_path / "uploads"
    root.mkdir()
    return root


@pytest.fixture
def uploads_store(uploads_root):
    return UploadsStore([uploads_root])


@pytest.fixture
def snapshot_store(tmp_path):
    return SnapshotStore(tmp_path / "backups", retention=3, lock_timeout=5)


@pytest.fixture
def whatsapp_client():
    return MockWhatsAppClient()
