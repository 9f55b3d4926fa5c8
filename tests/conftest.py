"""Test fixtures: a throwaway SQLite database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI + ariadne:

1. Each test gets its own SQLite file under tmp_path, created from the
   ORM metadata (no Postgres needed to run the suite)
2. One AsyncSession is shared by the test and the app (get_db override),
   so the test can inspect exactly what the resolvers wrote
3. Avatars go to tmp_path with a 1 KiB size cap

bcrypt rounds are turned down before authgate is imported, since the
settings singleton reads the environment once.
"""

import os

os.environ.setdefault("AUTHGATE_BCRYPT_ROUNDS", "4")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from authgate.db.engine import get_db
from authgate.db.models import Base
from authgate.main import app
from authgate.storage.avatars import AvatarStorage

from helpers import TEST_MAX_FILE_SIZE


@pytest_asyncio.fixture()
async def db_session(tmp_path):
    """Fresh schema in a per-test SQLite file."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture()
def avatar_storage(tmp_path):
    return AvatarStorage(
        root=tmp_path / "uploads",
        public_url="http://test/uploads",
        max_file_size=TEST_MAX_FILE_SIZE,
        chunk_size=256,
    )


@pytest_asyncio.fixture()
async def client(db_session, avatar_storage):
    """HTTP client with the app's get_db and avatar storage overridden."""

    async def override_get_db():
        yield db_session

    original_storage = app.state.avatar_storage
    app.dependency_overrides[get_db] = override_get_db
    app.state.avatar_storage = avatar_storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.avatar_storage = original_storage

