import os

# Must be set before plog.config is imported
os.environ["ENVIRONMENT"] = "testing"

import pytest
import pytest_asyncio
from datetime import datetime, timedelta
from typing import AsyncGenerator, List
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from plog.config import settings
from plog.db.session import get_db
from plog.main import app
from plog.models import Base, Image, Member, Post
from plog.services.comment_service import CommentService
from plog.utils.rate_limit import limiter

# Test database URL - in-memory SQLite
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

class FakeClock:
    """Clock that moves one second forward on every reading"""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 9, 0, 0)):
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current

class StatementCounter:
    """Counts SQL statements sent to the database"""

    def __init__(self):
        self.statements: List[str] = []

    def __call__(self, conn, cursor, statement, parameters, context, executemany):
        self.statements.append(statement)

    @property
    def count(self) -> int:
        return len(self.statements)

    def reset(self):
        self.statements.clear()

@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database per test"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()

@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

@pytest_asyncio.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session"""
    async with session_factory() as session:
        yield session

@pytest.fixture
def statement_counter(test_engine):
    counter = StatementCounter()
    event.listen(test_engine.sync_engine, "before_cursor_execute", counter)
    yield counter
    event.remove(test_engine.sync_engine, "before_cursor_execute", counter)

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()

@pytest.fixture
def comment_service(test_db: AsyncSession, clock: FakeClock) -> CommentService:
    return CommentService(test_db, clock=clock)

@pytest_asyncio.fixture
async def test_member(test_db: AsyncSession) -> Member:
    """Create a member with a profile image"""
    image = Image(original_name="avatar.png", access_url="https://cdn.plog.test/avatar.png")
    test_db.add(image)
    await test_db.flush()

    member = Member(email="tester@plog.test", nickname="tester", profile_image_id=image.id)
    test_db.add(member)
    await test_db.commit()
    return member

@pytest_asyncio.fixture
async def another_member(test_db: AsyncSession) -> Member:
    """Create a member without a profile image"""
    member = Member(email="another@plog.test", nickname="another")
    test_db.add(member)
    await test_db.commit()
    return member

@pytest_asyncio.fixture
async def test_post(test_db: AsyncSession, test_member: Member) -> Post:
    post = Post(member_id=test_member.id, title="Test post", content="Test post content")
    test_db.add(post)
    await test_db.commit()
    return post

@pytest_asyncio.fixture
async def other_post(test_db: AsyncSession, test_member: Member) -> Post:
    post = Post(member_id=test_member.id, title="Other post", content="Other post content")
    test_db.add(post)
    await test_db.commit()
    return post

def make_token(member_id: int) -> str:
    return jwt.encode({"sub": str(member_id)}, settings.secret_key, algorithm=settings.ALGORITHM)

@pytest.fixture
def auth_headers(test_member: Member) -> dict:
    return {"Authorization": f"Bearer {make_token(test_member.id)}"}

@pytest.fixture
def another_auth_headers(another_member: Member) -> dict:
    return {"Authorization": f"Bearer {make_token(another_member.id)}"}

@pytest_asyncio.fixture
async def test_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the test database"""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
