"""
TeamSync - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'test'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['REQUIRE_WS_AUTH'] = 'false'

from teamsync.main import create_app
from teamsync.core.database import Base, get_engine, get_session_local, close_db
from teamsync.models.user import User
from teamsync.models.channel import Channel
from teamsync.services.chat_store import SqlChatStore
from tests.mocks.realtime import MockChatStore

fake = Faker()


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database (tables) and session for each test"""
    import teamsync.models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with get_session_local()() as session:
        yield session
        await session.rollback()

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await close_db()


@pytest.fixture
def chat_store(db_session: AsyncSession) -> SqlChatStore:
    return SqlChatStore()


@pytest.fixture
def mock_store() -> MockChatStore:
    return MockChatStore()


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against an app backed by the test database"""
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user"""
    user = User(
        username=fake.user_name(),
        email=fake.email(),
        full_name=fake.name(),
        avatar_url=fake.image_url(),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def test_channel(db_session: AsyncSession) -> Channel:
    """Create a test channel"""
    channel = Channel(name=fake.word(), project_id='project-1')
    db_session.add(channel)
    await db_session.commit()
    await db_session.refresh(channel)
    return channel
