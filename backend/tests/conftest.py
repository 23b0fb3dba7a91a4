"""
Pytest configuration and shared fixtures for backend tests.
"""

import sys
from pathlib import Path

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from typing import AsyncGenerator, Callable
from uuid import uuid4

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Import after path is set
from infrastructure.database.models import Article, ArticleAuthor, Base, User
from infrastructure.database.connection import get_db
from core.security.password import password_hasher
from services.api_cache import api_cache
from services.site_settings import load_site_settings


# Database URL for testing (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "testpassword123"


@pytest.fixture
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


# ============================================================================
# Users
# ============================================================================


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable:
    """Factory creating a committed user with ``TEST_PASSWORD``."""

    async def factory(role: str = "user", username: str | None = None, **fields) -> User:
        username = username or f"{role}_{uuid4().hex[:8]}"
        user = User(
            id=str(uuid4()),
            username=username,
            email=f"{username}@example.com",
            password_hash=password_hasher.hash(TEST_PASSWORD),
            role=role,
            **fields,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return factory


@pytest.fixture
async def test_user(make_user) -> User:
    return await make_user("user", username="reader")


@pytest.fixture
async def author_user(make_user) -> User:
    return await make_user("author", username="author")


@pytest.fixture
async def editor_user(make_user) -> User:
    return await make_user("editor", username="editor")


@pytest.fixture
async def admin_user(make_user) -> User:
    return await make_user("admin", username="admin")


# ============================================================================
# Articles
# ============================================================================


@pytest.fixture
def make_article(db_session: AsyncSession) -> Callable:
    """Factory creating an article with its primary byline row."""

    async def factory(author: User, status: str = "draft", **fields) -> Article:
        slug = fields.pop("slug", f"article-{uuid4().hex[:8]}")
        article = Article(
            primary_author_id=author.id,
            title=fields.pop("title", "Starship Flight Test"),
            slug=slug,
            summary=fields.pop("summary", "A summary"),
            content=fields.pop(
                "content",
                [{"id": str(uuid4()), "type": "paragraph", "content": "Liftoff."}],
            ),
            status=status,
            **fields,
        )
        db_session.add(article)
        await db_session.flush()
        db_session.add(ArticleAuthor(article_id=article.id, user_id=author.id, role="primary"))
        await db_session.commit()
        await db_session.refresh(article)
        return article

    return factory


# ============================================================================
# Site settings
# ============================================================================


@pytest.fixture
def set_site_flags(db_session: AsyncSession) -> Callable:
    """Update the site settings row, e.g. ``await set_site_flags(maintenance_mode=True)``."""

    async def update(**flags):
        site = await load_site_settings(db_session)
        for name, value in flags.items():
            setattr(site, name, value)
        await db_session.commit()
        return site

    return update


# ============================================================================
# HTTP clients
# ============================================================================


@pytest.fixture
async def app(db_session: AsyncSession):
    """The FastAPI app bound to the test database session."""
    # Import app here to avoid circular imports
    from main import app as fastapi_app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    fastapi_app.dependency_overrides[get_db] = override_get_db

    # Reset shared in-process state between tests
    fastapi_app.state.limiter.reset()
    api_cache.invalidate()

    yield fastapi_app

    fastapi_app.dependency_overrides.clear()


async def login(client: AsyncClient, user: User, password: str = TEST_PASSWORD) -> None:
    response = await client.post(
        "/api/login", json={"username": user.username, "password": password}
    )
    assert response.status_code == 200, response.text


@pytest.fixture
async def client_factory(app) -> AsyncGenerator[Callable, None]:
    """Factory for extra clients, each with its own cookie jar."""
    clients: list[AsyncClient] = []

    async def factory(user: User | None = None) -> AsyncClient:
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        if user is not None:
            await login(client, user)
        return client

    yield factory

    for client in clients:
        await client.aclose()


@pytest.fixture
async def async_client(client_factory) -> AsyncClient:
    """Anonymous client."""
    return await client_factory()


@pytest.fixture
async def user_client(client_factory, test_user) -> AsyncClient:
    return await client_factory(test_user)


@pytest.fixture
async def author_client(client_factory, author_user) -> AsyncClient:
    return await client_factory(author_user)


@pytest.fixture
async def editor_client(client_factory, editor_user) -> AsyncClient:
    return await client_factory(editor_user)


@pytest.fixture
async def admin_client(client_factory, admin_user) -> AsyncClient:
    return await client_factory(admin_user)
