"""Pytest configuration and shared fixtures."""

import os

# Point the app at SQLite before partsmarket.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from partsmarket.dependencies import get_db
from partsmarket.main import app
from partsmarket.models import Base, Category, User
from partsmarket.services.auth_service import issue_token
from partsmarket.services.category_service import CategoryService


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest_asyncio.fixture
async def test_db():
    """Create an in-memory SQLite database for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    SessionLocal = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with SessionLocal() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def client(test_db: AsyncSession):
    """HTTP client bound to the app, sharing the test session."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _make_user(db: AsyncSession, username: str, is_admin: bool = False) -> User:
    user = User(
        email=f"{username}@example.com",
        username=username,
        hashed_password="not-a-real-hash",
        is_active=True,
        is_admin=is_admin,
    )
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def seller(test_db: AsyncSession) -> User:
    return await _make_user(test_db, "seller")


@pytest_asyncio.fixture
async def admin(test_db: AsyncSession) -> User:
    return await _make_user(test_db, "admin", is_admin=True)


@pytest.fixture
def seller_headers(seller: User) -> dict:
    return {"Authorization": f"Bearer {issue_token(seller)}"}


@pytest.fixture
def admin_headers(admin: User) -> dict:
    return {"Authorization": f"Bearer {issue_token(admin)}"}


@pytest_asyncio.fixture
async def brakes(test_db: AsyncSession) -> Category:
    """Root category 'Brakes'."""
    service = CategoryService(test_db)
    return await service.create_category(
        name="Brakes",
        description="Braking system components",
    )


@pytest_asyncio.fixture
async def brake_pads(test_db: AsyncSession, brakes: Category) -> Category:
    """'Brake Pads' under 'Brakes'."""
    service = CategoryService(test_db)
    return await service.create_category(
        name="Brake Pads",
        description="Ceramic and semi-metallic friction pads",
        parent_id=brakes.id,
    )
