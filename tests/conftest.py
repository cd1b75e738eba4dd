"""Pytest configuration and fixtures."""

import datetime
import io
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from gallery_api.config import settings
from gallery_api.database import Base, get_db, use_immediate_transactions
from gallery_api.main import app
from gallery_api.models import Exhibition, ExhibitionPhoto, Painting
from gallery_api.services.image_storage import LocalImageStorage, get_image_storage
from gallery_api.utils.auth import hash_password
from gallery_api.utils.jwt_auth import create_access_token
from gallery_api.utils.rate_limit import limiter

# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_PASSWORD = "gallery-secret"

# Login is rate limited per client; every test client shares one address
limiter.enabled = False


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    use_immediate_transactions(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest.fixture
def image_storage(tmp_path) -> LocalImageStorage:
    return LocalImageStorage(tmp_path / "uploads", "/uploads")


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, image_storage: LocalImageStorage) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with overridden dependencies."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_image_storage] = lambda: image_storage

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(scope="session")
def admin_password() -> str:
    return ADMIN_PASSWORD


@pytest.fixture(scope="session")
def admin_password_hash(admin_password: str) -> str:
    # Low cost factor keeps the suite fast
    return hash_password(admin_password, rounds=4)


@pytest.fixture(autouse=True)
def admin_credentials(monkeypatch, admin_password_hash: str):
    """Configure the admin account for every test."""
    monkeypatch.setattr(settings, "ADMIN_USERNAME", "admin")
    monkeypatch.setattr(settings, "ADMIN_PASSWORD_HASH", admin_password_hash)


@pytest.fixture
def admin_headers() -> dict:
    """Create admin authorization headers."""
    token = create_access_token(data={"sub": "admin", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def read_orders(db_session: AsyncSession):
    """
    Return an async helper mapping id -> order for a model, read straight from
    the database (safe after a rollback expired the session's objects).
    """

    async def _read(model=Painting) -> dict[int, int]:
        result = await db_session.execute(select(model.id, model.order))
        return {row.id: row.order for row in result}

    return _read


@pytest_asyncio.fixture(scope="function")
async def sample_paintings(db_session: AsyncSession) -> list[Painting]:
    """
    Create eight paintings with orders 1..8.
    Odd ones are landscapes, even ones portraits; painting 8 is sold.
    """
    paintings = []
    for i in range(1, 9):
        painting = Painting(
            title=f"Painting {i}",
            medium="Oil on canvas" if i % 2 else "Watercolor",
            year="2020" if i <= 4 else "2021",
            description=f"Study number {i}",
            price=100.0 * i,
            is_available=i != 8,
            featured=False,
            order=i,
        )
        if i == 3:
            painting.set_categories(["Landscape", "Abstract"])
        else:
            painting.set_categories(["Landscape"] if i % 2 else ["Portrait"])
        paintings.append(painting)
        db_session.add(painting)

    await db_session.commit()
    return paintings


@pytest_asyncio.fixture(scope="function")
async def featured_paintings(db_session: AsyncSession) -> list[Painting]:
    """Fill all three featured slots."""
    paintings = [
        Painting(title=f"Featured {i}", medium="Oil", year="2022", featured=True, order=100 + i)
        for i in range(1, 4)
    ]
    db_session.add_all(paintings)
    await db_session.commit()
    return paintings


@pytest_asyncio.fixture(scope="function")
async def sample_exhibition(db_session: AsyncSession) -> Exhibition:
    """An exhibition with three photos ranked 1..3."""
    exhibition = Exhibition(
        title="Spring Salon",
        description="Group show",
        date=datetime.date(2024, 4, 12),
        location="Lisbon",
        order=1,
    )
    db_session.add(exhibition)
    await db_session.flush()

    for i in range(1, 4):
        db_session.add(ExhibitionPhoto(
            exhibition_id=exhibition.id,
            image_url=f"/uploads/exhibitions/{exhibition.id}/photo{i}.webp",
            title=f"Wall {i}",
            order=i,
        ))

    await db_session.commit()
    return exhibition


@pytest.fixture
def png_bytes() -> bytes:
    """A small valid PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (64, 48), color=(200, 40, 40)).save(buffer, format="PNG")
    return buffer.getvalue()
