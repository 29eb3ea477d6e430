from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.core.actor import Actor, encode_actor_name
from src.core.database.base import Base
from src.core.database import get_db
from src.main import app
from src.modules.assets.models import Asset, AssetType
from src.modules.assets.schemas import AssetCreate
from src.modules.assets.service import AssetService

# In-memory SQLite shared by every connection of the test engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
test_async_session = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

ACTOR_NAME = "Nguyễn Văn An"
ACTOR_HEADERS = {"X-User-Id": "7", "X-User-Name": encode_actor_name(ACTOR_NAME)}


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get test database session."""
    async with test_async_session() as session:
        yield session


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Get test HTTP client with overridden database dependency."""

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers=ACTOR_HEADERS,
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def actor() -> Actor:
    return Actor(id=7, name="Nguyễn Văn An")


@pytest.fixture
def make_asset(db_session: AsyncSession, actor: Actor):
    """Factory creating an asset with stock booked through the receipt rule."""

    async def _make(
        asset_id: str = "CC-MK-0226",
        quantity: str | int = 10,
        unit_cost: str | int = 100,
        asset_type: AssetType = AssetType.TOOLS,
        **kwargs,
    ) -> Asset:
        data = AssetCreate(
            asset_id=asset_id,
            asset_name=kwargs.pop("asset_name", f"Asset {asset_id}"),
            asset_type=asset_type,
            initial_quantity=Decimal(str(quantity)),
            unit_cost=Decimal(str(unit_cost)),
            **kwargs,
        )
        return await AssetService(db_session).create_asset(data, actor)

    return _make
