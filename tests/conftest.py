import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from crm_api.main import app
from crm_api.database import Base, get_db
from tests.factories import (
    BrandFactory,
    CustomerFactory,
    SegmentFactory,
    TagFactory,
    persist,
)

# Test database URL (SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"


@pytest_asyncio.fixture
async def test_db():
    """Create test database and tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def client(test_db: AsyncSession):
    """Create test client with overridden database."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def graphql_response(client: AsyncClient):
    """POST a GraphQL document and return the decoded response body."""

    async def _request(query: str, variables: dict | None = None) -> dict:
        response = await client.post(
            "/graphql", json={"query": query, "variables": variables or {}}
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _request


@pytest.fixture
def graphql_request(graphql_response):
    """Run a GraphQL document that must succeed and return ``data[name]``."""

    async def _request(query: str, name: str, variables: dict | None = None):
        body = await graphql_response(query, variables)
        assert not body.get("errors"), body["errors"]
        return body["data"][name]

    return _request


@pytest.fixture
def customer_factory(test_db: AsyncSession):
    async def _create(**kwargs):
        return await persist(test_db, CustomerFactory(**kwargs))

    return _create


@pytest.fixture
def tag_factory(test_db: AsyncSession):
    async def _create(**kwargs):
        return await persist(test_db, TagFactory(**kwargs))

    return _create


@pytest.fixture
def segment_factory(test_db: AsyncSession):
    async def _create(**kwargs):
        return await persist(test_db, SegmentFactory(**kwargs))

    return _create


@pytest.fixture
def brand_factory(test_db: AsyncSession):
    async def _create(**kwargs):
        return await persist(test_db, BrandFactory(**kwargs))

    return _create
