from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from database import Base, get_db
from main import app
from services.audits import drain_background_audits


@pytest.fixture
def lighthouse_report():
    """Trimmed-down Lighthouse result with two categories."""
    return {
        "lighthouseVersion": "12.0.0",
        "requestedUrl": "https://example.com/",
        "finalUrl": "https://example.com/",
        "categories": {
            "performance": {
                "id": "performance",
                "title": "Performance",
                "score": 0.93,
                "auditRefs": [{"id": "first-contentful-paint", "weight": 10}],
            },
            "seo": {
                "id": "seo",
                "title": "SEO",
                "score": 0.4,
                "auditRefs": [{"id": "document-title", "weight": 1}],
            },
        },
        "audits": {
            "first-contentful-paint": {
                "id": "first-contentful-paint",
                "title": "First Contentful Paint",
                "score": 0.98,
                "displayValue": "0.9 s",
            },
            "document-title": {
                "id": "document-title",
                "title": "Document has a <title> element",
                "score": 0,
            },
        },
    }


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'audits.db'}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    with patch("services.audits.async_session_maker", maker):
        yield maker
        await drain_background_audits()

    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def pipeline(lighthouse_report):
    """Stub out the liveness wait, Chrome launch and Lighthouse run; all succeed by default."""
    chrome = MagicMock()
    chrome.close = AsyncMock()
    with patch("services.audits.wait_until_up", new=AsyncMock(return_value=None)) as wait_until_up, \
         patch("services.audits.launch_chrome", new=AsyncMock(return_value=chrome)) as launch_chrome, \
         patch("services.audits.run_lighthouse", new=AsyncMock(return_value=lighthouse_report)) as run_lighthouse:
        yield SimpleNamespace(
            wait_until_up=wait_until_up,
            launch_chrome=launch_chrome,
            run_lighthouse=run_lighthouse,
            chrome=chrome,
        )
