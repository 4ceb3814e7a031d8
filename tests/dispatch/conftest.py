import os

# Must be set before the application settings are imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient

from src.dispatch.infra.db import session as db_session
from src.dispatch.infra.db.models import Base
from src.dispatch.main import app


@pytest.fixture(autouse=True)
def database():
    """Fresh in-memory database for every test."""

    engine = db_session.configure("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
