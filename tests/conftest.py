import pytest
import pytest_asyncio
from datetime import datetime, timezone

from tortoise import Tortoise

from app.core.db import MODELS_MODULES
from app.testing.testing_mocks import InMemoryOutboxStore

NOW = datetime(2026, 2, 6, 12, 0, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory SQLite database with every model's table."""
    await Tortoise.init(
        db_url="sqlite://:memory:",
        modules={"models": MODELS_MODULES},
        use_tz=True,
        timezone="UTC",
    )
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store():
    return InMemoryOutboxStore()
