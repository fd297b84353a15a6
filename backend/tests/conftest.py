"""
Shared fixtures: both storage implementations, and an app wired to injected collaborators.
"""
import pytest
from httpx import ASGITransport, AsyncClient

from weatherscent.core.config import Settings
from weatherscent.main import create_app
from weatherscent.services import OpenAIService, WeatherService
from weatherscent.storage import MemoryStorage, SqlStorage


@pytest.fixture
def test_settings():
    """Settings isolated from the developer's .env and environment."""
    return Settings(
        _env_file=None,
        database_url=None,
        openweather_api_key=None,
        openai_api_key=None,
        log_level="WARNING",
    )


async def _seeded_sql_storage(tmp_path) -> SqlStorage:
    """Relational storage on a throwaway SQLite file, seeded like the in-memory store."""
    storage = SqlStorage.from_url(f"sqlite+aiosqlite:///{tmp_path / 'weatherscent.db'}")
    await storage.create_schema()
    await storage.seed_sample_data()
    return storage


@pytest.fixture
async def sql_storage(tmp_path):
    storage = await _seeded_sql_storage(tmp_path)
    yield storage
    await storage.close()


@pytest.fixture(params=["memory", "sql"])
async def storage(request, tmp_path):
    """Runs the test once per storage implementation."""
    if request.param == "memory":
        yield MemoryStorage()
        return

    sql = await _seeded_sql_storage(tmp_path)
    yield sql
    await sql.close()


@pytest.fixture
def weather_service():
    return WeatherService(api_key=None)


@pytest.fixture
def llm_service():
    # Unconfigured; tests that need model output patch the service methods
    return OpenAIService(api_key=None)


@pytest.fixture
def app(test_settings, storage, weather_service, llm_service):
    return create_app(
        settings=test_settings,
        storage=storage,
        weather_service=weather_service,
        llm_service=llm_service,
    )


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
