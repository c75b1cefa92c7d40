"""Shared test fixtures and configuration."""

import os

import pytest
from httpx import ASGITransport, AsyncClient

# The module-level app in postcode_lookup.main reads these at import time.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("GOOGLE_MAPS_API_KEY", "")

from postcode_lookup.config import Settings  # noqa: E402
from postcode_lookup.main import create_app  # noqa: E402
from postcode_lookup.models.profile import Profile  # noqa: E402
from postcode_lookup.services.container import ServiceContainer  # noqa: E402

POSTCODES_IO = "https://postcodes.test"
PLACES_URL = "https://places.test/nearbysearch/json"
API = "/post-code-lookup/api"


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        google_maps_api_key="test-places-key",
        postcodes_io_url=POSTCODES_IO,
        google_places_url=PLACES_URL,
    )


@pytest.fixture
async def services(settings, clock):
    container = ServiceContainer(settings, timer=clock)
    await container.database.init()
    yield container
    await container.database.close()


@pytest.fixture
async def client(settings, services):
    app = create_app(settings, services)
    transport = ASGITransport(app=app, client=("203.0.113.10", 50000))
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def add_profile(services):
    async def _add(
        user_id: str = "user-1",
        api_key: str = "key-user-1",
        allowed_domains: list[str] | None = None,
        rate_limit: int = 100,
    ) -> Profile:
        async with services.database.session_factory() as session:
            profile = Profile(
                id=user_id,
                api_key=api_key,
                rate_limit=rate_limit,
                request_count=0,
                allowed_domains=allowed_domains or [],
            )
            session.add(profile)
            await session.commit()
            return profile

    return _add


@pytest.fixture
def sample_postcode_response():
    """postcodes.io /postcodes/SW1A1AA response (trimmed)."""
    return {
        "status": 200,
        "result": {
            "postcode": "SW1A 1AA",
            "outcode": "SW1A",
            "incode": "1AA",
            "latitude": 51.501009,
            "longitude": -0.141588,
            "admin_district": "Westminster",
            "country": "England",
        },
    }


@pytest.fixture
def sample_places_response():
    """Google Places nearby search response with two establishments."""
    return {
        "status": "OK",
        "results": [
            {
                "place_id": "ChIJ-palace",
                "name": "Buckingham Palace",
                "vicinity": "Buckingham Palace Road, London",
                "types": ["establishment", "point_of_interest"],
            },
            {
                "place_id": "ChIJ-gardens",
                "name": "Palace Gardens",
                "vicinity": "London",
                "types": ["park", "establishment"],
            },
        ],
    }
