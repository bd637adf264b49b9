"""
Pytest conftest.py - Shared fixtures and configuration

=============================================================================
TEST ENVIRONMENT
=============================================================================

Settings are read from the environment when ``mediamap`` is first imported,
so the variables below are set before any application import:

- OCR is disabled (no tesseract binary needed; OCR tests use a fake)
- uploads go to a throwaway directory
- tables are created per test on a temporary SQLite file, not on startup
=============================================================================
"""

import asyncio
import io
import os
import tempfile
from typing import Any, Dict, List, Optional, Tuple

_TEST_ROOT = tempfile.mkdtemp(prefix="mediamap-tests-")
os.environ["APP_ENV"] = "test"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"
os.environ["OCR_ENABLED"] = "false"
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_ROOT, "uploads")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/app.db"
os.environ["HEMISPHERE_POLICY"] = "southern_africa"
os.environ["ALLOW_ANONYMOUS_UPLOADS"] = "false"

import piexif  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from PIL import Image  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from mediamap.geo.errors import GeocodingError  # noqa: E402
from mediamap.geo.geocoder import AddressResolver  # noqa: E402

Rational = Tuple[int, int]


# =============================================================================
# PYTEST HOOKS
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")


# =============================================================================
# IMAGE FIXTURES
# =============================================================================

def make_jpeg(
    latitude: Optional[List[Rational]] = None,
    latitude_ref: Optional[str] = None,
    longitude: Optional[List[Rational]] = None,
    longitude_ref: Optional[str] = None,
    description: Optional[str] = None,
) -> bytes:
    """Build a small JPEG with the given GPS and description tags."""
    gps: Dict[int, Any] = {}
    if latitude is not None:
        gps[piexif.GPSIFD.GPSLatitude] = tuple(latitude)
    if latitude_ref is not None:
        gps[piexif.GPSIFD.GPSLatitudeRef] = latitude_ref
    if longitude is not None:
        gps[piexif.GPSIFD.GPSLongitude] = tuple(longitude)
    if longitude_ref is not None:
        gps[piexif.GPSIFD.GPSLongitudeRef] = longitude_ref

    zeroth: Dict[int, Any] = {piexif.ImageIFD.Make: "TestCamera"}
    if description is not None:
        zeroth[piexif.ImageIFD.ImageDescription] = description

    exif_bytes = piexif.dump({"0th": zeroth, "Exif": {}, "GPS": gps, "1st": {}, "thumbnail": None})

    buffer = io.BytesIO()
    Image.new("RGB", (64, 48), color="green").save(buffer, "JPEG", exif=exif_bytes)
    return buffer.getvalue()


# Johannesburg area, as written by a phone camera
JOBURG_LAT = [(26, 1), (6, 1), (22889299, 1000000)]
JOBURG_LNG = [(28, 1), (10, 1), (22169399, 1000000)]


@pytest.fixture
def geotagged_jpeg() -> bytes:
    """JPEG with a full GPS block: 26°6'22.889"S 28°10'22.169"E."""
    return make_jpeg(JOBURG_LAT, "S", JOBURG_LNG, "E")


@pytest.fixture
def unreferenced_jpeg() -> bytes:
    """JPEG whose GPS block lost its hemisphere reference tags."""
    return make_jpeg(JOBURG_LAT, None, JOBURG_LNG, None)


@pytest.fixture
def plain_jpeg() -> bytes:
    """JPEG without any GPS data."""
    buffer = io.BytesIO()
    Image.new("RGB", (64, 48), color="red").save(buffer, "JPEG")
    return buffer.getvalue()


# =============================================================================
# GEOCODER FIXTURES
# =============================================================================

class CountingGeocoder:
    """Stub geocoder that records every call."""

    def __init__(self, address: str = "Main Road, Sandton, Johannesburg, Gauteng, South Africa", delay: float = 0.0):
        self.address = address
        self.delay = delay
        self.calls: List[Tuple[float, float]] = []

    async def reverse(self, latitude: float, longitude: float) -> str:
        self.calls.append((latitude, longitude))
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.address


class FailingGeocoder:
    """Stub geocoder that always fails like an unreachable service."""

    def __init__(self):
        self.calls = 0

    async def reverse(self, latitude: float, longitude: float) -> str:
        self.calls += 1
        raise GeocodingError("service unavailable")


@pytest.fixture
def counting_geocoder() -> CountingGeocoder:
    return CountingGeocoder()


@pytest.fixture
def failing_geocoder() -> FailingGeocoder:
    return FailingGeocoder()


# =============================================================================
# API FIXTURES
# =============================================================================

@pytest.fixture
def db_engine(tmp_path):
    """Engine on a fresh SQLite file with all tables created.

    NullPool keeps connections from leaking between the event loops used by
    the fixture and by TestClient.
    """
    from mediamap.services.database import init_db

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    asyncio.run(init_db(engine))
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture
def client(db_engine, counting_geocoder):
    """TestClient wired to the temporary database and the stub geocoder."""
    from mediamap.api.deps import get_resolver
    from mediamap.main import app
    from mediamap.services.database import get_db

    session_factory = async_sessionmaker(db_engine, expire_on_commit=False, autoflush=False)

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    resolver = AddressResolver(counting_geocoder)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_resolver] = lambda: resolver

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client) -> Dict[str, str]:
    """Register a user and return bearer headers for it."""
    response = client.post(
        "/api/auth/register",
        json={"email": "uploader@example.com", "password": "secret123"},
    )
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']}"}
