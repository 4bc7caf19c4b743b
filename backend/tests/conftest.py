import os
from datetime import date

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from boxleague.database import get_session  # noqa: E402
from boxleague.main import app  # noqa: E402
from boxleague.services.reference_cache import reference_cache  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models MUST be imported before create_all() (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables created per test and dropped afterwards
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(autouse=True)
def clear_reference_cache():
    """The reference cache is process-wide; never let it leak between tests."""
    reference_cache.invalidate()
    yield
    reference_cache.invalidate()


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema."""
    # Import all models to ensure they're registered BEFORE create_all
    from boxleague.models.match import Match  # noqa: F401
    from boxleague.models.membership import BoxMembership  # noqa: F401
    from boxleague.models.player import Player  # noqa: F401
    from boxleague.models.season import Box, Season  # noqa: F401
    from boxleague.models.waiting_list import WaitingListEntry  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place for the
    entire duration, so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(name="league")
def league_fixture(client: TestClient):
    """A running season for the current year with one box of three players."""
    year = date.today().year
    season = client.post(
        "/api/seasons",
        json={
            "name": f"Season {year}",
            "start_date": date(year, 1, 1).isoformat(),
            "end_date": date(year, 12, 31).isoformat(),
            "status": "running",
        },
    ).json()
    box = client.post(f"/api/seasons/{season['id']}/boxes", json={"level": 1, "name": "Box 1"}).json()

    players = {}
    for first, last in (("Ann", "Archer"), ("Ben", "Baker"), ("Cid", "Cole")):
        player = client.post("/api/players", json={"first_name": first, "last_name": last}).json()
        client.post(f"/api/boxes/{box['id']}/members", json={"player_id": player["id"]})
        players[first.lower()] = player["id"]

    return {"year": year, "season": season["id"], "box": box["id"], **players}
