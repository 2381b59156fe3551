import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from coffee_bracket.database import get_session
from coffee_bracket.main import app

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models imported before create_all() (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session

    With StaticPool + :memory:, data persists across tests within one run,
    so tests create their own tournament and never assume empty tables.
    """
    from coffee_bracket.models.bracket_heat import BracketHeat  # noqa: F401
    from coffee_bracket.models.heat_judge import HeatJudge  # noqa: F401
    from coffee_bracket.models.heat_segment import HeatSegment  # noqa: F401
    from coffee_bracket.models.judge_score import JudgeScore  # noqa: F401
    from coffee_bracket.models.participant import Participant  # noqa: F401
    from coffee_bracket.models.round_segment_time import RoundSegmentTime  # noqa: F401
    from coffee_bracket.models.tournament import Tournament  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    The override is set BEFORE TestClient() so the app never touches its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
