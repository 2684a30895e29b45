import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from openplay.database import get_session
from openplay.main import app

TEST_DATABASE_URL = "sqlite:///:memory:"

# sqlite:///:memory: with StaticPool so every session shares one database.
# check_same_thread=False is required for TestClient's worker thread.
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
    """Provide a test database session with fresh tables"""
    from openplay.models.open_play_event import OpenPlayEvent  # noqa: F401
    from openplay.models.open_play_match import OpenPlayMatch  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    The override is installed before TestClient() starts the app so the
    production engine is never used for requests.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
