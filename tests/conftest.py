"""Pytest fixtures and configuration for arise tests."""

import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
import uuid

from arise.database.database import Base
from arise.database.feed import progress_feed, task_feed
from arise.database.repository import TaskRepository
from arise.database.user_repository import UserRepository
from arise.models.task import Task, TaskPriority


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_session(test_user_id, other_user_id):
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    Also creates two users in the database.
    """
    from sqlalchemy import event
    from arise.database import models  # noqa: F401
    from arise.database.models import UserDB

    # Create engine with StaticPool for in-memory database
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragmas(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    # Create all tables
    Base.metadata.create_all(bind=engine)

    # Create session
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    now = datetime.utcnow()
    for user_id, email in [(test_user_id, "test@example.com"), (other_user_id, "other@example.com")]:
        session.add(
            UserDB(
                id=user_id,
                email=email,
                name="Test User",
                rank="E",
                level=1,
                current_xp=0,
                required_xp=100,
                version=0,
                created_at=now,
                updated_at=now,
            )
        )
    session.commit()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        task_feed.clear()
        progress_feed.clear()


@pytest.fixture
def task_repository(db_session: Session):
    """Create a TaskRepository instance for testing."""
    return TaskRepository(db_session)


@pytest.fixture
def user_repository(db_session: Session):
    """Create a UserRepository instance for testing."""
    return UserRepository(db_session)


@pytest.fixture
def test_user_id():
    """Test user ID for multi-user testing."""
    return "test-user-123"


@pytest.fixture
def other_user_id():
    """A second user who must not be able to touch the first user's tasks."""
    return "other-user-456"


@pytest.fixture
def sample_task_base(test_user_id):
    """Base task data for creating test tasks.

    Returns a dict with default task attributes that can be overridden.
    """
    now = datetime.utcnow()
    task_id = str(uuid.uuid4())
    return {
        "id": task_id,
        "user_id": test_user_id,
        "name": "Test Task",
        "description": "Test description",
        "priority": TaskPriority.NORMAL,
        "completed": False,
        "created_at": now,
        "updated_at": now,
        "recurring": None,
        "lineage_id": task_id,
    }


@pytest.fixture
def sample_task(sample_task_base):
    """Create a sample Task object for testing."""
    return Task(**sample_task_base)


@pytest.fixture
def urgent_task(sample_task_base):
    """Create an urgent-priority task."""
    return Task(**{**sample_task_base, "priority": TaskPriority.URGENT})


@pytest.fixture
def test_user(test_user_id):
    """Create a test user object."""
    from arise.models.user import User
    now = datetime.utcnow()
    return User(
        id=test_user_id,
        email="test@example.com",
        name="Test User",
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def test_client(db_session: Session, test_user):
    """Create a FastAPI test client with overridden database dependency and authentication."""
    from arise.api.app import app
    from arise.database.database import get_db
    from arise.auth.dependencies import get_current_user

    # Override the get_db dependency to use our test database session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    # Override authentication to return test user
    def override_get_current_user():
        return test_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()
