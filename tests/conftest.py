import os

# Settings are cached on first import, so these must be set before importing the app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_SAMPLE_DATA"] = "false"
os.environ["SIMULATE_SLOW_QUERIES"] = "false"
os.environ["SIMULATE_RANDOM_ERRORS"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import Settings
from app.main import app
from app.database import Base, get_db
from app.services.product_service import ProductService
from fakes import InMemoryProductRepository


# Create test database (SQLite in-memory for testing)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Override the dependency
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function")
def client():
    """Create test client with fresh database for each test."""
    # Create tables
    Base.metadata.create_all(bind=engine)

    with TestClient(app) as test_client:
        yield test_client

    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create database session for direct database access in tests."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def settings():
    """Settings with every debug simulation switched off."""
    return Settings(
        DATABASE_URL=SQLALCHEMY_DATABASE_URL,
        SEED_SAMPLE_DATA=False,
        SIMULATE_SLOW_QUERIES=False,
        SIMULATE_RANDOM_ERRORS=False,
    )


@pytest.fixture
def repository():
    return InMemoryProductRepository()


@pytest.fixture
def service(repository, settings):
    """Product service over the in-memory repository."""
    return ProductService(repository, settings=settings)
