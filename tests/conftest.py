# tests/conftest.py

import os

# Settings are read at import time, so the test environment has to be in
# place before anything from crm_campaigns is imported.
os.environ["ENV"] = "local"
os.environ["DATABASE_URL_LOCAL"] = "sqlite:///./crm_campaigns_test.db"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["APP_URL"] = "https://crm.example.test"
os.environ["SEND_BATCH_SIZE"] = "50"
os.environ["RESEND_API_KEY"] = ""

import pytest
from starlette.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy_utils import create_database, database_exists, drop_database

from crm_campaigns.main import app
from crm_campaigns.core.config import settings
from crm_campaigns.core.email import get_mail_transport
from crm_campaigns.db.base_class import Base
from crm_campaigns.db.session import get_db
from tests.utils.transport import FakeTransport


# --- E2E Test Database Setup ---
TEST_DATABASE_URL = settings.DATABASE_URL_LOCAL
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    if database_exists(engine.url):
        drop_database(engine.url)
    create_database(engine.url)
    Base.metadata.create_all(bind=engine)
    yield
    engine.dispose()
    drop_database(engine.url)


@pytest.fixture(scope="function")
def db_session():
    """A session whose work is rolled back when the test ends."""
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)
    yield session
    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def transport():
    return FakeTransport()


# --- Test Client Fixtures ---
@pytest.fixture(scope="function")
def client(db_session, transport):
    """
    Provides a TestClient that uses the test database and records outbound
    mail instead of calling the provider.
    """

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mail_transport] = lambda: transport

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
