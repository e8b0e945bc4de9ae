import pytest
from fastapi.testclient import TestClient

from account_ledger.core.config import Settings
from account_ledger.core.database import Database
from account_ledger.core.limiter import limiter
from account_ledger.main import create_app
from account_ledger.services.accounts import AccountService
from account_ledger.services.ledger import RatingLedger

# In-memory SQLite; Database switches to StaticPool so every connection sees one DB
SQLALCHEMY_DATABASE_URL = "sqlite://"

TEST_PASSWORD = "SecurePass123!"


def make_settings(**overrides) -> Settings:
    values = dict(
        DATABASE_URL=SQLALCHEMY_DATABASE_URL,
        ENVIRONMENT="test",
        LOG_LEVEL="WARNING",
        # Cheap hashing keeps the suite fast; the algorithm is unchanged
        PASSWORD_HASH_ITERATIONS=1_000,
        LEDGER_RETRY_BACKOFF_SECONDS=0.0,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(autouse=True)
def _disable_rate_limiter():
    """Disable the rate limiter for all tests so rapid requests don't return 429."""
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture(scope="function")
def database():
    handle = Database(SQLALCHEMY_DATABASE_URL).open()
    handle.create_schema()
    try:
        yield handle
    finally:
        handle.drop_schema()
        handle.close()


@pytest.fixture(scope="function")
def file_database(tmp_path):
    """File-backed SQLite, for tests where threads need their own connections."""
    handle = Database(f"sqlite:///{tmp_path / 'ledger.db'}", lock_timeout_seconds=30).open()
    handle.create_schema()
    try:
        yield handle
    finally:
        handle.close()


@pytest.fixture(scope="function")
def db(database):
    session = database.new_session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def service(db, settings):
    return AccountService(db, settings)


@pytest.fixture
def ledger(settings):
    return RatingLedger(settings)


@pytest.fixture
def make_account(service):
    def _make(username: str, email: str = None, password: str = TEST_PASSWORD):
        return service.register(username, email or f"{username}@example.com", password)

    return _make


@pytest.fixture(scope="function")
def client(settings):
    app = create_app(settings=settings)
    with TestClient(app) as test_client:
        yield test_client
