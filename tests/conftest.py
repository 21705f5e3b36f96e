"""
Test fixtures for the SpeedoTransfer test suite.

Fixtures:

  - db_engine / db_session: a new in-memory SQLite database per test
  - rates: Deterministic exchange rates (USD->EUR = 0.90)
  - transfer_engine: A TransferEngine wired to those rates
  - make_user / make_account / login_token: Direct-to-database factories
    for service-level tests
  - client: Async HTTP test client with the test database and rates injected
  - register / open_account: HTTP-level helpers that go through the real
    signup and account endpoints

Notes:
  - Every test gets its own in-memory database (sqlite+aiosqlite://), so
    nothing carries over between tests.
  - In-memory SQLite shares one connection, so a session that has an open
    write transaction must commit before the next request runs. The
    factories below always commit.
  - The concurrency test builds its own file-backed database, since real
    write locking needs separate connections.
"""

import os
import random
import string
from decimal import Decimal

# Settings() requires a SECRET_KEY; set one before the app is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from speedo.database import Base, build_engine, get_db
from speedo.dependencies import get_exchange_rate_provider
from speedo.main import app
from speedo.models import Account, Currency, User
from speedo.services.exchange_service import StaticExchangeRateProvider
from speedo.services.session_service import SessionAuthenticator
from speedo.services.transfer_service import TransferEngine


TEST_DATABASE_URL = "sqlite+aiosqlite://"

# Units per USD. USD->EUR is 0.90 and EUR->GBP is 0.80 / 0.90.
TEST_RATES = {
    "USD": Decimal("1"),
    "EUR": Decimal("0.90"),
    "GBP": Decimal("0.80"),
    "EGP": Decimal("50.00"),
    "SAR": Decimal("3.75"),
    "AED": Decimal("3.6725"),
}


def _account_number() -> str:
    return "".join(random.choices(string.digits, k=10))


@pytest_asyncio.fixture
async def db_engine():
    """An engine over an empty in-memory database, with every table created."""
    engine = build_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """A session on the test engine, for service-level tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def rates():
    return StaticExchangeRateProvider(TEST_RATES)


@pytest.fixture
def authenticator():
    return SessionAuthenticator()


@pytest.fixture
def transfer_engine(authenticator, rates):
    return TransferEngine(authenticator=authenticator, rates=rates)


# ---------------------------------------------------------------------------
# Direct-to-database factories
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def make_user(db_session):
    """Factory: insert and commit a User. No password is usable for login."""

    async def _make_user(username: str) -> User:
        user = User(
            email=f"{username}@example.com",
            username=username,
            first_name=username.title(),
            last_name="Tester",
            hashed_password="not-a-real-hash",
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


@pytest_asyncio.fixture
async def make_account(db_session):
    """Factory: insert and commit an Account with an explicit balance."""

    async def _make_account(user: User, currency: Currency, balance: str) -> Account:
        account = Account(
            user_id=user.id,
            currency=currency,
            account_number=_account_number(),
            balance=Decimal(balance),
        )
        db_session.add(account)
        await db_session.commit()
        return account

    return _make_account


@pytest_asyncio.fixture
async def login_token(db_session, authenticator):
    """Factory: open a session for a user and return the Authorization header value."""

    async def _login_token(user: User) -> str:
        token = await authenticator.open_session(db_session, user)
        await db_session.commit()
        return f"Bearer {token}"

    return _login_token


# ---------------------------------------------------------------------------
# HTTP client and helpers
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def client(session_factory, rates):
    """
    Async HTTP test client with the test database and rates injected.

    This overrides get_db so all requests hit the in-memory test database,
    and get_exchange_rate_provider so conversions are deterministic.
    """

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_exchange_rate_provider] = lambda: rates

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def register(client):
    """
    Factory: sign a user up through the real endpoint.

    Returns the signup response body plus ready-to-use request headers.
    """

    async def _register(username: str, password: str = "SecurePass123!") -> dict:
        response = await client.post(
            "/auth/signup",
            json={
                "email": f"{username}@example.com",
                "username": username,
                "password": password,
                "first_name": username.title(),
                "last_name": "User",
            },
        )
        assert response.status_code == 201, f"Signup failed: {response.text}"
        data = response.json()
        data["headers"] = {"Authorization": f"Bearer {data['token']}"}
        return data

    return _register


@pytest_asyncio.fixture
async def open_account(client):
    """Factory: open an account in a currency through the real endpoint."""

    async def _open_account(headers: dict, currency: str) -> dict:
        response = await client.post(
            "/accounts", json={"currency": currency}, headers=headers
        )
        assert response.status_code == 201, f"Open account failed: {response.text}"
        return response.json()

    return _open_account
