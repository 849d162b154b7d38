import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-with-enough-length-for-hs256")

from collections.abc import Callable, Generator  # noqa: E402
from datetime import UTC, datetime, timedelta  # noqa: E402

import httpx  # noqa: E402
import jwt  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import StaticPool, create_engine, event  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from app.core.config import Settings, get_settings  # noqa: E402
from app.core.database import Base, get_db  # noqa: E402
from app.core.http import get_http_client  # noqa: E402
from app.main import app  # noqa: E402
from app.models.households import Household, Membership, User  # noqa: E402
from app.schemas.invitations import HouseholdRole  # noqa: E402

RESEND_TEST_URL = "https://resend.test/emails"
TWILIO_TEST_BASE = "https://twilio.test/2010-04-01"


@pytest.fixture(scope="session")
def engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    # pysqlite needs explicit BEGIN for SAVEPOINT to behave.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_autobegin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine) -> Generator[Session]:
    connection = engine.connect()
    trans = connection.begin()

    TestingSessionLocal = sessionmaker(
        bind=connection,
        autoflush=False,
        expire_on_commit=False,
        future=True,
        join_transaction_mode="create_savepoint",
    )
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        trans.rollback()
        connection.close()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite+pysqlite:///:memory:",
        JWT_SECRET=get_settings().jwt_secret,
        RESEND_API_KEY="re_test_key",
        RESEND_API_URL=RESEND_TEST_URL,
        TWILIO_SID="AC123",
        TWILIO_AUTH_TOKEN="twilio-token",
        TWILIO_FROM="+15550001111",
        TWILIO_API_BASE=TWILIO_TEST_BASE,
    )


class ProviderStub:
    """Records outbound provider requests and answers with a canned response."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responder: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json={"id": "msg_1"})
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)


@pytest.fixture
def provider() -> ProviderStub:
    return ProviderStub()


@pytest.fixture
def client(db_session, settings, provider) -> Generator[TestClient]:
    def _override_get_db():
        try:
            yield db_session
        finally:
            pass

    def _override_get_http_client():
        with httpx.Client(transport=httpx.MockTransport(provider)) as http:
            yield http

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_http_client] = _override_get_http_client
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def household(db_session) -> Household:
    h = Household(name="Tan family")
    db_session.add(h)
    db_session.commit()
    return h


def add_member(
    db: Session, household: Household, user_id: str, role: HouseholdRole
) -> User:
    user = User(id=user_id, email=f"{user_id}@example.com")
    db.add(user)
    db.flush()
    db.add(Membership(user_id=user.id, household_id=household.id, role=role))
    db.commit()
    return user


@pytest.fixture
def boss(db_session, household) -> User:
    return add_member(
        db_session, household, "11111111-1111-1111-1111-111111111111", HouseholdRole.boss
    )


@pytest.fixture
def helper(db_session, household) -> User:
    return add_member(
        db_session,
        household,
        "22222222-2222-2222-2222-222222222222",
        HouseholdRole.helper,
    )


@pytest.fixture
def outsider(db_session) -> User:
    user = User(id="33333333-3333-3333-3333-333333333333", email="new@example.com")
    db_session.add(user)
    db_session.commit()
    return user


def create_access(sub: str, settings: Settings, ttl: timedelta | None = None) -> str:
    """Mint a token shaped like the ones the auth provider issues."""
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "role": "authenticated",
        "iat": int(now.timestamp()),
        "exp": int((now + (ttl or timedelta(hours=1))).timestamp()),
    }
    if settings.jwt_audience:
        payload["aud"] = settings.jwt_audience
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algo)


@pytest.fixture
def access_token(settings) -> Callable[..., str]:
    def _token(sub: str, ttl: timedelta | None = None) -> str:
        return create_access(sub, settings, ttl)

    return _token


@pytest.fixture
def auth_headers(access_token) -> Callable[[User], dict[str, str]]:
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {access_token(user.id)}"}

    return _headers
