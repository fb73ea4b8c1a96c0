import os

TEST_AUTH_SECRET = "test-dev-secret-0123456789abcdef0123456789"
TEST_WEBHOOK_SECRET = "whsec_MfKQ9r8GKYqrTwjUPD8ILPZIo2LaLaSw"

# In-process tests run against an in-memory SQLite database; configure before app imports.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_DATA"] = "false"
os.environ["AUTH_JWKS_URL"] = ""
os.environ["AUTH_ISSUER"] = ""
os.environ["AUTH_AUDIENCE"] = ""
os.environ.setdefault("AUTH_DEV_SECRET", TEST_AUTH_SECRET)
os.environ["AUTH_WEBHOOK_SECRET"] = TEST_WEBHOOK_SECRET

import json
from uuid import uuid4

import httpx
import pytest
from fastapi.testclient import TestClient
from httpx import Client
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_payment_gateway
from app.core.config import Settings
from app.core.security import create_dev_identity_token, hmac_sha256_hex
from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models import ROLE_USER, Account, Course, Module
from app.services.payment_gateway import RazorpayGateway

RUN_INTEGRATION = os.getenv("RUN_INTEGRATION") == "1"
BASE_URL = os.getenv("BASE_URL", "http://localhost:10723")

PAYMENT_KEY_ID = "rzp_test_key"
PAYMENT_KEY_SECRET = "test-key-secret"
PAYMENT_WEBHOOK_SECRET = "test-payment-webhook-secret"


@pytest.fixture(scope="session")
def base_url() -> str:
    return BASE_URL


@pytest.fixture(scope="session")
def client(base_url: str):
    with Client(base_url=base_url, timeout=20.0) as c:
        yield c


@pytest.fixture(scope="session")
def integration_enabled() -> bool:
    return RUN_INTEGRATION


# ── In-process fixtures ──────────────────────────────────────────────────────


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


class GatewayRecorder:
    """Stands in for the payment provider's REST API over httpx.MockTransport."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.fail_status: int | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_status is not None:
            return httpx.Response(self.fail_status, json={"error": {"description": "rejected"}})
        body = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "id": f"order_{uuid4().hex[:14]}",
                "amount": body["amount"],
                "currency": body["currency"],
                "receipt": body["receipt"],
                "status": "created",
            },
        )


@pytest.fixture
def gateway_recorder() -> GatewayRecorder:
    return GatewayRecorder()


@pytest.fixture
def gateway(gateway_recorder: GatewayRecorder) -> RazorpayGateway:
    settings = Settings(
        payment_key_id=PAYMENT_KEY_ID,
        payment_key_secret=PAYMENT_KEY_SECRET,
        payment_webhook_secret=PAYMENT_WEBHOOK_SECRET,
    )
    return RazorpayGateway(settings, transport=httpx.MockTransport(gateway_recorder.handler))


@pytest.fixture
def api(session_factory, gateway):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_account(db):
    def _make(role: str = ROLE_USER, email: str | None = None) -> Account:
        external_id = f"user_{uuid4().hex[:12]}"
        account = Account(external_id=external_id, email=email or f"{external_id}@example.com", role=role)
        db.add(account)
        db.commit()
        db.refresh(account)
        return account

    return _make


@pytest.fixture
def make_course(db):
    def _make(
        price_minor: int = 49900,
        *,
        is_published: bool = True,
        modules: tuple[tuple[str, bool], ...] = (("Basics", True), ("Advanced", False)),
    ) -> tuple[Course, list[Module]]:
        slug = f"course-{uuid4().hex[:8]}"
        course = Course(
            slug=slug,
            title=f"Course {slug}",
            description="Test course",
            price_minor=price_minor,
            currency="INR",
            is_published=is_published,
        )
        db.add(course)
        db.flush()
        created = [
            Module(course_id=course.id, title=title, is_free=is_free, sort_order=index)
            for index, (title, is_free) in enumerate(modules, start=1)
        ]
        db.add_all(created)
        db.commit()
        return course, created

    return _make


@pytest.fixture
def auth_headers():
    def _headers(account: Account) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_dev_identity_token(account.external_id)}"}

    return _headers


def checkout_signature(order_ref: str, payment_ref: str) -> str:
    return hmac_sha256_hex(PAYMENT_KEY_SECRET, f"{order_ref}|{payment_ref}")


def payment_webhook_signature(body: bytes) -> str:
    return hmac_sha256_hex(PAYMENT_WEBHOOK_SECRET, body)


@pytest.fixture
def sign_checkout():
    return checkout_signature


@pytest.fixture
def sign_payment_webhook():
    return payment_webhook_signature
