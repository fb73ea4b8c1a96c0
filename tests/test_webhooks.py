import json
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import select
from svix.webhooks import Webhook

from app.api.deps import get_payment_gateway
from app.core.config import Settings
from app.main import app
from app.models import PURCHASE_FAILED, PURCHASE_PENDING, PURCHASE_SUCCESS, Account, Comment, Enrollment, Purchase
from app.services.payment_gateway import RazorpayGateway
from conftest import TEST_WEBHOOK_SECRET


def _svix_post(api, payload: dict, *, secret: str = TEST_WEBHOOK_SECRET):
    body = json.dumps(payload)
    msg_id = f"msg_{uuid4().hex}"
    timestamp = datetime.now(timezone.utc)
    signature = Webhook(secret).sign(msg_id, timestamp, body)
    return api.post(
        "/v1/webhooks/auth",
        content=body,
        headers={
            "content-type": "application/json",
            "svix-id": msg_id,
            "svix-timestamp": str(int(timestamp.timestamp())),
            "svix-signature": signature,
        },
    )


def _user_event(event_type: str, external_id: str, email: str) -> dict:
    return {
        "type": event_type,
        "object": "event",
        "data": {
            "id": external_id,
            "object": "user",
            "primary_email_address_id": "idn_1",
            "email_addresses": [
                {"id": "idn_0", "email_address": "old@example.com"},
                {"id": "idn_1", "email_address": email},
            ],
        },
    }


def _find(db, external_id: str) -> Account | None:
    db.expire_all()
    return db.execute(select(Account).where(Account.external_id == external_id)).scalars().first()


def test_user_created_then_updated(api, db):
    external_id = f"user_{uuid4().hex[:10]}"

    created = _svix_post(api, _user_event("user.created", external_id, "Student@Example.com"))
    assert created.status_code == 200, created.text
    assert created.json()["action"] == "created"
    account = _find(db, external_id)
    assert account.email == "student@example.com"
    assert account.role == "user"

    updated = _svix_post(api, _user_event("user.updated", external_id, "renamed@example.com"))
    assert updated.status_code == 200, updated.text
    assert updated.json()["action"] == "updated"
    assert updated.json()["account_id"] == str(account.id)
    assert _find(db, external_id).email == "renamed@example.com"


def test_redelivered_user_created_keeps_role(api, db, make_account):
    admin = make_account(role="admin")

    resp = _svix_post(api, _user_event("user.created", admin.external_id, "admin@example.com"))

    assert resp.status_code == 200, resp.text
    assert resp.json()["action"] == "updated"
    assert _find(db, admin.external_id).role == "admin"


def test_user_deleted_removes_account_and_owned_rows(api, db, make_account, make_course):
    account = make_account()
    course, _ = make_course()
    db.add(Enrollment(account_id=account.id, course_id=course.id))
    db.add(Purchase(account_id=account.id, course_id=course.id, amount=1, currency="INR", status=PURCHASE_PENDING))
    db.commit()

    resp = _svix_post(
        api,
        {"type": "user.deleted", "data": {"id": account.external_id, "object": "user", "deleted": True}},
    )

    assert resp.status_code == 200, resp.text
    assert resp.json()["action"] == "deleted"
    assert _find(db, account.external_id) is None
    assert db.execute(select(Enrollment).where(Enrollment.account_id == account.id)).first() is None
    assert db.execute(select(Purchase).where(Purchase.account_id == account.id)).first() is None
    assert db.execute(select(Comment).where(Comment.account_id == account.id)).first() is None


def test_unknown_event_type_is_acknowledged(api):
    resp = _svix_post(api, {"type": "session.created", "data": {"id": "sess_1"}})
    assert resp.status_code == 200
    assert resp.json()["action"] == "ignored"


def test_malformed_known_event_is_rejected(api):
    resp = _svix_post(api, {"type": "user.created", "data": {"object": "user"}})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


def test_bad_svix_signature_is_rejected(api):
    resp = _svix_post(
        api,
        _user_event("user.created", "user_forged", "x@example.com"),
        secret="whsec_dGhpcy1pcy1ub3QtdGhlLXJpZ2h0LXNlY3JldA==",
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_SIGNATURE"


def test_missing_svix_headers_are_rejected(api):
    resp = api.post("/v1/webhooks/auth", json={"type": "user.created", "data": {}})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_SIGNATURE"


# ── Payment settlement notifications ─────────────────────────────────────────


def _payment_event(event: str, order_ref: str, payment_ref: str = "pay_1") -> bytes:
    return json.dumps(
        {
            "entity": "event",
            "event": event,
            "payload": {"payment": {"entity": {"id": payment_ref, "order_id": order_ref, "method": "upi", "amount": 49900}}},
        }
    ).encode()


def _post_payment(api, body: bytes, signature: str):
    return api.post(
        "/v1/webhooks/payments",
        content=body,
        headers={"content-type": "application/json", "x-razorpay-signature": signature},
    )


def _pending_purchase(db, make_account, make_course, order_ref: str) -> Purchase:
    account = make_account()
    course, _ = make_course()
    purchase = Purchase(
        account_id=account.id,
        course_id=course.id,
        amount=course.price_minor,
        currency="INR",
        status=PURCHASE_PENDING,
        order_ref=order_ref,
    )
    db.add(purchase)
    db.commit()
    return purchase


def test_payment_captured_settles_and_enrolls(api, db, make_account, make_course, sign_payment_webhook):
    purchase = _pending_purchase(db, make_account, make_course, "order_captured")
    body = _payment_event("payment.captured", "order_captured")

    first = _post_payment(api, body, sign_payment_webhook(body))
    second = _post_payment(api, body, sign_payment_webhook(body))

    assert first.status_code == 200, first.text
    assert first.json() == {"success": True, "action": "settled", "status": PURCHASE_SUCCESS}
    assert second.json()["action"] == "already_settled"
    db.expire_all()
    settled = db.get(Purchase, purchase.id)
    assert settled.status == PURCHASE_SUCCESS
    assert settled.payment_ref == "pay_1"
    assert settled.payment_method == "upi"
    enrollments = db.execute(select(Enrollment).where(Enrollment.account_id == purchase.account_id)).scalars().all()
    assert len(enrollments) == 1


def test_payment_failed_marks_failed(api, db, make_account, make_course, sign_payment_webhook):
    purchase = _pending_purchase(db, make_account, make_course, "order_failed")
    body = _payment_event("payment.failed", "order_failed")

    resp = _post_payment(api, body, sign_payment_webhook(body))

    assert resp.status_code == 200
    assert resp.json()["status"] == PURCHASE_FAILED
    db.expire_all()
    assert db.get(Purchase, purchase.id).status == PURCHASE_FAILED


def test_other_payment_events_are_ignored(api, sign_payment_webhook):
    body = json.dumps({"event": "refund.created", "payload": {}}).encode()
    resp = _post_payment(api, body, sign_payment_webhook(body))
    assert resp.status_code == 200
    assert resp.json()["action"] == "ignored"


def test_unknown_order_is_acknowledged(api, sign_payment_webhook):
    body = _payment_event("order.paid", "order_nobody")
    resp = _post_payment(api, body, sign_payment_webhook(body))
    assert resp.status_code == 200
    assert resp.json()["action"] == "unknown_order"


def test_payment_webhook_signature_is_checked_over_raw_body(api, db, make_account, make_course, sign_payment_webhook):
    purchase = _pending_purchase(db, make_account, make_course, "order_tampered")
    body = _payment_event("payment.captured", "order_tampered")
    tampered = body.replace(b"pay_1", b"pay_9")

    resp = _post_payment(api, tampered, sign_payment_webhook(body))

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_SIGNATURE"
    db.expire_all()
    assert db.get(Purchase, purchase.id).status == PURCHASE_PENDING


def test_payment_webhook_without_secret_surfaces_as_503(api, sign_payment_webhook):
    app.dependency_overrides[get_payment_gateway] = lambda: RazorpayGateway(
        Settings(payment_key_id="", payment_key_secret="", payment_webhook_secret="")
    )
    body = _payment_event("payment.captured", "order_any")

    resp = _post_payment(api, body, sign_payment_webhook(body))

    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "PAYMENTS_NOT_CONFIGURED"
