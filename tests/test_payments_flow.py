from sqlalchemy import select

from app.api.deps import get_payment_gateway
from app.core.config import Settings
from app.core.security import create_dev_identity_token
from app.main import app
from app.models import PURCHASE_FAILED, Enrollment, Purchase
from app.services.payment_gateway import RazorpayGateway


def test_checkout_flow_grants_full_access(api, db, make_account, make_course, auth_headers, sign_checkout):
    account = make_account()
    course, modules = make_course(price_minor=49900)
    headers = auth_headers(account)

    order = api.post("/v1/payments/orders", headers=headers, json={"course_id": str(course.id)})
    assert order.status_code == 200, order.text
    order_data = order.json()
    assert order_data["amount"] == 49900
    assert order_data["currency"] == "INR"
    assert order_data["key"] == "rzp_test_key"
    assert order_data["user_email"] == account.email
    assert order_data["course_title"] == course.title
    assert order_data["reused"] is False

    again = api.post("/v1/payments/orders", headers=headers, json={"course_id": str(course.id)})
    assert again.json()["order_id"] == order_data["order_id"]
    assert again.json()["reused"] is True

    denied = api.get(f"/v1/courses/{course.id}/modules/{modules[1].id}/content", headers=headers)
    assert denied.status_code == 403

    verify = api.post(
        "/v1/payments/verify",
        headers=headers,
        json={
            "course_id": str(course.id),
            "order_id": order_data["order_id"],
            "payment_id": "pay_flow_1",
            "signature": sign_checkout(order_data["order_id"], "pay_flow_1"),
        },
    )
    assert verify.status_code == 200, verify.text
    assert verify.json()["purchase"]["status"] == "SUCCESS"
    assert verify.json()["purchase"]["payment_method"] == "RAZORPAY"

    access = api.get(
        "/v1/access",
        headers=headers,
        params={"course_id": str(course.id), "module_id": str(modules[1].id)},
    )
    assert access.status_code == 200
    assert access.json() == {
        "course_id": str(course.id),
        "module_id": str(modules[1].id),
        "is_enrolled": True,
        "has_paid": True,
        "has_access": True,
        "has_full_access": True,
        "has_module_access": True,
        "is_free_module": False,
    }

    content = api.get(f"/v1/courses/{course.id}/modules/{modules[1].id}/content", headers=headers)
    assert content.status_code == 200, content.text

    purchases = api.get("/v1/me/purchases", headers=headers).json()["purchases"]
    assert len(purchases) == 1
    assert purchases[0]["course_slug"] == course.slug
    assert purchases[0]["payment_id"] == "pay_flow_1"

    repeat = api.post("/v1/payments/orders", headers=headers, json={"course_id": str(course.id)})
    assert repeat.status_code == 409
    assert repeat.json()["error"]["code"] == "ALREADY_PURCHASED"


def test_verify_is_idempotent(api, db, make_account, make_course, auth_headers, sign_checkout):
    account = make_account()
    course, _ = make_course()
    headers = auth_headers(account)
    order_id = api.post("/v1/payments/orders", headers=headers, json={"course_id": str(course.id)}).json()["order_id"]
    body = {
        "course_id": str(course.id),
        "order_id": order_id,
        "payment_id": "pay_twice",
        "signature": sign_checkout(order_id, "pay_twice"),
    }

    assert api.post("/v1/payments/verify", headers=headers, json=body).status_code == 200
    assert api.post("/v1/payments/verify", headers=headers, json=body).status_code == 200

    enrollments = db.execute(select(Enrollment).where(Enrollment.account_id == account.id)).scalars().all()
    assert len(enrollments) == 1


def test_verify_rejects_bad_signature(api, make_account, make_course, auth_headers):
    account = make_account()
    course, _ = make_course()
    headers = auth_headers(account)
    order_id = api.post("/v1/payments/orders", headers=headers, json={"course_id": str(course.id)}).json()["order_id"]

    resp = api.post(
        "/v1/payments/verify",
        headers=headers,
        json={"course_id": str(course.id), "order_id": order_id, "payment_id": "pay_x", "signature": "deadbeef"},
    )

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_SIGNATURE"


def test_verify_rejects_another_accounts_order(api, make_account, make_course, auth_headers, sign_checkout):
    owner = make_account()
    intruder = make_account()
    course, _ = make_course()
    order_id = api.post(
        "/v1/payments/orders", headers=auth_headers(owner), json={"course_id": str(course.id)}
    ).json()["order_id"]

    resp = api.post(
        "/v1/payments/verify",
        headers=auth_headers(intruder),
        json={
            "course_id": str(course.id),
            "order_id": order_id,
            "payment_id": "pay_y",
            "signature": sign_checkout(order_id, "pay_y"),
        },
    )

    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "PURCHASE_NOT_FOUND"


def test_verify_after_failure_reports_conflict(api, db, make_account, make_course, auth_headers, sign_checkout):
    account = make_account()
    course, _ = make_course()
    headers = auth_headers(account)
    order_id = api.post("/v1/payments/orders", headers=headers, json={"course_id": str(course.id)}).json()["order_id"]
    purchase = db.execute(select(Purchase).where(Purchase.order_ref == order_id)).scalars().one()
    purchase.status = PURCHASE_FAILED
    db.commit()

    resp = api.post(
        "/v1/payments/verify",
        headers=headers,
        json={
            "course_id": str(course.id),
            "order_id": order_id,
            "payment_id": "pay_late",
            "signature": sign_checkout(order_id, "pay_late"),
        },
    )

    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "PURCHASE_ALREADY_SETTLED"


def test_order_for_free_course_is_rejected(api, make_account, make_course, auth_headers):
    account = make_account()
    course, _ = make_course(price_minor=0)

    resp = api.post("/v1/payments/orders", headers=auth_headers(account), json={"course_id": str(course.id)})

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "COURSE_IS_FREE"


def test_gateway_outage_surfaces_as_503(api, make_account, make_course, auth_headers, gateway_recorder):
    account = make_account()
    course, _ = make_course()
    gateway_recorder.fail_status = 500

    resp = api.post("/v1/payments/orders", headers=auth_headers(account), json={"course_id": str(course.id)})

    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "PAYMENT_GATEWAY_ERROR"


def test_payment_endpoints_require_identity(api, make_course):
    course, _ = make_course()
    resp = api.post("/v1/payments/orders", json={"course_id": str(course.id)})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "UNAUTHORIZED"


def test_expired_token_is_rejected(api, make_account):
    account = make_account()
    token = create_dev_identity_token(account.external_id, expires_seconds=-60)
    resp = api.get("/v1/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "INVALID_TOKEN"


def test_verify_without_gateway_secrets_surfaces_as_503(api, make_account, make_course, auth_headers):
    account = make_account()
    course, _ = make_course()
    app.dependency_overrides[get_payment_gateway] = lambda: RazorpayGateway(
        Settings(payment_key_id="", payment_key_secret="", payment_webhook_secret="")
    )

    resp = api.post(
        "/v1/payments/verify",
        headers=auth_headers(account),
        json={"course_id": str(course.id), "order_id": "order_x", "payment_id": "pay_x", "signature": "deadbeef"},
    )

    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "PAYMENTS_NOT_CONFIGURED"
