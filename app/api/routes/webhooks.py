from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from app.api.deps import Gateway
from app.core.error_codes import ErrorCode
from app.core.errors import NotFoundError, ValidationError
from app.core.logging import get_logger
from app.db.session import get_db
from app.models import PURCHASE_FAILED, PURCHASE_SUCCESS
from app.schemas.webhooks import AuthWebhookResponse, PaymentEvent, PaymentWebhookResponse
from app.services.account_sync import apply_account_event, decode_account_event, verify_auth_webhook
from app.services.ledger import finalize_purchase

router = APIRouter(prefix="/v1/webhooks", tags=["webhooks"])
logger = get_logger(__name__)

PAYMENT_EVENT_OUTCOMES = {
    "payment.captured": PURCHASE_SUCCESS,
    "order.paid": PURCHASE_SUCCESS,
    "payment.failed": PURCHASE_FAILED,
}


async def raw_body(request: Request) -> bytes:
    return await request.body()


@router.post("/auth", response_model=AuthWebhookResponse)
def auth_webhook(
    request: Request,
    body: bytes = Depends(raw_body),
    db: Session = Depends(get_db),
) -> AuthWebhookResponse:
    payload = verify_auth_webhook(body, request.headers)
    event = decode_account_event(payload)
    if event is None:
        logger.info("auth_webhook_ignored", event_type=payload.get("type"))
        return AuthWebhookResponse(success=True, action="ignored")

    result = apply_account_event(db, event)
    return AuthWebhookResponse(
        success=True,
        action=result.action,
        account_id=str(result.account.id) if result.account else None,
    )


@router.post("/payments", response_model=PaymentWebhookResponse)
def payment_webhook(
    request: Request,
    gateway: Gateway,
    body: bytes = Depends(raw_body),
    db: Session = Depends(get_db),
) -> PaymentWebhookResponse:
    signature = request.headers.get("x-razorpay-signature", "")
    if not gateway.verify_webhook_signature(body=body, signature=signature):
        logger.warning("payment_webhook_rejected")
        raise ValidationError("Invalid webhook signature", code=ErrorCode.INVALID_SIGNATURE)

    try:
        event = PaymentEvent.model_validate_json(body)
    except PydanticValidationError as exc:
        raise ValidationError("Malformed payment event") from exc

    outcome = PAYMENT_EVENT_OUTCOMES.get(event.event)
    if outcome is None:
        logger.info("payment_webhook_ignored", event_type=event.event)
        return PaymentWebhookResponse(success=True, action="ignored")

    if event.payload is None or event.payload.payment is None:
        raise ValidationError(f"Payment event {event.event} has no payment entity")

    entity = event.payload.payment.entity
    try:
        settlement = finalize_purchase(
            db,
            entity.order_id,
            outcome,
            payment_ref=entity.id,
            payment_method=entity.method,
        )
    except NotFoundError:
        logger.warning("payment_webhook_unknown_order", order_ref=entity.order_id, event_type=event.event)
        return PaymentWebhookResponse(success=True, action="unknown_order")

    return PaymentWebhookResponse(
        success=True,
        action="settled" if settlement.applied else "already_settled",
        status=settlement.purchase.status,
    )
