from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import CurrentAccount, Gateway
from app.core.error_codes import ErrorCode
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.core.logging import get_logger
from app.db.session import get_db
from app.models import PURCHASE_FAILED, PURCHASE_SUCCESS, Course, Purchase
from app.schemas.payments import (
    CreateOrderRequest,
    CreateOrderResponse,
    PurchaseOut,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from app.services.ledger import begin_purchase, finalize_purchase

router = APIRouter(prefix="/v1/payments", tags=["payments"])
logger = get_logger(__name__)

CHECKOUT_PAYMENT_METHOD = "RAZORPAY"


def purchase_out(purchase: Purchase) -> PurchaseOut:
    return PurchaseOut(
        id=str(purchase.id),
        course_id=str(purchase.course_id),
        amount=purchase.amount,
        currency=purchase.currency,
        status=purchase.status,
        order_id=purchase.order_ref,
        payment_id=purchase.payment_ref,
        payment_method=purchase.payment_method,
        created_at=purchase.created_at.isoformat(),
    )


@router.post("/orders", response_model=CreateOrderResponse)
def create_order(
    payload: CreateOrderRequest,
    current_account: CurrentAccount,
    gateway: Gateway,
    db: Session = Depends(get_db),
) -> CreateOrderResponse:
    start = begin_purchase(db, gateway, current_account, payload.course_id)
    course = db.get(Course, start.purchase.course_id)
    return CreateOrderResponse(
        order_id=start.order_ref,
        amount=start.amount,
        currency=start.currency,
        key=gateway.key_id,
        course_title=course.title,
        user_email=current_account.email,
        reused=start.reused,
    )


@router.post("/verify", response_model=VerifyPaymentResponse)
def verify_payment(
    payload: VerifyPaymentRequest,
    current_account: CurrentAccount,
    gateway: Gateway,
    db: Session = Depends(get_db),
) -> VerifyPaymentResponse:
    if not gateway.verify_payment_signature(
        order_ref=payload.order_id,
        payment_ref=payload.payment_id,
        signature=payload.signature,
    ):
        logger.warning("payment_signature_rejected", order_ref=payload.order_id, account_id=str(current_account.id))
        raise ValidationError("Invalid payment signature", code=ErrorCode.INVALID_SIGNATURE)

    purchase = db.execute(select(Purchase).where(Purchase.order_ref == payload.order_id)).scalars().first()
    if purchase is None or purchase.account_id != current_account.id or purchase.course_id != payload.course_id:
        raise NotFoundError("Purchase record not found", code=ErrorCode.PURCHASE_NOT_FOUND)

    settlement = finalize_purchase(
        db,
        payload.order_id,
        PURCHASE_SUCCESS,
        payment_ref=payload.payment_id,
        payment_method=CHECKOUT_PAYMENT_METHOD,
    )
    if settlement.purchase.status == PURCHASE_FAILED:
        raise ConflictError("Payment was already marked as failed", code=ErrorCode.PURCHASE_ALREADY_SETTLED)

    return VerifyPaymentResponse(success=True, purchase=purchase_out(settlement.purchase))
