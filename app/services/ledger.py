"""Enrollment and purchase bookkeeping.

Check-then-act paths are backed by storage constraints: a unique
(account, course) enrollment and a partial unique index allowing a single
PENDING purchase per (account, course). Settlement locks the purchase row and
treats terminal purchases as already settled.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.error_codes import ErrorCode
from app.core.errors import (
    AlreadyEnrolledError,
    AlreadyEnrolledFullyError,
    ConflictError,
    CourseUnavailableError,
    NotFoundError,
    ValidationError,
)
from app.core.logging import get_logger
from app.models import (
    PURCHASE_PENDING,
    PURCHASE_SUCCESS,
    PURCHASE_TERMINAL_STATES,
    Account,
    Course,
    Enrollment,
    Purchase,
)
from app.services.entitlement import has_paid, is_enrolled
from app.services.payment_gateway import PaymentGateway

logger = get_logger(__name__)


@dataclass(frozen=True)
class PurchaseStart:
    purchase: Purchase
    order_ref: str
    amount: int
    currency: str
    reused: bool


@dataclass(frozen=True)
class Settlement:
    purchase: Purchase
    applied: bool


def get_course_or_404(db: Session, course_id: uuid.UUID) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise NotFoundError("Course not found", code=ErrorCode.COURSE_NOT_FOUND)
    return course


def get_published_course(db: Session, course_id: uuid.UUID) -> Course:
    course = get_course_or_404(db, course_id)
    if not course.is_published:
        raise CourseUnavailableError()
    return course


def enroll(db: Session, account: Account, course_id: uuid.UUID) -> Enrollment:
    course = get_published_course(db, course_id)
    if is_enrolled(db, account.id, course.id):
        raise AlreadyEnrolledError()

    enrollment = Enrollment(account_id=account.id, course_id=course.id)
    db.add(enrollment)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise AlreadyEnrolledError() from exc

    db.refresh(enrollment)
    logger.info("enrollment_created", account_id=str(account.id), course_id=str(course.id))
    return enrollment


def _find_pending_purchase(db: Session, account_id: uuid.UUID, course_id: uuid.UUID) -> Purchase | None:
    return db.execute(
        select(Purchase).where(
            Purchase.account_id == account_id,
            Purchase.course_id == course_id,
            Purchase.status == PURCHASE_PENDING,
        )
    ).scalars().first()


def _reuse(purchase: Purchase) -> PurchaseStart:
    logger.info("purchase_order_reused", purchase_id=str(purchase.id), order_ref=purchase.order_ref)
    return PurchaseStart(
        purchase=purchase,
        order_ref=purchase.order_ref,
        amount=purchase.amount,
        currency=purchase.currency,
        reused=True,
    )


def begin_purchase(db: Session, gateway: PaymentGateway, account: Account, course_id: uuid.UUID) -> PurchaseStart:
    course = get_published_course(db, course_id)
    if course.price_minor <= 0:
        raise ValidationError("Course is free; enroll instead", code=ErrorCode.COURSE_IS_FREE)
    if has_paid(db, account.id, course.id):
        raise AlreadyEnrolledFullyError()

    pending = _find_pending_purchase(db, account.id, course.id)
    if pending is not None and pending.order_ref:
        return _reuse(pending)

    purchase = Purchase(
        account_id=account.id,
        course_id=course.id,
        amount=course.price_minor,
        currency=course.currency,
        status=PURCHASE_PENDING,
    )
    db.add(purchase)
    try:
        db.flush()
    except IntegrityError:
        # Another request holds the PENDING slot; converge on its order.
        db.rollback()
        winner = _find_pending_purchase(db, account.id, course.id)
        if winner is None or not winner.order_ref:
            raise ConflictError("A payment for this course is already being started", code=ErrorCode.CONFLICT)
        return _reuse(winner)

    try:
        order = gateway.create_order(
            amount=course.price_minor,
            currency=course.currency,
            receipt=f"rcpt_{purchase.id.hex[:24]}",
            notes={"course_id": str(course.id), "account_id": str(account.id), "course_title": course.title},
        )
    except Exception:
        db.rollback()
        raise

    purchase.order_ref = order.order_ref
    db.commit()
    logger.info(
        "purchase_started",
        purchase_id=str(purchase.id),
        order_ref=order.order_ref,
        course_id=str(course.id),
        amount=order.amount,
    )
    return PurchaseStart(
        purchase=purchase,
        order_ref=order.order_ref,
        amount=order.amount,
        currency=order.currency,
        reused=False,
    )


def finalize_purchase(
    db: Session,
    order_ref: str,
    outcome: str,
    *,
    payment_ref: str | None = None,
    payment_method: str | None = None,
) -> Settlement:
    if outcome not in PURCHASE_TERMINAL_STATES:
        raise ValidationError(f"Unsupported settlement outcome: {outcome}")

    purchase = db.execute(
        select(Purchase).where(Purchase.order_ref == order_ref).with_for_update()
    ).scalars().first()
    if purchase is None:
        raise NotFoundError("Purchase record not found", code=ErrorCode.PURCHASE_NOT_FOUND)

    if purchase.status in PURCHASE_TERMINAL_STATES:
        db.commit()
        logger.info(
            "purchase_settlement_ignored",
            order_ref=order_ref,
            status=purchase.status,
            requested=outcome,
        )
        return Settlement(purchase=purchase, applied=False)

    purchase.status = outcome
    if payment_ref:
        purchase.payment_ref = payment_ref
    if payment_method:
        purchase.payment_method = payment_method

    if outcome == PURCHASE_SUCCESS and not is_enrolled(db, purchase.account_id, purchase.course_id):
        db.add(Enrollment(account_id=purchase.account_id, course_id=purchase.course_id))

    try:
        db.commit()
    except IntegrityError:
        # The enrollment appeared concurrently; settle again without inserting it.
        db.rollback()
        return finalize_purchase(db, order_ref, outcome, payment_ref=payment_ref, payment_method=payment_method)

    db.refresh(purchase)
    logger.info("purchase_settled", order_ref=order_ref, status=purchase.status, purchase_id=str(purchase.id))
    return Settlement(purchase=purchase, applied=True)


def grant_full_access(
    db: Session,
    account: Account,
    course_id: uuid.UUID,
    *,
    payment_method: str = "MANUAL",
    amount: int | None = None,
) -> tuple[Purchase, bool]:
    """Record an offline payment: enroll the account and add a SUCCESS purchase.

    Returns the SUCCESS purchase and whether it was created by this call.
    """
    course = get_course_or_404(db, course_id)

    if not is_enrolled(db, account.id, course.id):
        db.add(Enrollment(account_id=account.id, course_id=course.id))

    existing = db.execute(
        select(Purchase).where(
            Purchase.account_id == account.id,
            Purchase.course_id == course.id,
            Purchase.status == PURCHASE_SUCCESS,
        )
    ).scalars().first()
    if existing is not None:
        db.commit()
        return existing, False

    marker = uuid.uuid4().hex
    purchase = Purchase(
        account_id=account.id,
        course_id=course.id,
        amount=course.price_minor if amount is None else amount,
        currency=course.currency,
        status=PURCHASE_SUCCESS,
        order_ref=f"manual_order_{marker}",
        payment_ref=f"manual_{marker}",
        payment_method=payment_method,
    )
    db.add(purchase)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Access grant conflicted with a concurrent change") from exc

    db.refresh(purchase)
    logger.info(
        "full_access_granted",
        account_id=str(account.id),
        course_id=str(course.id),
        payment_method=payment_method,
    )
    return purchase, True
