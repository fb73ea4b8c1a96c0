"""Course and module entitlement rules.

`evaluate` is a pure function over the facts that matter for an access
decision. `load_access_facts` fetches exactly those facts and nothing else, so
the rules can be tested without a database.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.error_codes import ErrorCode
from app.core.errors import NotFoundError
from app.models import PURCHASE_SUCCESS, Course, Enrollment, Module, Purchase


@dataclass(frozen=True)
class AccessFacts:
    is_enrolled: bool
    has_paid: bool
    course_price_minor: int
    module_is_free: bool | None = None


@dataclass(frozen=True)
class AccessResult:
    is_enrolled: bool
    has_paid: bool
    # Partial tier: enrolled accounts may open free content.
    has_access: bool
    has_full_course_access: bool
    has_module_access: bool | None = None
    is_free_module: bool | None = None


def evaluate(facts: AccessFacts) -> AccessResult:
    is_free_course = facts.course_price_minor == 0
    has_full_course_access = facts.is_enrolled and (is_free_course or facts.has_paid)

    has_module_access = None
    if facts.module_is_free is not None:
        if facts.module_is_free:
            has_module_access = facts.is_enrolled
        else:
            has_module_access = facts.is_enrolled and (facts.has_paid or is_free_course)

    return AccessResult(
        is_enrolled=facts.is_enrolled,
        has_paid=facts.has_paid,
        has_access=facts.is_enrolled,
        has_full_course_access=has_full_course_access,
        has_module_access=has_module_access,
        is_free_module=facts.module_is_free,
    )


def is_enrolled(db: Session, account_id: uuid.UUID, course_id: uuid.UUID) -> bool:
    row = db.execute(
        select(Enrollment.id).where(Enrollment.account_id == account_id, Enrollment.course_id == course_id).limit(1)
    ).scalar_one_or_none()
    return row is not None


def has_paid(db: Session, account_id: uuid.UUID, course_id: uuid.UUID) -> bool:
    row = db.execute(
        select(Purchase.id)
        .where(
            Purchase.account_id == account_id,
            Purchase.course_id == course_id,
            Purchase.status == PURCHASE_SUCCESS,
        )
        .limit(1)
    ).scalar_one_or_none()
    return row is not None


def load_access_facts(
    db: Session,
    account_id: uuid.UUID,
    course_id: uuid.UUID,
    module_id: uuid.UUID | None = None,
) -> AccessFacts:
    course = db.get(Course, course_id)
    if course is None:
        raise NotFoundError("Course not found", code=ErrorCode.COURSE_NOT_FOUND)

    module_is_free = None
    if module_id is not None:
        module = db.get(Module, module_id)
        if module is None or module.course_id != course.id:
            raise NotFoundError("Module not found", code=ErrorCode.MODULE_NOT_FOUND)
        module_is_free = module.is_free

    return AccessFacts(
        is_enrolled=is_enrolled(db, account_id, course.id),
        has_paid=has_paid(db, account_id, course.id),
        course_price_minor=course.price_minor,
        module_is_free=module_is_free,
    )


def evaluate_access(
    db: Session,
    account_id: uuid.UUID,
    course_id: uuid.UUID,
    module_id: uuid.UUID | None = None,
) -> AccessResult:
    return evaluate(load_access_facts(db, account_id, course_id, module_id))
