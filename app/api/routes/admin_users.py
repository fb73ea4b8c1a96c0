import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import AdminAccount, require_admin
from app.api.routes.me import account_out
from app.api.routes.payments import purchase_out
from app.core.error_codes import ErrorCode
from app.core.errors import NotFoundError, ValidationError
from app.core.logging import get_logger
from app.db.session import get_db
from app.models import PURCHASE_SUCCESS, ROLE_ADMIN, Account, Enrollment, Purchase
from app.schemas.admin_users import (
    AccountListResponse,
    CourseAccessResponse,
    CourseAccessRow,
    GrantAccessRequest,
    GrantAccessResponse,
    RoleUpdateRequest,
    RoleUpdateResponse,
)
from app.services.ledger import get_course_or_404, grant_full_access

router = APIRouter(prefix="/v1/admin/users", tags=["admin"], dependencies=[Depends(require_admin)])
logger = get_logger(__name__)


@router.get("", response_model=AccountListResponse)
def list_accounts(db: Session = Depends(get_db)) -> AccountListResponse:
    accounts = db.execute(select(Account).order_by(Account.created_at.desc())).scalars().all()
    return AccountListResponse(users=[account_out(account) for account in accounts])


@router.patch("/role", response_model=RoleUpdateResponse)
def update_role(payload: RoleUpdateRequest, admin: AdminAccount, db: Session = Depends(get_db)) -> RoleUpdateResponse:
    account = db.get(Account, payload.account_id)
    if account is None:
        raise NotFoundError("User not found", code=ErrorCode.ACCOUNT_NOT_FOUND)
    if account.id == admin.id and payload.role != ROLE_ADMIN:
        raise ValidationError("You cannot remove your own admin role")

    account.role = payload.role
    db.commit()
    db.refresh(account)
    logger.info("account_role_updated", account_id=str(account.id), role=account.role, by=str(admin.id))
    return RoleUpdateResponse(success=True, user=account_out(account), message=f"User role updated to {account.role}")


@router.get("/course-access", response_model=CourseAccessResponse)
def course_access(course_id: uuid.UUID, db: Session = Depends(get_db)) -> CourseAccessResponse:
    course = get_course_or_404(db, course_id)
    accounts = db.execute(select(Account).order_by(Account.created_at.desc())).scalars().all()
    enrollments = {
        row.account_id: row
        for row in db.execute(select(Enrollment).where(Enrollment.course_id == course.id)).scalars().all()
    }
    purchases: dict[uuid.UUID, Purchase] = {}
    for row in db.execute(
        select(Purchase)
        .where(Purchase.course_id == course.id, Purchase.status == PURCHASE_SUCCESS)
        .order_by(Purchase.created_at.asc())
    ).scalars().all():
        purchases.setdefault(row.account_id, row)

    rows: list[CourseAccessRow] = []
    for account in accounts:
        enrollment = enrollments.get(account.id)
        purchase = purchases.get(account.id)
        rows.append(
            CourseAccessRow(
                id=str(account.id),
                external_id=account.external_id,
                email=account.email,
                role=account.role,
                is_enrolled=enrollment is not None,
                has_paid=purchase is not None,
                enrollment_date=enrollment.created_at.isoformat() if enrollment else None,
                purchase_date=purchase.created_at.isoformat() if purchase else None,
                payment_method=purchase.payment_method if purchase else None,
                amount=purchase.amount if purchase else None,
            )
        )

    return CourseAccessResponse(
        users=rows,
        total_users=len(rows),
        enrolled_users=sum(1 for row in rows if row.is_enrolled),
        paid_users=sum(1 for row in rows if row.has_paid),
    )


@router.post("/grant-access", response_model=GrantAccessResponse)
def grant_access(payload: GrantAccessRequest, admin: AdminAccount, db: Session = Depends(get_db)) -> GrantAccessResponse:
    account = db.execute(select(Account).where(Account.external_id == payload.external_id)).scalars().first()
    if account is None:
        raise NotFoundError("User not found", code=ErrorCode.ACCOUNT_NOT_FOUND)

    purchase, created = grant_full_access(
        db,
        account,
        payload.course_id,
        payment_method=payload.payment_method,
        amount=payload.amount,
    )
    logger.info("admin_granted_access", account_id=str(account.id), course_id=str(payload.course_id), by=str(admin.id))
    message = "Full course access granted" if created else "User already has full course access"
    return GrantAccessResponse(message=message, created=created, purchase=purchase_out(purchase))
