from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import CurrentAccount
from app.api.routes.payments import purchase_out
from app.db.session import get_db
from app.models import Account, Course, Purchase
from app.schemas.auth import AccountOut
from app.schemas.payments import PurchaseListResponse, PurchaseWithCourse

router = APIRouter(prefix="/v1", tags=["accounts"])


def account_out(account: Account) -> AccountOut:
    return AccountOut(id=str(account.id), external_id=account.external_id, email=account.email, role=account.role)


@router.get("/me", response_model=AccountOut)
def me(current_account: CurrentAccount) -> AccountOut:
    return account_out(current_account)


@router.get("/me/purchases", response_model=PurchaseListResponse)
def my_purchases(current_account: CurrentAccount, db: Session = Depends(get_db)) -> PurchaseListResponse:
    rows = db.execute(
        select(Purchase, Course)
        .join(Course, Purchase.course_id == Course.id)
        .where(Purchase.account_id == current_account.id)
        .order_by(Purchase.created_at.desc())
    ).all()
    return PurchaseListResponse(
        purchases=[
            PurchaseWithCourse(
                **purchase_out(purchase).model_dump(),
                course_title=course.title,
                course_slug=course.slug,
            )
            for purchase, course in rows
        ]
    )
