import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import CurrentAccount
from app.db.session import get_db
from app.schemas.access import AccessResponse
from app.services.entitlement import evaluate_access

router = APIRouter(prefix="/v1/access", tags=["access"])


@router.get("", response_model=AccessResponse)
def check_access(
    course_id: uuid.UUID,
    current_account: CurrentAccount,
    module_id: uuid.UUID | None = None,
    db: Session = Depends(get_db),
) -> AccessResponse:
    result = evaluate_access(db, current_account.id, course_id, module_id)
    return AccessResponse(
        course_id=str(course_id),
        module_id=str(module_id) if module_id else None,
        is_enrolled=result.is_enrolled,
        has_paid=result.has_paid,
        has_access=result.has_access,
        has_full_access=result.has_full_course_access,
        has_module_access=result.has_module_access,
        is_free_module=result.is_free_module,
    )
