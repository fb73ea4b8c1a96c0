from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import CurrentAccount
from app.db.session import get_db
from app.models import Course, Enrollment
from app.schemas.courses import CourseSummary
from app.schemas.enrollments import (
    EnrolledCourse,
    EnrollmentListResponse,
    EnrollmentOut,
    EnrollRequest,
    EnrollResponse,
)
from app.services.catalog_service import course_summary_fields, list_modules, module_outlines
from app.services.ledger import enroll

router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])


def _enrollment_out(enrollment: Enrollment) -> EnrollmentOut:
    return EnrollmentOut(
        id=str(enrollment.id),
        course_id=str(enrollment.course_id),
        created_at=enrollment.created_at.isoformat(),
    )


@router.get("", response_model=EnrollmentListResponse)
def list_enrollments(current_account: CurrentAccount, db: Session = Depends(get_db)) -> EnrollmentListResponse:
    rows = db.execute(
        select(Enrollment, Course)
        .join(Course, Enrollment.course_id == Course.id)
        .where(Enrollment.account_id == current_account.id)
        .order_by(Enrollment.created_at.desc())
    ).all()
    modules = list_modules(db, [course.id for _, course in rows])

    return EnrollmentListResponse(
        enrollments=[
            EnrolledCourse(
                enrollment=_enrollment_out(enrollment),
                course=CourseSummary(**course_summary_fields(course)),
                modules=module_outlines(db, modules.get(course.id, [])),
            )
            for enrollment, course in rows
        ]
    )


@router.post("", response_model=EnrollResponse, status_code=201)
def create_enrollment(
    payload: EnrollRequest,
    current_account: CurrentAccount,
    db: Session = Depends(get_db),
) -> EnrollResponse:
    enrollment = enroll(db, current_account, payload.course_id)
    return EnrollResponse(enrollment=_enrollment_out(enrollment), message="Successfully enrolled")
