import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import CurrentAccount
from app.core.error_codes import ErrorCode
from app.core.errors import ForbiddenError
from app.db.session import get_db
from app.schemas.courses import CourseDetailResponse, CourseListItem, CourseListResponse, ModuleContentResponse
from app.services.catalog_service import (
    course_summary_fields,
    get_module_in_course,
    get_published_course_by_id_or_slug,
    list_modules,
    list_published_courses,
    module_content,
    module_outlines,
)
from app.services.entitlement import evaluate_access
from app.services.ledger import get_published_course

router = APIRouter(prefix="/v1/courses", tags=["courses"])


@router.get("", response_model=CourseListResponse)
def list_courses(db: Session = Depends(get_db)) -> CourseListResponse:
    courses = [
        CourseListItem(**course_summary_fields(course), modules=module_outlines(db, modules))
        for course, modules in list_published_courses(db)
    ]
    return CourseListResponse(courses=courses)


@router.get("/{id_or_slug}", response_model=CourseDetailResponse)
def get_course(id_or_slug: str, db: Session = Depends(get_db)) -> CourseDetailResponse:
    course = get_published_course_by_id_or_slug(db, id_or_slug)
    modules = list_modules(db, [course.id]).get(course.id, [])
    return CourseDetailResponse(**course_summary_fields(course), modules=module_outlines(db, modules))


@router.get("/{course_id}/modules/{module_id}/content", response_model=ModuleContentResponse)
def get_module_content(
    course_id: uuid.UUID,
    module_id: uuid.UUID,
    current_account: CurrentAccount,
    db: Session = Depends(get_db),
) -> ModuleContentResponse:
    course = get_published_course(db, course_id)
    module = get_module_in_course(db, course.id, module_id)

    access = evaluate_access(db, current_account.id, course.id, module.id)
    if not access.has_module_access and not current_account.is_admin:
        raise ForbiddenError("You do not have access to this module", code=ErrorCode.MODULE_ACCESS_DENIED)

    return module_content(db, module)
