import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.db.session import get_db
from app.models import Course
from app.schemas.admin_courses import (
    AdminCourseCreateRequest,
    AdminCourseListResponse,
    AdminCourseResponse,
    AdminCourseSummaryResponse,
    AdminCourseUpdateRequest,
    AdminCourseWithModulesResponse,
    AdminModuleCreateRequest,
    AdminModuleReorderRequest,
    AdminModuleUpdateRequest,
    ReorderResponse,
)
from app.schemas.courses import ModuleOutline
from app.services.admin_course_service import (
    create_course_with_modules,
    create_module,
    delete_course,
    delete_module,
    list_all_courses,
    reorder_modules,
    update_course,
    update_module,
)
from app.services.catalog_service import list_modules, module_outlines
from app.services.ledger import get_course_or_404

router = APIRouter(prefix="/v1/admin/courses", tags=["admin"], dependencies=[Depends(require_admin)])


def _course_response(course: Course) -> AdminCourseResponse:
    return AdminCourseResponse(
        id=str(course.id),
        slug=course.slug,
        title=course.title,
        description=course.description,
        category=course.category,
        level=course.level,
        duration=course.duration,
        image_url=course.image_url,
        price_minor=course.price_minor,
        currency=course.currency,
        is_published=course.is_published,
        created_at=course.created_at.isoformat(),
    )


def _course_with_modules(db: Session, course: Course) -> AdminCourseWithModulesResponse:
    modules = list_modules(db, [course.id]).get(course.id, [])
    return AdminCourseWithModulesResponse(
        **_course_response(course).model_dump(),
        modules=module_outlines(db, modules),
    )


@router.get("", response_model=AdminCourseListResponse)
def list_courses(db: Session = Depends(get_db)) -> AdminCourseListResponse:
    items = [
        AdminCourseSummaryResponse(**_course_response(course).model_dump(), module_count=count)
        for course, count in list_all_courses(db)
    ]
    return AdminCourseListResponse(courses=items, total=len(items))


@router.post("", response_model=AdminCourseWithModulesResponse, status_code=201)
def create_course(payload: AdminCourseCreateRequest, db: Session = Depends(get_db)) -> AdminCourseWithModulesResponse:
    course = create_course_with_modules(db, payload)
    return _course_with_modules(db, course)


@router.post("/modules", response_model=ModuleOutline, status_code=201)
def create_module_endpoint(payload: AdminModuleCreateRequest, db: Session = Depends(get_db)) -> ModuleOutline:
    module = create_module(db, payload.course_id, payload)
    return module_outlines(db, [module])[0]


@router.post("/modules/reorder", response_model=ReorderResponse)
def reorder_modules_endpoint(payload: AdminModuleReorderRequest, db: Session = Depends(get_db)) -> ReorderResponse:
    updated = reorder_modules(db, payload.course_id, payload.modules)
    return ReorderResponse(success=True, updated=updated)


@router.patch("/modules/{module_id}", response_model=ModuleOutline)
def update_module_endpoint(
    module_id: uuid.UUID,
    payload: AdminModuleUpdateRequest,
    db: Session = Depends(get_db),
) -> ModuleOutline:
    module = update_module(db, module_id, payload)
    return module_outlines(db, [module])[0]


@router.delete("/modules/{module_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_module_endpoint(module_id: uuid.UUID, db: Session = Depends(get_db)) -> Response:
    delete_module(db, module_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{course_id}", response_model=AdminCourseWithModulesResponse)
def get_course(course_id: uuid.UUID, db: Session = Depends(get_db)) -> AdminCourseWithModulesResponse:
    return _course_with_modules(db, get_course_or_404(db, course_id))


@router.patch("/{course_id}", response_model=AdminCourseWithModulesResponse)
def patch_course(
    course_id: uuid.UUID,
    payload: AdminCourseUpdateRequest,
    db: Session = Depends(get_db),
) -> AdminCourseWithModulesResponse:
    course = update_course(db, course_id, payload)
    return _course_with_modules(db, course)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course_endpoint(course_id: uuid.UUID, db: Session = Depends(get_db)) -> Response:
    delete_course(db, course_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
