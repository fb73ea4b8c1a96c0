from __future__ import annotations

import uuid

from sqlalchemy import delete as sql_delete
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.error_codes import ErrorCode
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.core.logging import get_logger
from app.models import (
    PURCHASE_SUCCESS,
    Comment,
    Course,
    Enrollment,
    Lesson,
    Module,
    ModuleQuestion,
    PastQuestion,
    Purchase,
    Quiz,
    QuizQuestion,
)
from app.schemas.admin_courses import (
    AdminCourseCreateRequest,
    AdminCourseUpdateRequest,
    AdminModuleCreate,
    AdminModuleUpdateRequest,
    OrderItem,
)
from app.services.ledger import get_course_or_404

logger = get_logger(__name__)


def _module_from_input(course_id: uuid.UUID, module: AdminModuleCreate) -> Module:
    return Module(
        course_id=course_id,
        title=module.title.strip(),
        description=module.description.strip() if module.description else None,
        is_free=module.is_free,
        sort_order=module.order,
    )


def create_course_with_modules(db: Session, payload: AdminCourseCreateRequest) -> Course:
    try:
        course = Course(
            slug=payload.slug,
            title=payload.title.strip(),
            description=payload.description.strip(),
            category=payload.category or None,
            level=payload.level or None,
            duration=payload.duration or None,
            image_url=payload.image_url or None,
            price_minor=payload.price_minor,
            currency=payload.currency or get_settings().currency,
            is_published=payload.is_published,
        )
        db.add(course)
        db.flush()

        for module in payload.modules:
            db.add(_module_from_input(course.id, module))

        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Course slug already exists", code=ErrorCode.COURSE_CONFLICT) from exc

    db.refresh(course)
    return course


def update_course(db: Session, course_id: uuid.UUID, payload: AdminCourseUpdateRequest) -> Course:
    course = get_course_or_404(db, course_id)
    if payload.slug is not None and payload.slug != course.slug and course.is_published:
        raise ValidationError("Slug cannot change once a course is published")

    for field in ["title", "slug", "description", "category", "level", "duration", "image_url", "price_minor", "is_published"]:
        value = getattr(payload, field, None)
        if value is not None:
            setattr(course, field, value.strip() if isinstance(value, str) else value)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Course slug already exists", code=ErrorCode.COURSE_CONFLICT) from exc
    db.refresh(course)
    return course


def list_all_courses(db: Session) -> list[tuple[Course, int]]:
    """Return all courses (newest first) paired with their module count."""
    courses = db.execute(select(Course).order_by(Course.created_at.desc())).scalars().all()
    if not courses:
        return []
    course_ids = [c.id for c in courses]
    counts_result = db.execute(
        select(Module.course_id, func.count(Module.id).label("cnt"))
        .where(Module.course_id.in_(course_ids))
        .group_by(Module.course_id)
    ).all()
    count_map = {row.course_id: row.cnt for row in counts_result}
    return [(course, count_map.get(course.id, 0)) for course in courses]


def _delete_module_content(db: Session, module_ids: list[uuid.UUID]) -> None:
    if not module_ids:
        return
    lesson_ids = select(Lesson.id).where(Lesson.module_id.in_(module_ids))
    quiz_ids = select(Quiz.id).where(Quiz.module_id.in_(module_ids))
    db.execute(sql_delete(Comment).where(Comment.lesson_id.in_(lesson_ids)))
    db.execute(sql_delete(Lesson).where(Lesson.module_id.in_(module_ids)))
    db.execute(sql_delete(QuizQuestion).where(QuizQuestion.quiz_id.in_(quiz_ids)))
    db.execute(sql_delete(Quiz).where(Quiz.module_id.in_(module_ids)))
    db.execute(sql_delete(PastQuestion).where(PastQuestion.module_id.in_(module_ids)))
    db.execute(sql_delete(ModuleQuestion).where(ModuleQuestion.module_id.in_(module_ids)))


def delete_course(db: Session, course_id: uuid.UUID) -> None:
    """Hard-delete a course with its modules, content and enrollments.

    Courses with successful purchases are kept; unpublish them instead.
    """
    course = get_course_or_404(db, course_id)
    paid = db.execute(
        select(Purchase.id).where(Purchase.course_id == course.id, Purchase.status == PURCHASE_SUCCESS).limit(1)
    ).scalar_one_or_none()
    if paid is not None:
        raise ConflictError("Course has successful purchases; unpublish it instead", code=ErrorCode.COURSE_CONFLICT)

    module_ids = list(db.execute(select(Module.id).where(Module.course_id == course.id)).scalars().all())
    _delete_module_content(db, module_ids)
    db.execute(sql_delete(Module).where(Module.course_id == course.id))
    db.execute(sql_delete(Purchase).where(Purchase.course_id == course.id))
    db.execute(sql_delete(Enrollment).where(Enrollment.course_id == course.id))
    db.delete(course)
    db.commit()
    logger.info("course_deleted", course_id=str(course_id))


def get_module_or_404(db: Session, module_id: uuid.UUID) -> Module:
    module = db.get(Module, module_id)
    if module is None:
        raise NotFoundError("Module not found", code=ErrorCode.MODULE_NOT_FOUND)
    return module


def create_module(db: Session, course_id: uuid.UUID, payload: AdminModuleCreate) -> Module:
    course = get_course_or_404(db, course_id)
    module = _module_from_input(course.id, payload)
    db.add(module)
    db.commit()
    db.refresh(module)
    return module


def update_module(db: Session, module_id: uuid.UUID, payload: AdminModuleUpdateRequest) -> Module:
    module = get_module_or_404(db, module_id)
    if payload.title is not None:
        module.title = payload.title.strip()
    if payload.description is not None:
        module.description = payload.description.strip() or None
    if payload.is_free is not None:
        module.is_free = payload.is_free
    if payload.order is not None:
        module.sort_order = payload.order
    db.commit()
    db.refresh(module)
    return module


def delete_module(db: Session, module_id: uuid.UUID) -> None:
    module = get_module_or_404(db, module_id)
    _delete_module_content(db, [module.id])
    db.delete(module)
    db.commit()


def reorder_modules(db: Session, course_id: uuid.UUID, items: list[OrderItem]) -> int:
    """Apply new display orders to modules of one course in a single transaction.

    Duplicate order values across the course are tolerated; a single request may
    not list the same module twice.
    """
    get_course_or_404(db, course_id)
    ids = [item.id for item in items]
    if len(set(ids)) != len(ids):
        raise ValidationError("Each module may appear only once")

    modules = db.execute(
        select(Module).where(Module.id.in_(ids), Module.course_id == course_id)
    ).scalars().all()
    if len(modules) != len(ids):
        raise ValidationError("Some modules don't belong to this course")

    by_id = {module.id: module for module in modules}
    for item in items:
        by_id[item.id].sort_order = item.order
    db.commit()
    return len(items)
