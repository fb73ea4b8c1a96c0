from __future__ import annotations

import re
import secrets
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.error_codes import ErrorCode
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models import Course, Lesson, Module, ModuleQuestion, PastQuestion, Quiz, QuizQuestion
from app.schemas.admin_content import (
    AdminLessonCreateRequest,
    AdminLessonUpdateRequest,
    AdminModuleQuestionCreateRequest,
    AdminPastQuestionCreateRequest,
    AdminQuizCreateRequest,
    AdminQuizQuestionCreateRequest,
)
from app.schemas.admin_courses import OrderItem
from app.services.admin_course_service import get_module_or_404

EXCERPT_LENGTH = 150
_TAG_RE = re.compile(r"<[^>]*>")

REORDERABLE = {
    "lesson": Lesson,
    "quiz": Quiz,
    "past_question": PastQuestion,
    "module_question": ModuleQuestion,
}


def slugify(title: str, max_length: int = 50) -> str:
    slug = re.sub(r"[^a-z0-9\s-]", "", title.lower())
    slug = re.sub(r"[\s-]+", "-", slug).strip("-")
    return slug[:max_length].rstrip("-") or "lesson"


def make_excerpt(content: str) -> str:
    plain = _TAG_RE.sub("", content).strip()
    if len(plain) > EXCERPT_LENGTH:
        return plain[:EXCERPT_LENGTH] + "..."
    return plain


def _unique_lesson_slug(db: Session, title: str) -> str:
    base = slugify(title)
    slug = base
    while db.execute(select(Lesson.id).where(Lesson.slug == slug)).scalar_one_or_none() is not None:
        slug = f"{base}-{secrets.token_hex(3)}"
    return slug


def create_lesson(db: Session, payload: AdminLessonCreateRequest) -> Lesson:
    module = get_module_or_404(db, payload.module_id)
    lesson = Lesson(
        module_id=module.id,
        title=payload.title.strip(),
        slug=_unique_lesson_slug(db, payload.title),
        content=payload.content,
        excerpt=payload.excerpt or make_excerpt(payload.content),
        is_free=payload.is_free,
        is_published=payload.is_published,
        is_featured=payload.is_featured,
        sort_order=payload.order,
    )
    db.add(lesson)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Lesson slug already exists", code=ErrorCode.LESSON_CONFLICT) from exc
    db.refresh(lesson)
    return lesson


def get_lesson_or_404(db: Session, lesson_id: uuid.UUID) -> Lesson:
    lesson = db.get(Lesson, lesson_id)
    if lesson is None:
        raise NotFoundError("Lesson not found", code=ErrorCode.LESSON_NOT_FOUND)
    return lesson


def update_lesson(db: Session, lesson_id: uuid.UUID, payload: AdminLessonUpdateRequest) -> Lesson:
    lesson = get_lesson_or_404(db, lesson_id)
    if payload.title is not None:
        lesson.title = payload.title.strip()
    if payload.content is not None:
        lesson.content = payload.content
        if payload.excerpt is None:
            lesson.excerpt = make_excerpt(payload.content)
    if payload.excerpt is not None:
        lesson.excerpt = payload.excerpt
    for field in ("is_free", "is_published", "is_featured"):
        value = getattr(payload, field)
        if value is not None:
            setattr(lesson, field, value)
    db.commit()
    db.refresh(lesson)
    return lesson


def list_lessons_with_context(db: Session) -> list[tuple[Lesson, Module, Course]]:
    rows = db.execute(
        select(Lesson, Module, Course)
        .join(Module, Lesson.module_id == Module.id)
        .join(Course, Module.course_id == Course.id)
        .order_by(Lesson.created_at.desc())
    ).all()
    return [(lesson, module, course) for lesson, module, course in rows]


def lesson_context(db: Session, lesson: Lesson) -> tuple[Module, Course]:
    module = db.get(Module, lesson.module_id)
    course = db.get(Course, module.course_id)
    return module, course


def create_quiz(db: Session, payload: AdminQuizCreateRequest) -> Quiz:
    module = get_module_or_404(db, payload.module_id)
    quiz = Quiz(
        module_id=module.id,
        title=payload.title.strip(),
        description=payload.description or None,
        sort_order=payload.order,
    )
    db.add(quiz)
    db.commit()
    db.refresh(quiz)
    return quiz


def create_quiz_question(db: Session, payload: AdminQuizQuestionCreateRequest) -> QuizQuestion:
    quiz = db.get(Quiz, payload.quiz_id)
    if quiz is None:
        raise NotFoundError("Quiz not found", code=ErrorCode.QUIZ_NOT_FOUND)
    question = QuizQuestion(
        quiz_id=quiz.id,
        type=payload.type,
        question=payload.question,
        options=payload.options,
        correct=payload.correct,
        sort_order=payload.order,
    )
    db.add(question)
    db.commit()
    db.refresh(question)
    return question


def create_module_question(db: Session, payload: AdminModuleQuestionCreateRequest) -> ModuleQuestion:
    module = get_module_or_404(db, payload.module_id)
    question = ModuleQuestion(
        module_id=module.id,
        type=payload.type,
        question=payload.question,
        options=payload.options,
        correct=payload.correct,
        sort_order=payload.order,
    )
    db.add(question)
    db.commit()
    db.refresh(question)
    return question


def create_past_question(db: Session, payload: AdminPastQuestionCreateRequest) -> PastQuestion:
    module = get_module_or_404(db, payload.module_id)
    past_question = PastQuestion(
        module_id=module.id,
        question=payload.question,
        solution=payload.solution,
        year=payload.year,
        is_free=payload.is_free,
        sort_order=payload.order,
    )
    db.add(past_question)
    db.commit()
    db.refresh(past_question)
    return past_question


def reorder_content(db: Session, content_type: str, items: list[OrderItem]) -> int:
    model = REORDERABLE.get(content_type)
    if model is None:
        raise ValidationError(f"Unknown content type: {content_type}")

    ids = [item.id for item in items]
    if len(set(ids)) != len(ids):
        raise ValidationError("Each item may appear only once")

    rows = db.execute(select(model).where(model.id.in_(ids))).scalars().all()
    if len(rows) != len(ids):
        raise NotFoundError(f"Some {content_type} items were not found", code=ErrorCode.CONTENT_NOT_FOUND)

    by_id = {row.id: row for row in rows}
    for item in items:
        by_id[item.id].sort_order = item.order
    db.commit()
    return len(items)
