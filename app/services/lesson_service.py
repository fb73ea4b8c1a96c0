"""Public, marketing-facing lesson pages (published and featured lessons)."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.error_codes import ErrorCode
from app.core.errors import NotFoundError, ValidationError
from app.models import Account, Comment, Course, Lesson, Module

FEATURED_LIMIT = 6
RELATED_LIMIT = 4
RELATED_MIN_SAME_MODULE = 2


def _public_lessons():
    return select(Lesson).where(Lesson.is_published.is_(True), Lesson.is_featured.is_(True))


def get_public_lesson(db: Session, slug: str) -> Lesson:
    lesson = db.execute(_public_lessons().where(Lesson.slug == slug)).scalars().first()
    if lesson is None:
        raise NotFoundError("Lesson not found", code=ErrorCode.LESSON_NOT_FOUND)
    return lesson


def featured_lessons(db: Session) -> list[tuple[Lesson, Module, Course]]:
    rows = db.execute(
        select(Lesson, Module, Course)
        .join(Module, Lesson.module_id == Module.id)
        .join(Course, Module.course_id == Course.id)
        .where(Lesson.is_published.is_(True), Lesson.is_featured.is_(True))
        .order_by(Lesson.created_at.desc())
        .limit(FEATURED_LIMIT)
    ).all()
    return [(lesson, module, course) for lesson, module, course in rows]


def related_lessons(db: Session, lesson: Lesson) -> list[tuple[Lesson, Module, bool]]:
    """Lessons from the same module first, topped up from sibling modules of the course."""
    module = db.get(Module, lesson.module_id)
    same_module = db.execute(
        _public_lessons()
        .where(Lesson.module_id == module.id, Lesson.id != lesson.id)
        .order_by(Lesson.created_at.desc())
        .limit(RELATED_LIMIT)
    ).scalars().all()
    related = [(item, module, True) for item in same_module]

    if len(same_module) < RELATED_MIN_SAME_MODULE:
        fallback = db.execute(
            select(Lesson, Module)
            .join(Module, Lesson.module_id == Module.id)
            .where(
                Module.course_id == module.course_id,
                Lesson.module_id != module.id,
                Lesson.is_published.is_(True),
                Lesson.is_featured.is_(True),
            )
            .order_by(Lesson.created_at.desc())
            .limit(RELATED_LIMIT - len(same_module))
        ).all()
        related.extend((item, item_module, False) for item, item_module in fallback)
    return related


def list_comments(db: Session, lesson: Lesson) -> list[tuple[Comment, Account]]:
    rows = db.execute(
        select(Comment, Account)
        .join(Account, Comment.account_id == Account.id)
        .where(Comment.lesson_id == lesson.id)
        .order_by(Comment.created_at.desc())
    ).all()
    return [(comment, account) for comment, account in rows]


def add_comment(db: Session, lesson: Lesson, account: Account, content: str) -> Comment:
    text = content.strip()
    if not text:
        raise ValidationError("Comment content is required")
    comment = Comment(lesson_id=lesson.id, account_id=account.id, content=text)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment
