from __future__ import annotations

import uuid
from collections import Counter
from collections.abc import Iterable

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.core.error_codes import ErrorCode
from app.core.errors import NotFoundError
from app.models import Course, Lesson, Module, ModuleQuestion, PastQuestion, Quiz, QuizQuestion
from app.schemas.courses import (
    CourseSummary,
    LessonItem,
    ModuleContentResponse,
    ModuleOutline,
    ModuleQuestionItem,
    PastQuestionItem,
    QuizItem,
    QuizQuestionItem,
)


def course_summary_fields(course: Course) -> dict:
    return CourseSummary(
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
        is_free=course.price_minor == 0,
        created_at=course.created_at.isoformat(),
    ).model_dump()


def list_modules(db: Session, course_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, list[Module]]:
    ids = list(course_ids)
    if not ids:
        return {}
    modules = db.execute(
        select(Module).where(Module.course_id.in_(ids)).order_by(Module.sort_order.asc(), Module.created_at.asc())
    ).scalars().all()
    grouped: dict[uuid.UUID, list[Module]] = {course_id: [] for course_id in ids}
    for module in modules:
        grouped[module.course_id].append(module)
    return grouped


def _count_by_module(db: Session, model, module_ids: list[uuid.UUID]) -> Counter:
    if not module_ids:
        return Counter()
    rows = db.execute(
        select(model.module_id, func.count(model.id)).where(model.module_id.in_(module_ids)).group_by(model.module_id)
    ).all()
    return Counter({module_id: count for module_id, count in rows})


def module_outlines(db: Session, modules: list[Module]) -> list[ModuleOutline]:
    module_ids = [m.id for m in modules]
    lessons = _count_by_module(db, Lesson, module_ids)
    quizzes = _count_by_module(db, Quiz, module_ids)
    past_questions = _count_by_module(db, PastQuestion, module_ids)
    return [
        ModuleOutline(
            id=str(m.id),
            title=m.title,
            description=m.description,
            is_free=m.is_free,
            order=m.sort_order,
            lesson_count=lessons[m.id],
            quiz_count=quizzes[m.id],
            past_question_count=past_questions[m.id],
        )
        for m in modules
    ]


def list_published_courses(db: Session) -> list[tuple[Course, list[Module]]]:
    courses = db.execute(
        select(Course).where(Course.is_published.is_(True)).order_by(Course.created_at.desc())
    ).scalars().all()
    modules = list_modules(db, [c.id for c in courses])
    return [(course, modules.get(course.id, [])) for course in courses]


def get_published_course_by_id_or_slug(db: Session, id_or_slug: str) -> Course:
    conditions = [Course.slug == id_or_slug]
    try:
        conditions.append(Course.id == uuid.UUID(id_or_slug))
    except ValueError:
        pass
    course = db.execute(
        select(Course).where(or_(*conditions), Course.is_published.is_(True))
    ).scalars().first()
    if course is None:
        raise NotFoundError("Course not found", code=ErrorCode.COURSE_NOT_FOUND)
    return course


def get_module_in_course(db: Session, course_id: uuid.UUID, module_id: uuid.UUID) -> Module:
    module = db.get(Module, module_id)
    if module is None or module.course_id != course_id:
        raise NotFoundError("Module not found", code=ErrorCode.MODULE_NOT_FOUND)
    return module


def module_content(db: Session, module: Module, *, published_lessons_only: bool = True) -> ModuleContentResponse:
    lesson_stmt = select(Lesson).where(Lesson.module_id == module.id)
    if published_lessons_only:
        lesson_stmt = lesson_stmt.where(Lesson.is_published.is_(True))
    lessons = db.execute(lesson_stmt.order_by(Lesson.sort_order.asc(), Lesson.created_at.asc())).scalars().all()

    quizzes = db.execute(
        select(Quiz).where(Quiz.module_id == module.id).order_by(Quiz.sort_order.asc(), Quiz.created_at.asc())
    ).scalars().all()
    questions_by_quiz: dict[uuid.UUID, list[QuizQuestion]] = {q.id: [] for q in quizzes}
    if quizzes:
        questions = db.execute(
            select(QuizQuestion)
            .where(QuizQuestion.quiz_id.in_(list(questions_by_quiz)))
            .order_by(QuizQuestion.sort_order.asc())
        ).scalars().all()
        for question in questions:
            questions_by_quiz[question.quiz_id].append(question)

    past_questions = db.execute(
        select(PastQuestion)
        .where(PastQuestion.module_id == module.id)
        .order_by(PastQuestion.sort_order.asc(), PastQuestion.year.desc())
    ).scalars().all()
    module_questions = db.execute(
        select(ModuleQuestion).where(ModuleQuestion.module_id == module.id).order_by(ModuleQuestion.sort_order.asc())
    ).scalars().all()

    return ModuleContentResponse(
        course_id=str(module.course_id),
        module=module_outlines(db, [module])[0],
        lessons=[
            LessonItem(
                id=str(lesson.id),
                title=lesson.title,
                slug=lesson.slug,
                content=lesson.content,
                excerpt=lesson.excerpt,
                is_free=lesson.is_free,
                order=lesson.sort_order,
            )
            for lesson in lessons
        ],
        quizzes=[
            QuizItem(
                id=str(quiz.id),
                title=quiz.title,
                description=quiz.description,
                order=quiz.sort_order,
                questions=[
                    QuizQuestionItem(
                        id=str(q.id), type=q.type, question=q.question, options=q.options, correct=q.correct, order=q.sort_order
                    )
                    for q in questions_by_quiz[quiz.id]
                ],
            )
            for quiz in quizzes
        ],
        past_questions=[
            PastQuestionItem(
                id=str(pq.id), question=pq.question, solution=pq.solution, year=pq.year, is_free=pq.is_free, order=pq.sort_order
            )
            for pq in past_questions
        ],
        module_questions=[
            ModuleQuestionItem(
                id=str(mq.id), type=mq.type, question=mq.question, options=mq.options, correct=mq.correct, order=mq.sort_order
            )
            for mq in module_questions
        ],
    )
