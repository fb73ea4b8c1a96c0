import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.db.session import get_db
from app.models import Course, Lesson, Module, ModuleQuestion, QuizQuestion
from app.schemas.admin_content import (
    AdminContentReorderRequest,
    AdminLessonCreateRequest,
    AdminLessonListResponse,
    AdminLessonResponse,
    AdminLessonUpdateRequest,
    AdminModuleQuestionCreateRequest,
    AdminPastQuestionCreateRequest,
    AdminPastQuestionResponse,
    AdminQuestionResponse,
    AdminQuizCreateRequest,
    AdminQuizQuestionCreateRequest,
    AdminQuizResponse,
)
from app.schemas.admin_courses import ReorderResponse
from app.schemas.courses import ModuleContentResponse
from app.services.admin_course_service import get_module_or_404
from app.services.catalog_service import module_content
from app.services.content_service import (
    create_lesson,
    create_module_question,
    create_past_question,
    create_quiz,
    create_quiz_question,
    get_lesson_or_404,
    lesson_context,
    list_lessons_with_context,
    reorder_content,
    update_lesson,
)

router = APIRouter(prefix="/v1/admin/content", tags=["admin"], dependencies=[Depends(require_admin)])


def _lesson_response(lesson: Lesson, module: Module, course: Course) -> AdminLessonResponse:
    return AdminLessonResponse(
        id=str(lesson.id),
        module_id=str(module.id),
        module_title=module.title,
        course_title=course.title,
        course_slug=course.slug,
        title=lesson.title,
        slug=lesson.slug,
        content=lesson.content,
        excerpt=lesson.excerpt,
        is_free=lesson.is_free,
        is_published=lesson.is_published,
        is_featured=lesson.is_featured,
        order=lesson.sort_order,
        created_at=lesson.created_at.isoformat(),
    )


def _question_response(question: QuizQuestion | ModuleQuestion, parent_id: uuid.UUID) -> AdminQuestionResponse:
    return AdminQuestionResponse(
        id=str(question.id),
        parent_id=str(parent_id),
        type=question.type,
        question=question.question,
        options=question.options,
        correct=question.correct,
        order=question.sort_order,
    )


@router.get("/lessons", response_model=AdminLessonListResponse)
def list_lessons(db: Session = Depends(get_db)) -> AdminLessonListResponse:
    return AdminLessonListResponse(
        lessons=[_lesson_response(lesson, module, course) for lesson, module, course in list_lessons_with_context(db)]
    )


@router.post("/lessons", response_model=AdminLessonResponse, status_code=201)
def create_lesson_endpoint(payload: AdminLessonCreateRequest, db: Session = Depends(get_db)) -> AdminLessonResponse:
    lesson = create_lesson(db, payload)
    return _lesson_response(lesson, *lesson_context(db, lesson))


@router.get("/lessons/{lesson_id}", response_model=AdminLessonResponse)
def get_lesson(lesson_id: uuid.UUID, db: Session = Depends(get_db)) -> AdminLessonResponse:
    lesson = get_lesson_or_404(db, lesson_id)
    return _lesson_response(lesson, *lesson_context(db, lesson))


@router.patch("/lessons/{lesson_id}", response_model=AdminLessonResponse)
def patch_lesson(
    lesson_id: uuid.UUID,
    payload: AdminLessonUpdateRequest,
    db: Session = Depends(get_db),
) -> AdminLessonResponse:
    lesson = update_lesson(db, lesson_id, payload)
    return _lesson_response(lesson, *lesson_context(db, lesson))


@router.get("/modules/{module_id}", response_model=ModuleContentResponse)
def get_module_content(module_id: uuid.UUID, db: Session = Depends(get_db)) -> ModuleContentResponse:
    return module_content(db, get_module_or_404(db, module_id), published_lessons_only=False)


@router.post("/quizzes", response_model=AdminQuizResponse, status_code=201)
def create_quiz_endpoint(payload: AdminQuizCreateRequest, db: Session = Depends(get_db)) -> AdminQuizResponse:
    quiz = create_quiz(db, payload)
    return AdminQuizResponse(
        id=str(quiz.id),
        module_id=str(quiz.module_id),
        title=quiz.title,
        description=quiz.description,
        order=quiz.sort_order,
    )


@router.post("/quiz-questions", response_model=AdminQuestionResponse, status_code=201)
def create_quiz_question_endpoint(
    payload: AdminQuizQuestionCreateRequest,
    db: Session = Depends(get_db),
) -> AdminQuestionResponse:
    question = create_quiz_question(db, payload)
    return _question_response(question, question.quiz_id)


@router.post("/module-questions", response_model=AdminQuestionResponse, status_code=201)
def create_module_question_endpoint(
    payload: AdminModuleQuestionCreateRequest,
    db: Session = Depends(get_db),
) -> AdminQuestionResponse:
    question = create_module_question(db, payload)
    return _question_response(question, question.module_id)


@router.post("/past-questions", response_model=AdminPastQuestionResponse, status_code=201)
def create_past_question_endpoint(
    payload: AdminPastQuestionCreateRequest,
    db: Session = Depends(get_db),
) -> AdminPastQuestionResponse:
    past_question = create_past_question(db, payload)
    return AdminPastQuestionResponse(
        id=str(past_question.id),
        module_id=str(past_question.module_id),
        question=past_question.question,
        solution=past_question.solution,
        year=past_question.year,
        is_free=past_question.is_free,
        order=past_question.sort_order,
    )


@router.post("/reorder", response_model=ReorderResponse)
def reorder_content_endpoint(payload: AdminContentReorderRequest, db: Session = Depends(get_db)) -> ReorderResponse:
    updated = reorder_content(db, payload.type, payload.items)
    return ReorderResponse(success=True, updated=updated)
