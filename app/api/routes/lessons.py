from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import CurrentAccount
from app.db.session import get_db
from app.models import Account, Comment, Course, Lesson, Module
from app.schemas.lessons import (
    CommentAuthor,
    CommentCreateRequest,
    CommentListResponse,
    CommentOut,
    FeaturedLessonsResponse,
    LessonDetailResponse,
    LessonModuleInfo,
    LessonSummary,
    RelatedLesson,
    RelatedLessonsResponse,
)
from app.services.content_service import lesson_context
from app.services.lesson_service import (
    add_comment,
    featured_lessons,
    get_public_lesson,
    list_comments,
    related_lessons,
)

router = APIRouter(prefix="/v1/lessons", tags=["lessons"])


def _module_info(module: Module, course: Course | None = None) -> LessonModuleInfo:
    return LessonModuleInfo(
        title=module.title,
        course_title=course.title if course else None,
        course_slug=course.slug if course else None,
    )


def _lesson_summary_fields(lesson: Lesson, module_info: LessonModuleInfo) -> dict:
    return LessonSummary(
        id=str(lesson.id),
        title=lesson.title,
        slug=lesson.slug,
        excerpt=lesson.excerpt,
        created_at=lesson.created_at.isoformat(),
        module=module_info,
    ).model_dump()


def _comment_out(comment: Comment, author: Account) -> CommentOut:
    return CommentOut(
        id=str(comment.id),
        content=comment.content,
        created_at=comment.created_at.isoformat(),
        author=CommentAuthor(id=str(author.id), email=author.email),
    )


@router.get("/featured", response_model=FeaturedLessonsResponse)
def list_featured(db: Session = Depends(get_db)) -> FeaturedLessonsResponse:
    return FeaturedLessonsResponse(
        lessons=[
            LessonSummary(**_lesson_summary_fields(lesson, _module_info(module, course)))
            for lesson, module, course in featured_lessons(db)
        ]
    )


@router.get("/{slug}", response_model=LessonDetailResponse)
def get_lesson(slug: str, db: Session = Depends(get_db)) -> LessonDetailResponse:
    lesson = get_public_lesson(db, slug)
    module, course = lesson_context(db, lesson)
    return LessonDetailResponse(**_lesson_summary_fields(lesson, _module_info(module, course)), content=lesson.content)


@router.get("/{slug}/related", response_model=RelatedLessonsResponse)
def get_related(slug: str, db: Session = Depends(get_db)) -> RelatedLessonsResponse:
    lesson = get_public_lesson(db, slug)
    module, course = lesson_context(db, lesson)
    return RelatedLessonsResponse(
        related=[
            RelatedLesson(**_lesson_summary_fields(item, _module_info(item_module)), is_from_same_module=same_module)
            for item, item_module, same_module in related_lessons(db, lesson)
        ],
        module=_module_info(module, course),
    )


@router.get("/{slug}/comments", response_model=CommentListResponse)
def get_comments(slug: str, db: Session = Depends(get_db)) -> CommentListResponse:
    lesson = get_public_lesson(db, slug)
    return CommentListResponse(comments=[_comment_out(comment, author) for comment, author in list_comments(db, lesson)])


@router.post("/{slug}/comments", response_model=CommentOut, status_code=201)
def post_comment(
    slug: str,
    payload: CommentCreateRequest,
    current_account: CurrentAccount,
    db: Session = Depends(get_db),
) -> CommentOut:
    lesson = get_public_lesson(db, slug)
    comment = add_comment(db, lesson, current_account, payload.content)
    return _comment_out(comment, current_account)
