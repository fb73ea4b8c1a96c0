from typing import Any

from pydantic import BaseModel


class ModuleOutline(BaseModel):
    id: str
    title: str
    description: str | None = None
    is_free: bool
    order: int
    lesson_count: int = 0
    quiz_count: int = 0
    past_question_count: int = 0


class CourseSummary(BaseModel):
    id: str
    slug: str
    title: str
    description: str = ""
    category: str | None = None
    level: str | None = None
    duration: str | None = None
    image_url: str | None = None
    price_minor: int
    currency: str
    is_free: bool
    created_at: str


class CourseListItem(CourseSummary):
    modules: list[ModuleOutline]


class CourseListResponse(BaseModel):
    courses: list[CourseListItem]


class CourseDetailResponse(CourseSummary):
    modules: list[ModuleOutline]


class LessonItem(BaseModel):
    id: str
    title: str
    slug: str
    content: str
    excerpt: str | None = None
    is_free: bool
    order: int


class QuizQuestionItem(BaseModel):
    id: str
    type: str
    question: str
    options: list[Any]
    correct: Any
    order: int


class QuizItem(BaseModel):
    id: str
    title: str
    description: str | None = None
    order: int
    questions: list[QuizQuestionItem]


class PastQuestionItem(BaseModel):
    id: str
    question: str
    solution: str
    year: int
    is_free: bool
    order: int


class ModuleQuestionItem(BaseModel):
    id: str
    type: str
    question: str
    options: list[Any]
    correct: Any
    order: int


class ModuleContentResponse(BaseModel):
    course_id: str
    module: ModuleOutline
    lessons: list[LessonItem]
    quizzes: list[QuizItem]
    past_questions: list[PastQuestionItem]
    module_questions: list[ModuleQuestionItem]
