import uuid
from typing import Any, Literal

from pydantic import BaseModel, Field

from app.schemas.admin_courses import OrderItem


class AdminLessonCreateRequest(BaseModel):
    module_id: uuid.UUID
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    excerpt: str | None = None
    is_free: bool = False
    is_published: bool = False
    is_featured: bool = False
    order: int = 0


class AdminLessonUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    content: str | None = None
    excerpt: str | None = None
    is_free: bool | None = None
    is_published: bool | None = None
    is_featured: bool | None = None


class AdminLessonResponse(BaseModel):
    id: str
    module_id: str
    module_title: str
    course_title: str
    course_slug: str
    title: str
    slug: str
    content: str
    excerpt: str | None = None
    is_free: bool
    is_published: bool
    is_featured: bool
    order: int
    created_at: str


class AdminLessonListResponse(BaseModel):
    lessons: list[AdminLessonResponse]


class AdminQuizCreateRequest(BaseModel):
    module_id: uuid.UUID
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    order: int = 0


class AdminQuizResponse(BaseModel):
    id: str
    module_id: str
    title: str
    description: str | None = None
    order: int


class QuestionFields(BaseModel):
    type: str = Field(min_length=1, max_length=32)
    question: str = Field(min_length=1)
    options: list[Any] = Field(default_factory=list)
    correct: Any = Field(...)
    order: int = 0


class AdminQuizQuestionCreateRequest(QuestionFields):
    quiz_id: uuid.UUID


class AdminModuleQuestionCreateRequest(QuestionFields):
    module_id: uuid.UUID


class AdminQuestionResponse(BaseModel):
    id: str
    parent_id: str
    type: str
    question: str
    options: list[Any]
    correct: Any
    order: int


class AdminPastQuestionCreateRequest(BaseModel):
    module_id: uuid.UUID
    question: str = Field(min_length=1)
    solution: str = Field(min_length=1)
    year: int = Field(ge=1900, le=2100)
    is_free: bool = False
    order: int = 0


class AdminPastQuestionResponse(BaseModel):
    id: str
    module_id: str
    question: str
    solution: str
    year: int
    is_free: bool
    order: int


class AdminContentReorderRequest(BaseModel):
    type: Literal["lesson", "quiz", "past_question", "module_question"]
    items: list[OrderItem] = Field(min_length=1)
