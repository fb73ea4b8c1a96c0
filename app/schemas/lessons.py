from pydantic import BaseModel, Field


class LessonModuleInfo(BaseModel):
    title: str
    course_title: str | None = None
    course_slug: str | None = None


class LessonSummary(BaseModel):
    id: str
    title: str
    slug: str
    excerpt: str | None = None
    created_at: str
    module: LessonModuleInfo


class LessonDetailResponse(LessonSummary):
    content: str


class FeaturedLessonsResponse(BaseModel):
    lessons: list[LessonSummary]


class RelatedLesson(LessonSummary):
    is_from_same_module: bool


class RelatedLessonsResponse(BaseModel):
    related: list[RelatedLesson]
    module: LessonModuleInfo


class CommentAuthor(BaseModel):
    id: str
    email: str


class CommentOut(BaseModel):
    id: str
    content: str
    created_at: str
    author: CommentAuthor


class CommentListResponse(BaseModel):
    comments: list[CommentOut]


class CommentCreateRequest(BaseModel):
    content: str = Field(min_length=1, max_length=5000)
