import uuid

from pydantic import BaseModel, Field

from app.schemas.courses import ModuleOutline

SLUG_PATTERN = r"^[a-z0-9-]+$"


class AdminModuleCreate(BaseModel):
    title: str = Field(min_length=3, max_length=255)
    description: str | None = None
    is_free: bool = False
    order: int = 0


class AdminCourseCreateRequest(BaseModel):
    title: str = Field(min_length=3, max_length=255)
    slug: str = Field(min_length=3, max_length=128, pattern=SLUG_PATTERN)
    description: str = ""
    category: str | None = None
    level: str | None = None
    duration: str | None = None
    image_url: str | None = None
    price_minor: int = Field(ge=0)
    currency: str | None = Field(default=None, min_length=3, max_length=8)
    is_published: bool = True
    modules: list[AdminModuleCreate] = Field(default_factory=list)


class AdminCourseUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=3, max_length=255)
    slug: str | None = Field(default=None, min_length=3, max_length=128, pattern=SLUG_PATTERN)
    description: str | None = None
    category: str | None = None
    level: str | None = None
    duration: str | None = None
    image_url: str | None = None
    price_minor: int | None = Field(default=None, ge=0)
    is_published: bool | None = None


class AdminCourseResponse(BaseModel):
    id: str
    slug: str
    title: str
    description: str
    category: str | None = None
    level: str | None = None
    duration: str | None = None
    image_url: str | None = None
    price_minor: int
    currency: str
    is_published: bool
    created_at: str


class AdminCourseWithModulesResponse(AdminCourseResponse):
    modules: list[ModuleOutline]


class AdminCourseSummaryResponse(AdminCourseResponse):
    module_count: int


class AdminCourseListResponse(BaseModel):
    courses: list[AdminCourseSummaryResponse]
    total: int


class AdminModuleCreateRequest(AdminModuleCreate):
    course_id: uuid.UUID


class AdminModuleUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=3, max_length=255)
    description: str | None = None
    is_free: bool | None = None
    order: int | None = None


class OrderItem(BaseModel):
    id: uuid.UUID
    order: int


class AdminModuleReorderRequest(BaseModel):
    course_id: uuid.UUID
    modules: list[OrderItem] = Field(min_length=1)


class ReorderResponse(BaseModel):
    success: bool
    updated: int
