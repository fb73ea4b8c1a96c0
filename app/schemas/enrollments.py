import uuid

from pydantic import BaseModel

from app.schemas.courses import CourseSummary, ModuleOutline


class EnrollRequest(BaseModel):
    course_id: uuid.UUID


class EnrollmentOut(BaseModel):
    id: str
    course_id: str
    created_at: str


class EnrollResponse(BaseModel):
    enrollment: EnrollmentOut
    message: str


class EnrolledCourse(BaseModel):
    enrollment: EnrollmentOut
    course: CourseSummary
    modules: list[ModuleOutline]


class EnrollmentListResponse(BaseModel):
    enrollments: list[EnrolledCourse]
