from pydantic import BaseModel


class AccessResponse(BaseModel):
    course_id: str
    module_id: str | None = None
    is_enrolled: bool
    has_paid: bool
    has_access: bool
    has_full_access: bool
    has_module_access: bool | None = None
    is_free_module: bool | None = None
