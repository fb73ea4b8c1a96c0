import uuid
from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.auth import AccountOut
from app.schemas.payments import PurchaseOut


class AccountListResponse(BaseModel):
    users: list[AccountOut]


class RoleUpdateRequest(BaseModel):
    account_id: uuid.UUID
    role: Literal["user", "admin"]


class RoleUpdateResponse(BaseModel):
    success: bool
    user: AccountOut
    message: str


class GrantAccessRequest(BaseModel):
    external_id: str = Field(min_length=1, max_length=255)
    course_id: uuid.UUID
    payment_method: str = Field(default="WhatsApp", min_length=1, max_length=64)
    amount: int | None = Field(default=None, ge=0)


class GrantAccessResponse(BaseModel):
    message: str
    created: bool
    purchase: PurchaseOut


class CourseAccessRow(BaseModel):
    id: str
    external_id: str
    email: str
    role: str
    is_enrolled: bool
    has_paid: bool
    enrollment_date: str | None = None
    purchase_date: str | None = None
    payment_method: str | None = None
    amount: int | None = None


class CourseAccessResponse(BaseModel):
    users: list[CourseAccessRow]
    total_users: int
    enrolled_users: int
    paid_users: int
