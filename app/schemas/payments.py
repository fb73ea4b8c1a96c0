import uuid

from pydantic import BaseModel, Field


class CreateOrderRequest(BaseModel):
    course_id: uuid.UUID


class CreateOrderResponse(BaseModel):
    order_id: str
    amount: int
    currency: str
    key: str
    course_title: str
    user_email: str
    reused: bool


class VerifyPaymentRequest(BaseModel):
    course_id: uuid.UUID
    order_id: str = Field(min_length=1, max_length=128)
    payment_id: str = Field(min_length=1, max_length=128)
    signature: str = Field(min_length=1, max_length=256)


class PurchaseOut(BaseModel):
    id: str
    course_id: str
    amount: int
    currency: str
    status: str
    order_id: str | None = None
    payment_id: str | None = None
    payment_method: str | None = None
    created_at: str


class VerifyPaymentResponse(BaseModel):
    success: bool
    purchase: PurchaseOut


class PurchaseWithCourse(PurchaseOut):
    course_title: str
    course_slug: str


class PurchaseListResponse(BaseModel):
    purchases: list[PurchaseWithCourse]
