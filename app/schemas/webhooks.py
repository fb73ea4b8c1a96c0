from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# ── Auth provider account lifecycle ──────────────────────────────────────────

class EmailAddress(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    email_address: EmailStr


class AuthUserData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    object: Literal["user"] = "user"
    email_addresses: list[EmailAddress] = Field(default_factory=list)
    primary_email_address_id: str | None = None

    def primary_email(self) -> str | None:
        for item in self.email_addresses:
            if item.id == self.primary_email_address_id:
                return str(item.email_address).lower()
        return None


class DeletedAuthUserData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    object: Literal["user"] = "user"
    deleted: bool = True


class UserCreatedEvent(BaseModel):
    type: Literal["user.created"]
    data: AuthUserData


class UserUpdatedEvent(BaseModel):
    type: Literal["user.updated"]
    data: AuthUserData


class UserDeletedEvent(BaseModel):
    type: Literal["user.deleted"]
    data: DeletedAuthUserData


AccountEvent = Annotated[Union[UserCreatedEvent, UserUpdatedEvent, UserDeletedEvent], Field(discriminator="type")]

ACCOUNT_EVENT_TYPES = frozenset({"user.created", "user.updated", "user.deleted"})


class WebhookEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = Field(min_length=1)
    data: dict


class AuthWebhookResponse(BaseModel):
    success: bool
    action: str
    account_id: str | None = None


# ── Payment gateway settlement notifications ─────────────────────────────────

class PaymentEntity(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    order_id: str
    method: str | None = None


class PaymentEntityWrapper(BaseModel):
    entity: PaymentEntity


class PaymentEventPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    payment: PaymentEntityWrapper | None = None


class PaymentEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    event: str
    payload: PaymentEventPayload | None = None


class PaymentWebhookResponse(BaseModel):
    success: bool
    action: str
    status: str | None = None
