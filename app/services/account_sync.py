"""Mirror auth-provider account lifecycle events into local accounts."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import pydantic
from sqlalchemy import delete as sql_delete
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from svix.webhooks import Webhook, WebhookVerificationError

from app.core.config import get_settings
from app.core.error_codes import ErrorCode
from app.core.errors import ConflictError, UpstreamError, ValidationError
from app.core.logging import get_logger
from app.models import ROLE_USER, Account, Comment, Enrollment, Purchase
from app.schemas.webhooks import (
    ACCOUNT_EVENT_TYPES,
    AccountEvent,
    UserCreatedEvent,
    UserDeletedEvent,
    UserUpdatedEvent,
    WebhookEnvelope,
)

logger = get_logger(__name__)

_account_event_adapter = pydantic.TypeAdapter(AccountEvent)


@dataclass(frozen=True)
class AccountSyncResult:
    action: str
    account: Account | None = None


def verify_auth_webhook(body: bytes, headers: Mapping[str, str]) -> dict[str, Any]:
    secret = get_settings().auth_webhook_secret
    if not secret:
        raise UpstreamError("Auth webhook secret is not configured", code=ErrorCode.WEBHOOKS_NOT_CONFIGURED)

    svix_headers = {
        "svix-id": headers.get("svix-id", ""),
        "svix-timestamp": headers.get("svix-timestamp", ""),
        "svix-signature": headers.get("svix-signature", ""),
    }
    if not all(svix_headers.values()):
        raise ValidationError("Missing svix headers", code=ErrorCode.INVALID_SIGNATURE)

    try:
        payload = Webhook(secret).verify(body, svix_headers)
    except WebhookVerificationError as exc:
        logger.warning("auth_webhook_rejected", svix_id=svix_headers["svix-id"])
        raise ValidationError("Invalid webhook signature", code=ErrorCode.INVALID_SIGNATURE) from exc
    if not isinstance(payload, dict):
        raise ValidationError("Webhook payload must be an object")
    return payload


def decode_account_event(payload: dict[str, Any]) -> UserCreatedEvent | UserUpdatedEvent | UserDeletedEvent | None:
    """Return the typed event, or None for event types this service does not mirror."""
    try:
        envelope = WebhookEnvelope.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ValidationError("Malformed webhook envelope") from exc
    if envelope.type not in ACCOUNT_EVENT_TYPES:
        return None

    try:
        return _account_event_adapter.validate_python(payload)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Malformed {envelope.type} payload") from exc


def _find_account(db: Session, external_id: str) -> Account | None:
    return db.execute(select(Account).where(Account.external_id == external_id)).scalars().first()


def _require_primary_email(event: UserCreatedEvent | UserUpdatedEvent) -> str:
    email = event.data.primary_email()
    if not email:
        raise ValidationError("No primary email found for user")
    return email


def apply_account_event(db: Session, event: UserCreatedEvent | UserUpdatedEvent | UserDeletedEvent) -> AccountSyncResult:
    external_id = event.data.id

    if isinstance(event, UserDeletedEvent):
        account = _find_account(db, external_id)
        if account is None:
            return AccountSyncResult(action="ignored")
        db.execute(sql_delete(Comment).where(Comment.account_id == account.id))
        db.execute(sql_delete(Enrollment).where(Enrollment.account_id == account.id))
        db.execute(sql_delete(Purchase).where(Purchase.account_id == account.id))
        db.delete(account)
        db.commit()
        logger.info("account_deleted", external_id=external_id)
        return AccountSyncResult(action="deleted")

    email = _require_primary_email(event)
    account = _find_account(db, external_id)
    if account is not None:
        # Redelivered user.created or an email change; role is never touched here.
        account.email = email
        db.commit()
        db.refresh(account)
        logger.info("account_updated", external_id=external_id, event_type=event.type)
        return AccountSyncResult(action="updated", account=account)

    account = Account(external_id=external_id, email=email, role=ROLE_USER)
    db.add(account)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Account already exists") from exc
    db.refresh(account)
    logger.info("account_created", external_id=external_id, event_type=event.type)
    return AccountSyncResult(action="created", account=account)
