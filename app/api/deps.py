from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.error_codes import ErrorCode
from app.core.errors import ForbiddenError, NotFoundError, UnauthorizedError, UpstreamError
from app.core.security import decode_identity_token
from app.db.session import get_db
from app.models import Account
from app.services.payment_gateway import PaymentGateway, RazorpayGateway

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_account(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Account:
    if credentials is None:
        raise UnauthorizedError("Missing authorization token")

    try:
        payload = decode_identity_token(credentials.credentials)
    except jwt.PyJWKClientError as exc:
        raise UpstreamError("Identity provider keys unavailable") from exc
    except jwt.PyJWTError as exc:
        raise UnauthorizedError("Invalid or expired token", code=ErrorCode.INVALID_TOKEN) from exc

    external_id = payload.get("sub")
    if not external_id:
        raise UnauthorizedError("Invalid token", code=ErrorCode.INVALID_TOKEN)

    account = db.execute(select(Account).where(Account.external_id == external_id)).scalars().first()
    if account is None:
        raise NotFoundError("User not found", code=ErrorCode.ACCOUNT_NOT_FOUND)
    return account


CurrentAccount = Annotated[Account, Depends(get_current_account)]


def require_admin(account: CurrentAccount) -> Account:
    if not account.is_admin:
        raise ForbiddenError("Admin access required", code=ErrorCode.ADMIN_REQUIRED)
    return account


AdminAccount = Annotated[Account, Depends(require_admin)]


@lru_cache(maxsize=1)
def _default_gateway() -> RazorpayGateway:
    return RazorpayGateway(get_settings())


def get_payment_gateway() -> PaymentGateway:
    return _default_gateway()


Gateway = Annotated[PaymentGateway, Depends(get_payment_gateway)]
