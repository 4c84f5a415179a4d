import logging
from dataclasses import dataclass
from datetime import datetime

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlmodel import Session, SQLModel

from healthmate.core.database import get_db
from healthmate.core.security import decode_access_token
from healthmate.models import User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

_BEARER = {"WWW-Authenticate": "Bearer"}


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail, headers=_BEARER)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> int:
    """Verifies signature and expiry only; no store access."""
    if not credentials or not credentials.credentials:
        raise _unauthorized("Access denied. No token provided.")
    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub") if payload else None
    try:
        return int(sub)
    except (TypeError, ValueError):
        raise _unauthorized("Invalid token.")


def get_current_user(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> User:
    user = db.get(User, user_id)
    if not user:
        # Valid signature but the account is gone (e.g. deleted after issuance)
        logger.info("Token rejected: user %s no longer exists", user_id)
        raise _unauthorized("Invalid token.")
    return user


@dataclass
class Pagination:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def get_pagination(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> Pagination:
    return Pagination(page=page, limit=limit)


def sparse_patch(body: BaseModel, non_nullable: tuple[str, ...] = ()) -> dict:
    """Only the fields the caller actually sent. Explicit null is refused for non_nullable fields."""
    patch = body.model_dump(exclude_unset=True)
    cleared = [name for name in non_nullable if name in patch and patch[name] is None]
    if cleared:
        raise HTTPException(status_code=400, detail=f"{', '.join(cleared)} cannot be null.")
    return patch


def apply_patch(record: SQLModel, patch: dict) -> None:
    for field, value in patch.items():
        setattr(record, field, value)
    record.updated_at = datetime.utcnow()
