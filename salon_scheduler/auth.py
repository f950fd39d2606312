# salon_scheduler/auth.py

import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlmodel import Session, select

from salon_scheduler.config import settings
from salon_scheduler.db import get_session
from salon_scheduler.errors import AuthenticationRequired, ServerMisconfigured
from salon_scheduler.models import User
from salon_scheduler.schemas import CallerContext, UserRole

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
# auto_error=False: a missing token resolves to "no caller context"
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def create_access_token(data: dict, expires_minutes: int = settings.ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_session_token(user: User) -> str:
    return create_access_token({
        "sub": user.id,
        "tenant_id": user.tenant_id,
        "role": user.role,
    })


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def decode_context(token: str) -> Optional[CallerContext]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    user_id = payload.get("sub")
    tenant_id = payload.get("tenant_id")
    role = payload.get("role")
    if not user_id or not tenant_id or role not in {r.value for r in UserRole}:
        return None
    return CallerContext(tenant_id=tenant_id, user_id=user_id, role=role)


def get_caller_context(
    token: Optional[str] = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
) -> Optional[CallerContext]:
    """
    Resolve ``{tenant_id, user_id, role}`` from the bearer token.

    Returns None when the caller is unauthenticated; the operations
    themselves reject a missing context.
    """
    if not token:
        return None

    ctx = decode_context(token)
    if ctx is None:
        return None

    user = session.exec(
        select(User)
        .where(User.id == ctx.user_id)
        .where(User.tenant_id == ctx.tenant_id)
    ).first()
    if user is None or not user.is_active:
        return None

    # the stored role wins over a stale token claim
    return CallerContext(tenant_id=user.tenant_id, user_id=user.id, role=user.role)


def require_api_key(x_api_key: Optional[str] = Header(default=None)) -> None:
    if not settings.PUBLIC_API_KEY:
        logger.error("PUBLIC_API_KEY is not configured; rejecting public API call")
        raise ServerMisconfigured("API key not configured on server")

    if not x_api_key or not hmac.compare_digest(x_api_key, settings.PUBLIC_API_KEY):
        raise AuthenticationRequired("Unauthorized: invalid or missing x-api-key header")
