# salon_scheduler/routers/auth_routes.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session, select

from salon_scheduler.auth import create_session_token, get_caller_context, verify_password
from salon_scheduler.db import get_session
from salon_scheduler.deps import require_context
from salon_scheduler.errors import AuthenticationRequired
from salon_scheduler.models import User
from salon_scheduler.schemas import CallerContext, Token, UserPublic

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["auth"],
)


@router.post("/auth/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: Session = Depends(get_session),
):
    email = form_data.username
    password = form_data.password

    user = session.exec(
        select(User).where(User.email == email)
    ).first()

    if user is None or not user.is_active or not verify_password(password, user.password_hash):
        logger.info("Failed login attempt")
        raise AuthenticationRequired("Invalid credentials")

    return {"access_token": create_session_token(user), "token_type": "bearer"}


@router.get("/me", response_model=UserPublic)
def me(ctx: Optional[CallerContext] = Depends(get_caller_context)):
    ctx = require_context(ctx)
    return UserPublic(tenant_id=ctx.tenant_id, user_id=ctx.user_id, role=ctx.role)
