# salon_scheduler/deps.py

from typing import Optional

from salon_scheduler.errors import AuthenticationRequired, AuthorizationDenied
from salon_scheduler.schemas import STAFF_ROLES, CallerContext, UserRole


def require_context(ctx: Optional[CallerContext]) -> CallerContext:
    if ctx is None:
        raise AuthenticationRequired()
    return ctx


def require_role(ctx: CallerContext, *roles: UserRole):
    if ctx.role not in roles:
        raise AuthorizationDenied()


def require_staff(ctx: CallerContext):
    require_role(ctx, *STAFF_ROLES)


def require_owner_or_staff(ctx: CallerContext, professional_id: str, message: str = "Forbidden"):
    """Staff act on the whole tenant; professionals only on their own agenda."""
    if ctx.is_staff:
        return
    if ctx.role == UserRole.professional and ctx.user_id == professional_id:
        return
    raise AuthorizationDenied(message)
