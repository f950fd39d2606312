# salon_scheduler/services/blockout_service.py

import logging
from datetime import datetime
from typing import Optional

from sqlmodel import Session

from salon_scheduler.core import to_local_naive
from salon_scheduler.db import atomic
from salon_scheduler.deps import require_context, require_owner_or_staff
from salon_scheduler.errors import NotFound, ValidationError
from salon_scheduler.gateway import TenantGateway
from salon_scheduler.models import Blockout
from salon_scheduler.schemas import CallerContext, UserRole

logger = logging.getLogger(__name__)


def create_blockout(
    session: Session,
    ctx: Optional[CallerContext],
    start_time: datetime,
    end_time: datetime,
    reason: str = "",
    professional_id: Optional[str] = None,
) -> Blockout:
    """
    Block a professional's time (vacation, break, personal).

    Blockouts may overlap each other and existing appointments; they only
    take part in conflict checks for later bookings.
    """
    ctx = require_context(ctx)
    if professional_id is None and ctx.role == UserRole.professional:
        professional_id = ctx.user_id
    if not professional_id:
        raise ValidationError("professional_id is required")
    require_owner_or_staff(ctx, professional_id)

    start_time = to_local_naive(start_time)
    end_time = to_local_naive(end_time)
    if start_time >= end_time:
        raise ValidationError("start_time must be before end_time")

    gateway = TenantGateway(session, ctx.tenant_id)
    with atomic(session):
        # same lock as bookings so a blockout and a booking cannot interleave
        if gateway.lock_professional(professional_id) is None:
            raise NotFound("Professional not found")
        blockout = gateway.create_blockout(professional_id, start_time, end_time, reason.strip())

    logger.info(
        "Blockout %s created for professional %s at %s-%s",
        blockout.id, professional_id, start_time, end_time,
    )
    return blockout
