"""GET /v1/admin/withdrawals/stale - Pending withdrawals awaiting manual review"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from stuvendor.api.auth import require_role
from stuvendor.api.v1.schemas import StaleWithdrawal, StaleWithdrawalsResponse
from stuvendor.config import settings
from stuvendor.domain.models import Principal, ROLE_ADMIN
from stuvendor.infrastructure.database.repositories import LedgerRepository
from stuvendor.infrastructure.database.session import get_db
from stuvendor.services.withdrawals import flag_stale_pending

router = APIRouter()


@router.get("/admin/withdrawals/stale", response_model=StaleWithdrawalsResponse)
def get_stale_withdrawals(
    grace_minutes: Optional[int] = Query(None, ge=0, description="Defaults to the configured grace period"),
    principal: Principal = Depends(require_role(ROLE_ADMIN)),
    db: Session = Depends(get_db),
):
    """List withdrawals stuck in pending past the grace period"""
    grace = settings.pending_grace_minutes if grace_minutes is None else grace_minutes
    stale = flag_stale_pending(LedgerRepository(db), grace)

    return StaleWithdrawalsResponse(
        grace_minutes=grace,
        withdrawals=[
            StaleWithdrawal(
                entry_id=str(e.id),
                vendor_id=str(e.vendor_id),
                reference=e.transfer_reference,
                amount=e.amount,
                created_at=e.created_at.isoformat(),
            )
            for e in stale
        ],
    )
